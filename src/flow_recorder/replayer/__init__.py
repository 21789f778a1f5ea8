"""
Replayer Module - Execute stored scripts against a live page.
"""

from flow_recorder.replayer.commands import (
    CommandKind,
    IScriptParser,
    LineScriptParser,
    ScriptCommand,
)
from flow_recorder.replayer.replayer import (
    ActionReplayer,
    ReplayOptions,
    ReplayState,
    ReplayStatus,
)
from flow_recorder.replayer.report import CommandResult, ReplayReport
from flow_recorder.replayer.waits import FixedDelayWait, PollingWait, WaitStrategy

__all__ = [
    "CommandKind",
    "IScriptParser",
    "LineScriptParser",
    "ScriptCommand",
    "ActionReplayer",
    "ReplayOptions",
    "ReplayState",
    "ReplayStatus",
    "CommandResult",
    "ReplayReport",
    "FixedDelayWait",
    "PollingWait",
    "WaitStrategy",
]
