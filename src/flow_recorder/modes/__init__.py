"""
Modes Module - Interaction modes driving the recorder and replayer.
"""

from flow_recorder.modes.base import IInteractionMode, ModeConfig, ModeResult, ModeType
from flow_recorder.modes.record_replay import RecordReplayMode

__all__ = [
    "IInteractionMode",
    "ModeConfig",
    "ModeResult",
    "ModeType",
    "RecordReplayMode",
]
