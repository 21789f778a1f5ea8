"""
Recorder Module - Record browser actions for replay.

This module provides functionality to record user actions in a browser
and generate replayable Playwright scripts.
"""

from flow_recorder.recorder.models import (
    ActionKind,
    ElementSelector,
    RecordedAction,
    Recording,
    RecordingMetadata,
)
from flow_recorder.recorder.recorder import ActionRecorder, RecorderState
from flow_recorder.recorder.script_generator import (
    PlaywrightScriptGenerator,
    ScriptMetadata,
    parse_script_metadata,
)
from flow_recorder.recorder.selectors import DomNode, preferred_selector, resolve_selector
from flow_recorder.recorder.store import ScriptStore

__all__ = [
    "ActionKind",
    "ElementSelector",
    "RecordedAction",
    "Recording",
    "RecordingMetadata",
    "ActionRecorder",
    "RecorderState",
    "PlaywrightScriptGenerator",
    "ScriptMetadata",
    "parse_script_metadata",
    "DomNode",
    "preferred_selector",
    "resolve_selector",
    "ScriptStore",
]
