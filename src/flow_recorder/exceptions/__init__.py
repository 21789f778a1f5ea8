"""
Exceptions module - Custom exception hierarchy.

This module defines all custom exceptions used throughout Flow Recorder,
providing clear error types for different failure scenarios.
"""

from flow_recorder.exceptions.base import (
    FlowRecorderError,
    ConfigurationError,
)
from flow_recorder.exceptions.browser import (
    PageError,
    NavigationError,
    ElementNotFoundError,
    ScriptExecutionError,
    BrowserLaunchError,
)
from flow_recorder.exceptions.recorder import (
    RecorderError,
    AlreadyRecordingError,
    NotRecordingError,
    CaptureInstallError,
)
from flow_recorder.exceptions.replay import (
    ReplayError,
    AlreadyReplayingError,
    ScriptLoadError,
    CommandExecutionError,
)
from flow_recorder.exceptions.storage import (
    StorageError,
    RecordingNotFoundError,
)

__all__ = [
    # Base exceptions
    "FlowRecorderError",
    "ConfigurationError",
    # Page exceptions
    "PageError",
    "NavigationError",
    "ElementNotFoundError",
    "ScriptExecutionError",
    "BrowserLaunchError",
    # Recorder exceptions
    "RecorderError",
    "AlreadyRecordingError",
    "NotRecordingError",
    "CaptureInstallError",
    # Replay exceptions
    "ReplayError",
    "AlreadyReplayingError",
    "ScriptLoadError",
    "CommandExecutionError",
    # Storage exceptions
    "StorageError",
    "RecordingNotFoundError",
]
