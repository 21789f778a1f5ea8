"""
Replay-related exceptions.
"""

from flow_recorder.exceptions.base import FlowRecorderError


class ReplayError(FlowRecorderError):
    """Base exception for replay errors."""
    pass


class AlreadyReplayingError(ReplayError):
    """A replay session is already in flight."""
    
    def __init__(self, message: str = "Already replaying", state: str | None = None):
        super().__init__(message, {"state": state} if state else None)
        self.state = state


class ScriptLoadError(ReplayError):
    """
    The script for a recording could not be read.
    
    Aborts the whole replay before any command runs.
    """
    
    def __init__(self, message: str, recording_id: str):
        super().__init__(message, {"recording_id": recording_id})
        self.recording_id = recording_id


class CommandExecutionError(ReplayError):
    """
    A single script command failed.
    
    Recovered locally by the replayer and recorded in the replay report.
    """
    
    def __init__(self, message: str, command: str, line_number: int | None = None):
        super().__init__(message, {"command": command, "line_number": line_number})
        self.command = command
        self.line_number = line_number
