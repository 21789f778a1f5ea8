"""
Recorder-related exceptions.
"""

from flow_recorder.exceptions.base import FlowRecorderError


class RecorderError(FlowRecorderError):
    """Base exception for recorder errors."""
    pass


class AlreadyRecordingError(RecorderError):
    """A recording session is already active."""
    
    def __init__(self, message: str = "Already recording", recording_id: str | None = None):
        super().__init__(message, {"recording_id": recording_id} if recording_id else None)
        self.recording_id = recording_id


class NotRecordingError(RecorderError):
    """
    The operation needs an active (or paused) recording.
    
    Raised by explicit calls such as pause(), resume() and stop().
    """
    
    def __init__(self, message: str = "Not recording", state: str | None = None):
        super().__init__(message, {"state": state} if state else None)
        self.state = state


class CaptureInstallError(RecorderError):
    """The capture listener could not be installed into the page."""
    pass
