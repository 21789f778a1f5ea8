"""
Script store exceptions.
"""

from flow_recorder.exceptions.base import FlowRecorderError


class StorageError(FlowRecorderError):
    """Reading or writing a stored script failed."""
    
    def __init__(self, message: str, path: str | None = None):
        super().__init__(message, {"path": path} if path else None)
        self.path = path


class RecordingNotFoundError(StorageError):
    """No stored script exists for the requested recording id."""
    
    def __init__(self, recording_id: str):
        super().__init__(f"Recording not found: {recording_id}")
        self.recording_id = recording_id
