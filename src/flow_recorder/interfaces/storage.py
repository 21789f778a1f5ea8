"""
Storage Interface - Durable home of generated scripts.
"""

from abc import ABC, abstractmethod
from typing import List


class IScriptStore(ABC):
    """
    Persists script text keyed by recording id.
    
    Writes are whole-file replacements; the script text is the only durable
    representation of a recording.
    
    Attributes:
        suffix: File suffix appended to ids; list() returns "<id><suffix>" names
    """
    
    suffix: str = ""

    @abstractmethod
    def write(self, recording_id: str, text: str) -> None:
        """Store (or replace) the script for a recording."""
        ...

    @abstractmethod
    def read(self, recording_id: str) -> str:
        """
        Read the script for a recording.
        
        Raises:
            RecordingNotFoundError: If no script exists for the id
            StorageError: If the script cannot be read
        """
        ...

    @abstractmethod
    def delete(self, recording_id: str) -> None:
        """
        Delete the script for a recording.
        
        Raises:
            RecordingNotFoundError: If no script exists for the id
        """
        ...

    @abstractmethod
    def list(self) -> List[str]:
        """List stored script file names."""
        ...
