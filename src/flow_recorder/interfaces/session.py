"""
Session Interface - Post-replay session persistence collaborator.
"""

from abc import ABC, abstractmethod


class ISessionPersistence(ABC):
    """
    Saves browser session state (cookies) for a domain.
    
    The replayer calls save_session() once after a replay completes for a
    recording that carries a target site.
    """

    @abstractmethod
    async def save_session(self, domain: str) -> None:
        """
        Persist the session for a domain.
        
        Args:
            domain: Host name, e.g. ``www.example.com``
        """
        ...

    @abstractmethod
    async def restore_session(self, domain: str) -> bool:
        """
        Restore a previously saved session.
        
        Returns:
            True if any session state was restored
        """
        ...
