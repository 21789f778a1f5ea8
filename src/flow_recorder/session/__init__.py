"""
Session Module - Cookie persistence for replayed sites.
"""

from flow_recorder.session.manager import CookieSessionManager, SavedSession

__all__ = [
    "CookieSessionManager",
    "SavedSession",
]
