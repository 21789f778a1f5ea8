"""
Interfaces module - Abstract base classes for the collaborators of the core.

This module defines the contracts that page hosts, script stores and
session managers must implement to work with the recorder and replayer.
"""

from flow_recorder.interfaces.page import IPageExecutor, LoadListener
from flow_recorder.interfaces.session import ISessionPersistence
from flow_recorder.interfaces.storage import IScriptStore

__all__ = [
    "IPageExecutor",
    "LoadListener",
    "ISessionPersistence",
    "IScriptStore",
]
