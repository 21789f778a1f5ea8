"""
Utilities module - Common utility functions.
"""

from flow_recorder.utils.logging import setup_logging, get_logger

__all__ = [
    "setup_logging",
    "get_logger",
]
