"""
Browsers module - Page executor implementations.
"""

from flow_recorder.browsers.playwright_browser import PlaywrightBrowser, PlaywrightPageExecutor

__all__ = [
    "PlaywrightBrowser",
    "PlaywrightPageExecutor",
]
