"""
Page-related exceptions.
"""

from flow_recorder.exceptions.base import FlowRecorderError


class PageError(FlowRecorderError):
    """Base exception for page-related errors."""
    pass


class NavigationError(PageError):
    """
    Error during page navigation.
    
    Raised when navigation fails, such as:
    - Invalid URL
    - Network error
    - Navigation timeout
    """
    
    def __init__(self, message: str, url: str | None = None):
        super().__init__(message, {"url": url})
        self.url = url


class ElementNotFoundError(PageError):
    """
    Element not found on the page.
    
    Raised when a recorded selector resolves to nothing at replay time.
    """
    
    def __init__(self, message: str, selector: str):
        super().__init__(message, {"selector": selector})
        self.selector = selector


class ScriptExecutionError(PageError):
    """
    In-page script evaluation failed.
    
    Raised when code executed in the page throws or the page is gone.
    """
    pass


class BrowserLaunchError(PageError):
    """The browser could not be started."""
    pass
