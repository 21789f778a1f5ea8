"""
Page Interface - The page-execution capability the recorder and replayer drive.

The host (a Playwright tab, an embedded browser view, a test double) supplies
an implementation of IPageExecutor. The core never touches a browser API
directly; everything happens through script execution and a handful of
navigation primitives.

Example:
    >>> from flow_recorder.browsers import PlaywrightPageExecutor
    >>> executor = PlaywrightPageExecutor(page)
    >>> await executor.load_url("https://example.com")
    >>> title = await executor.run_script("document.title")
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Union

LoadListener = Callable[[], Union[None, Awaitable[None]]]


class IPageExecutor(ABC):
    """
    Abstract interface for executing code and navigation in a live page.
    """

    @abstractmethod
    async def run_script(self, code: str) -> Any:
        """
        Evaluate JavaScript in the page.
        
        Args:
            code: A JavaScript expression (typically an IIFE)
            
        Returns:
            The JSON-serializable result of the expression
            
        Raises:
            ScriptExecutionError: If the script throws or the page is gone
        """
        ...

    @abstractmethod
    async def load_url(self, url: str) -> None:
        """
        Load a URL into the page.
        
        Raises:
            NavigationError: If navigation fails
        """
        ...

    @abstractmethod
    async def current_url(self) -> str:
        """Get the URL of the active document."""
        ...

    @abstractmethod
    async def capture_page(self) -> bytes:
        """
        Capture a visual snapshot of the current page.
        
        Returns:
            PNG image bytes
        """
        ...

    @abstractmethod
    async def expose_function(self, name: str, callback: Callable[..., Any]) -> None:
        """
        Make a Python callable reachable from page scripts as ``window.<name>``.
        
        Re-exposing an already exposed name is a no-op.
        """
        ...

    def add_load_listener(self, listener: LoadListener) -> None:
        """Call ``listener`` after every full document load."""
        pass

    def remove_load_listener(self, listener: LoadListener) -> None:
        """Stop calling a listener registered with add_load_listener()."""
        pass
