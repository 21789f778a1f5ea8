"""
Playwright Browser - Page executor and browser lifecycle on Playwright.

This module adapts a Playwright Page to IPageExecutor so the recorder and
replayer can drive it, and wraps browser launch/teardown for the CLI.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Optional

from flow_recorder.exceptions.browser import (
    BrowserLaunchError,
    NavigationError,
    ScriptExecutionError,
)
from flow_recorder.interfaces.page import IPageExecutor, LoadListener

logger = logging.getLogger(__name__)


class PlaywrightPageExecutor(IPageExecutor):
    """
    IPageExecutor over a Playwright Page.

    Example:
        >>> executor = PlaywrightPageExecutor(page)
        >>> await executor.load_url("https://example.com")
        >>> await executor.run_script("document.title")
        'Example Domain'
    """

    def __init__(self, page: Any, timeout_ms: Optional[int] = None):
        """
        Initialize the executor.

        Args:
            page: Playwright Page object
            timeout_ms: Navigation timeout (Playwright default when None)
        """
        self._page = page
        self._timeout_ms = timeout_ms
        self._exposed: set = set()
        self._load_handlers: Dict[LoadListener, Callable[[Any], None]] = {}

    @property
    def page(self) -> Any:
        """The wrapped Playwright Page."""
        return self._page

    async def run_script(self, code: str) -> Any:
        try:
            return await self._page.evaluate(code)
        except Exception as e:
            raise ScriptExecutionError(f"Script execution failed: {e}")

    async def load_url(self, url: str) -> None:
        options = {"timeout": self._timeout_ms} if self._timeout_ms else {}
        try:
            await self._page.goto(url, **options)
        except Exception as e:
            raise NavigationError(f"Failed to navigate to {url}: {e}", url=url)

    async def current_url(self) -> str:
        return self._page.url

    async def capture_page(self) -> bytes:
        try:
            return await self._page.screenshot(type="png")
        except Exception as e:
            raise ScriptExecutionError(f"Page capture failed: {e}")

    async def expose_function(self, name: str, callback: Callable[..., Any]) -> None:
        if name in self._exposed:
            logger.debug(f"Function already exposed: {name}")
            return
        try:
            await self._page.expose_function(name, callback)
        except Exception as e:
            # Playwright refuses to register a name twice on the same page
            if "already registered" in str(e):
                logger.debug(f"Function already exposed: {name}")
            else:
                raise ScriptExecutionError(f"Failed to expose {name}: {e}")
        self._exposed.add(name)

    def add_load_listener(self, listener: LoadListener) -> None:
        if listener in self._load_handlers:
            return

        def handler(_page: Any) -> None:
            result = listener()
            if inspect.isawaitable(result):
                asyncio.ensure_future(result)

        self._load_handlers[listener] = handler
        self._page.on("load", handler)

    def remove_load_listener(self, listener: LoadListener) -> None:
        handler = self._load_handlers.pop(listener, None)
        if handler is not None:
            self._page.remove_listener("load", handler)


class PlaywrightBrowser:
    """
    Owns a Playwright browser, its context and one page.

    Example:
        >>> browser = PlaywrightBrowser()
        >>> executor = await browser.launch(headless=True)
        >>> await executor.load_url("https://example.com")
        >>> await browser.close()
    """

    def __init__(self):
        """Initialize the browser (not launched yet)."""
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._page: Any = None

    @property
    def context(self) -> Any:
        """The Playwright BrowserContext, None before launch()."""
        return self._context

    async def launch(
        self,
        headless: bool = True,
        browser_type: str = "chromium",
        channel: Optional[str] = None,
        viewport: Optional[Dict[str, int]] = None,
        timeout_ms: Optional[int] = None,
    ) -> PlaywrightPageExecutor:
        """
        Launch the browser and open a page.

        Args:
            headless: Whether to run headless
            browser_type: chromium, firefox or webkit
            channel: Branded channel such as "chrome" (chromium only)
            viewport: {"width": ..., "height": ...}
            timeout_ms: Default timeout for page operations

        Returns:
            Executor for the opened page
        """
        try:
            from playwright.async_api import async_playwright

            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, browser_type, self._playwright.chromium)

            launch_options: Dict[str, Any] = {"headless": headless}
            if channel:
                launch_options["channel"] = channel
            self._browser = await launcher.launch(**launch_options)

            context_options: Dict[str, Any] = {}
            if viewport:
                context_options["viewport"] = viewport
            self._context = await self._browser.new_context(**context_options)
            if timeout_ms:
                self._context.set_default_timeout(timeout_ms)
            self._page = await self._context.new_page()

            logger.info(f"Launched {browser_type} browser (headless={headless})")
        except Exception as e:
            await self.close()
            raise BrowserLaunchError(f"Failed to launch browser: {e}")

        return PlaywrightPageExecutor(self._page, timeout_ms)

    async def close(self) -> None:
        """Close the browser and cleanup."""
        if self._context:
            await self._context.close()
            self._context = None
            self._page = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.info("Browser closed")
