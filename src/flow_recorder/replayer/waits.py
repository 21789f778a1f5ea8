"""
Wait Strategies - Pacing between replayed commands.

FixedDelayWait reproduces the classic fixed sleeps. PollingWait replaces
them with readiness checks bounded by a timeout.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod

from flow_recorder.interfaces.page import IPageExecutor
from flow_recorder.recorder.selectors import RESOLVE_ELEMENT_JS
from flow_recorder.replayer.commands import CommandKind, ScriptCommand

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATE_DELAY_MS = 2000
DEFAULT_ACTION_DELAY_MS = 500

_LOCATOR_KINDS = frozenset({CommandKind.CLICK, CommandKind.FILL, CommandKind.SELECT})


class WaitStrategy(ABC):
    """Called around every executed command."""

    async def before(self, page: IPageExecutor, command: ScriptCommand) -> None:
        """Wait for the page to be ready for ``command``."""
        pass

    @abstractmethod
    async def after(self, page: IPageExecutor, command: ScriptCommand) -> None:
        """Let the page settle after ``command`` ran."""
        ...


class FixedDelayWait(WaitStrategy):
    """
    Sleep a fixed time after each command.

    Navigation waits longer than other commands. Delays are divided by the
    speed multiplier.
    """

    def __init__(
        self,
        navigate_ms: int = DEFAULT_NAVIGATE_DELAY_MS,
        action_ms: int = DEFAULT_ACTION_DELAY_MS,
        speed: float = 1.0,
    ):
        if speed <= 0:
            raise ValueError("speed must be positive")
        self.navigate_ms = navigate_ms
        self.action_ms = action_ms
        self.speed = speed

    def delay_for(self, command: ScriptCommand) -> float:
        """Seconds to sleep after a command."""
        if command.kind in (CommandKind.WAIT, CommandKind.MANUAL_STEP):
            return 0.0
        ms = self.navigate_ms if command.kind == CommandKind.NAVIGATE else self.action_ms
        return ms / 1000 / self.speed

    async def after(self, page: IPageExecutor, command: ScriptCommand) -> None:
        delay = self.delay_for(command)
        if delay > 0:
            await asyncio.sleep(delay)


class PollingWait(WaitStrategy):
    """
    Poll the page instead of sleeping blindly.

    Before a locator command, waits until the selector resolves. After a
    navigation, waits until ``document.readyState`` is ``complete``. A timeout
    is logged and replay continues; the command itself reports failure.
    """

    READY_SCRIPT = "document.readyState"

    def __init__(self, timeout_ms: int = 10000, interval_ms: int = 100):
        self.timeout_ms = timeout_ms
        self.interval_ms = interval_ms

    async def before(self, page: IPageExecutor, command: ScriptCommand) -> None:
        if command.kind not in _LOCATOR_KINDS:
            return
        selector = command.arg(0)
        script = (
            f"(function() {{ {RESOLVE_ELEMENT_JS} "
            f"return !!__flowFindElement({json.dumps(selector)}); }})()"
        )
        if not await self._poll(page, script, lambda result: result is True):
            logger.debug(f"Timed out waiting for element: {selector}")

    async def after(self, page: IPageExecutor, command: ScriptCommand) -> None:
        if command.kind != CommandKind.NAVIGATE:
            return
        if not await self._poll(page, self.READY_SCRIPT, lambda result: result == "complete"):
            logger.debug("Timed out waiting for document to load")

    async def _poll(self, page: IPageExecutor, script: str, done) -> bool:
        deadline = time.monotonic() + self.timeout_ms / 1000
        while True:
            try:
                if done(await page.run_script(script)):
                    return True
            except Exception as e:
                # Navigation in progress tears down the execution context
                logger.debug(f"Readiness check failed: {e}")
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(self.interval_ms / 1000)
