"""
Action Replayer - Drive a live page from a stored script.

States: idle -> running <-> paused -> completed | error, with manual_step
as a pause-like state for operator intervention. Execution is best-effort:
a failing command is recorded in the report and the loop moves on.
"""

import asyncio
import dataclasses
import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

from flow_recorder.exceptions.browser import ElementNotFoundError
from flow_recorder.exceptions.replay import (
    AlreadyReplayingError,
    CommandExecutionError,
    ReplayError,
    ScriptLoadError,
)
from flow_recorder.exceptions.storage import StorageError
from flow_recorder.interfaces.page import IPageExecutor
from flow_recorder.interfaces.session import ISessionPersistence
from flow_recorder.interfaces.storage import IScriptStore
from flow_recorder.recorder.models import utc_now
from flow_recorder.recorder.script_generator import parse_script_metadata
from flow_recorder.recorder.selectors import RESOLVE_ELEMENT_JS
from flow_recorder.replayer.commands import (
    CommandKind,
    IScriptParser,
    LineScriptParser,
    ScriptCommand,
)
from flow_recorder.replayer.report import CommandResult, ReplayReport
from flow_recorder.replayer.waits import FixedDelayWait, WaitStrategy

logger = logging.getLogger(__name__)


class ReplayState(str, Enum):
    """Replayer lifecycle states."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    MANUAL_STEP = "manual_step"
    COMPLETED = "completed"
    ERROR = "error"


ACTIVE_STATES = frozenset({ReplayState.RUNNING, ReplayState.PAUSED, ReplayState.MANUAL_STEP})


@dataclass
class ReplayStatus:
    """Snapshot pushed to the status observer on every transition."""
    state: ReplayState = ReplayState.IDLE
    recording_id: Optional[str] = None
    current_line: Optional[int] = None
    total_commands: int = 0
    message: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "recording_id": self.recording_id,
            "current_line": self.current_line,
            "total_commands": self.total_commands,
            "message": self.message,
            "error": self.error,
        }


@dataclass
class ReplayOptions:
    """
    Options for a single replay.

    Attributes:
        recording_id: Recording whose script is replayed
        speed: Multiplier applied to delays; None keeps the replayer default
        restore_session: Restore saved cookies for the target site first
    """
    recording_id: str
    speed: Optional[float] = None
    restore_session: bool = False


StatusCallback = Callable[[ReplayStatus], None]


# Element scripts run as ``(function(selector, value) {...})(...)`` and
# return false when the selector resolves to nothing.
_CLICK_BODY = """
    el.scrollIntoView({ block: 'center', inline: 'center' });
    el.click();
"""

_SET_VALUE = """
    const descriptor = Object.getOwnPropertyDescriptor(Object.getPrototypeOf(el), 'value');
    if (descriptor && descriptor.set) {
        descriptor.set.call(el, value);
    } else {
        el.value = value;
    }
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
"""

_FILL_BODY = "\n    el.focus();" + _SET_VALUE

_KEY_PRESS_SCRIPT = """
(function(key) {
    const el = document.activeElement || document.body;
    const init = { key: key, code: key, bubbles: true, cancelable: true };
    el.dispatchEvent(new KeyboardEvent('keydown', init));
    el.dispatchEvent(new KeyboardEvent('keypress', init));
    el.dispatchEvent(new KeyboardEvent('keyup', init));
    if (key === 'Enter' && el.form) {
        if (typeof el.form.requestSubmit === 'function') {
            el.form.requestSubmit();
        } else {
            el.form.submit();
        }
        return 'submitted';
    }
    return 'pressed';
})(__ARGS__)
"""


def _element_script(body: str, selector: str, value: Optional[str] = None) -> str:
    args = json.dumps(selector) + ", " + json.dumps(value)
    return (
        "(function(selector, value) {\n"
        + RESOLVE_ELEMENT_JS
        + "    const el = __flowFindElement(selector);\n"
        + "    if (!el) return false;\n"
        + body
        + "    return true;\n"
        + f"}})({args})"
    )


class ActionReplayer:
    """
    Replays stored scripts against a page.

    Only one replay runs at a time. pause() and stop() are cooperative:
    they take effect at the checkpoint before the next command, never in
    the middle of an in-flight page call.

    Example:
        >>> replayer = ActionReplayer(ScriptStore("./recordings"))
        >>> report = await replayer.start_replay(executor, ReplayOptions("4d6870eb-..."))
        >>> print(f"{report.succeeded}/{report.total_commands} commands succeeded")
    """

    def __init__(
        self,
        store: IScriptStore,
        session: Optional[ISessionPersistence] = None,
        wait_strategy: Optional[WaitStrategy] = None,
        parser: Optional[IScriptParser] = None,
        pause_on_manual_step: bool = False,
    ):
        """
        Initialize the replayer.

        Args:
            store: Where scripts are read from
            session: Saves cookies for the target site after a completed replay
            wait_strategy: Pacing between commands (default FixedDelayWait)
            parser: Script parser (default LineScriptParser)
            pause_on_manual_step: Wait for resume() at every manual step
        """
        self._store = store
        self._session = session
        self._wait = wait_strategy or FixedDelayWait()
        self._parser = parser or LineScriptParser()
        self._pause_on_manual_step = pause_on_manual_step

        self._status = ReplayStatus()
        self._on_status_change: Optional[StatusCallback] = None
        self._resume_event = asyncio.Event()
        self._resume_event.set()
        self._stop_requested = False
        self._speed = 1.0

    @property
    def state(self) -> ReplayState:
        return self._status.state

    @property
    def is_active(self) -> bool:
        return self._status.state in ACTIVE_STATES

    def get_status(self) -> ReplayStatus:
        """Copy of the current status."""
        return dataclasses.replace(self._status)

    async def start_replay(
        self,
        page: IPageExecutor,
        options: ReplayOptions,
        on_status_change: Optional[StatusCallback] = None,
    ) -> ReplayReport:
        """
        Replay a recording's script and return the per-command report.

        Args:
            page: Page to drive
            options: Which recording and how
            on_status_change: Called with a status snapshot on every transition

        Raises:
            AlreadyReplayingError: If a replay is in flight
            ScriptLoadError: If the script cannot be read; the replayer ends in ``error``
        """
        if self.is_active:
            raise AlreadyReplayingError(state=self._status.state.value)

        self._on_status_change = on_status_change
        self._stop_requested = False
        self._resume_event.set()
        self._speed = options.speed or getattr(self._wait, "speed", 1.0)
        self._status = ReplayStatus(recording_id=options.recording_id)
        report = ReplayReport(recording_id=options.recording_id)

        try:
            script = self._store.read(options.recording_id)
        except StorageError as e:
            report.error = str(e)
            report.completed_at = report.started_at
            self._set_state(ReplayState.ERROR, error=str(e))
            raise ScriptLoadError(
                f"Failed to load script: {e.message}", options.recording_id
            ) from e

        commands = self._parser.parse(script)
        metadata = parse_script_metadata(options.recording_id, script, "")
        domain = urlparse(metadata.metadata.target_site or "").hostname
        wait = self._wait_for_speed(options.speed)

        report.total_commands = len(commands)
        self._status.total_commands = len(commands)
        self._set_state(ReplayState.RUNNING, message=f"Replaying '{metadata.name}'")
        logger.info(f"Replaying '{metadata.name}' ({len(commands)} commands)")

        try:
            if options.restore_session and domain and self._session:
                await self._restore_session(domain)

            for command in commands:
                if not await self._checkpoint():
                    report.stopped = True
                    break
                self._status.current_line = command.line_number

                if command.kind == CommandKind.MANUAL_STEP:
                    report.results.append(await self._manual_step(command))
                    continue

                report.results.append(await self._run_command(page, command, wait))
        except asyncio.CancelledError:
            report.stopped = True
            report.completed_at = utc_now()
            self._set_state(ReplayState.IDLE, message="Replay cancelled")
            logger.info("Replay cancelled")
            raise
        except Exception as e:
            report.error = str(e)
            report.completed_at = utc_now()
            self._set_state(ReplayState.ERROR, error=str(e))
            raise

        report.completed_at = utc_now()
        if report.stopped:
            self._set_state(ReplayState.IDLE, message="Replay stopped")
            logger.info("Replay stopped")
            return report

        self._set_state(
            ReplayState.COMPLETED,
            message=f"{report.succeeded}/{report.executed} commands succeeded",
        )
        logger.info(
            f"Replay completed: {report.succeeded} succeeded, {report.failed} failed"
        )

        if domain and self._session:
            await self._save_session(domain)
        return report

    def pause(self) -> None:
        """Pause before the next command."""
        if self._status.state != ReplayState.RUNNING:
            raise ReplayError("Cannot pause: replay not running", {"state": self._status.state.value})
        self._resume_event.clear()
        self._set_state(ReplayState.PAUSED, message="Replay paused")

    def resume(self) -> None:
        """Resume a paused replay or continue past a manual step."""
        if self._status.state not in (ReplayState.PAUSED, ReplayState.MANUAL_STEP):
            raise ReplayError("Cannot resume: replay not paused", {"state": self._status.state.value})
        self._set_state(ReplayState.RUNNING, message="Replay resumed")
        self._resume_event.set()

    def stop(self) -> None:
        """Discard the remaining commands. No-op when nothing is in flight."""
        if not self.is_active:
            return
        self._stop_requested = True
        self._resume_event.set()
        logger.info("Replay stop requested")

    async def _checkpoint(self) -> bool:
        await self._resume_event.wait()
        return not self._stop_requested

    async def _manual_step(self, command: ScriptCommand) -> CommandResult:
        description = command.arg(0) or "Manual step"
        if not self._pause_on_manual_step:
            logger.info(f"Manual step (continuing): {description}")
            return CommandResult(command, True)

        logger.info(f"Waiting for manual step: {description}")
        self._resume_event.clear()
        self._set_state(ReplayState.MANUAL_STEP, message=description)
        await self._resume_event.wait()
        return CommandResult(command, True)

    async def _run_command(
        self, page: IPageExecutor, command: ScriptCommand, wait: WaitStrategy
    ) -> CommandResult:
        started = time.monotonic()
        try:
            await wait.before(page, command)
            await self.execute_command(page, command)
            await wait.after(page, command)
        except Exception as e:
            error = CommandExecutionError(str(e), command.source, command.line_number)
            logger.warning(f"Command failed, continuing: {error}")
            return CommandResult(command, False, _elapsed_ms(started), str(e))

        logger.debug(f"Line {command.line_number}: {command.kind.value} ok")
        return CommandResult(command, True, _elapsed_ms(started))

    async def execute_command(self, page: IPageExecutor, command: ScriptCommand) -> None:
        """
        Produce one command's side effect on the page.

        Raises:
            ElementNotFoundError: If the command's selector resolves to nothing
            PageError: If the page call itself fails
        """
        if command.kind == CommandKind.NAVIGATE:
            await page.load_url(command.arg(0))
        elif command.kind == CommandKind.CLICK:
            await self._on_element(page, _CLICK_BODY, command.arg(0))
        elif command.kind == CommandKind.FILL:
            await self._on_element(page, _FILL_BODY, command.arg(0), command.arg(1))
        elif command.kind == CommandKind.SELECT:
            await self._on_element(page, _SET_VALUE, command.arg(0), command.arg(1))
        elif command.kind == CommandKind.KEY_PRESS:
            key = command.arg(0) or "Enter"
            outcome = await page.run_script(_KEY_PRESS_SCRIPT.replace("__ARGS__", json.dumps(key)))
            if outcome == "submitted":
                logger.debug("Enter submitted the focused form")
        elif command.kind == CommandKind.SCROLL:
            x, y = int(command.arg(0, "0")), int(command.arg(1, "0"))
            await page.run_script(f"window.scrollTo({x}, {y})")
        elif command.kind == CommandKind.WAIT:
            await asyncio.sleep(int(command.arg(0, "0")) / 1000 / self._speed)

    async def _on_element(
        self, page: IPageExecutor, body: str, selector: str, value: Optional[str] = None
    ) -> None:
        found = await page.run_script(_element_script(body, selector, value))
        if not found:
            raise ElementNotFoundError(f"Element not found: {selector}", selector)

    def _wait_for_speed(self, speed: Optional[float]) -> WaitStrategy:
        if speed and isinstance(self._wait, FixedDelayWait):
            return FixedDelayWait(self._wait.navigate_ms, self._wait.action_ms, speed)
        return self._wait

    async def _restore_session(self, domain: str) -> None:
        try:
            if await self._session.restore_session(domain):
                logger.info(f"Restored session for {domain}")
        except Exception as e:
            logger.warning(f"Failed to restore session for {domain}: {e}")

    async def _save_session(self, domain: str) -> None:
        try:
            await self._session.save_session(domain)
            logger.info(f"Saved session for {domain}")
        except Exception as e:
            logger.warning(f"Failed to save session for {domain}: {e}")

    def _set_state(
        self,
        state: ReplayState,
        message: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        self._status.state = state
        self._status.message = message
        self._status.error = error
        if self._on_status_change:
            try:
                self._on_status_change(self.get_status())
            except Exception as e:
                logger.warning(f"Status callback error: {e}")


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 1)
