"""
Action Recorder - Capture lifecycle state machine.

States: idle -> recording <-> paused -> idle (via stop). Exactly one
recording can be current at a time, owned by the recorder instance.
"""

import asyncio
import base64
import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from flow_recorder.exceptions.recorder import (
    AlreadyRecordingError,
    CaptureInstallError,
    NotRecordingError,
)
from flow_recorder.interfaces.page import IPageExecutor
from flow_recorder.interfaces.storage import IScriptStore
from flow_recorder.recorder.capture import BINDING_NAME, CAPTURE_SCRIPT, UNINSTALL_SCRIPT
from flow_recorder.recorder.models import (
    LOCATORLESS_KINDS,
    ActionKind,
    ElementSelector,
    RecordedAction,
    Recording,
    utc_now,
)
from flow_recorder.recorder.script_generator import (
    PlaywrightScriptGenerator,
    parse_script_metadata,
)

logger = logging.getLogger(__name__)


class RecorderState(str, Enum):
    """Recorder lifecycle states."""
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"


def default_recording_name() -> str:
    return f"Recording-{utc_now():%Y-%m-%dT%H-%M-%S}"


class ActionRecorder:
    """
    Records user actions on a page into a Recording.

    Explicit lifecycle calls fail fast with state errors. Captured events
    arriving outside the recording state are dropped silently, since the
    in-page listener cannot observe pause transitions itself.

    Example:
        >>> recorder = ActionRecorder(ScriptStore("./recordings"))
        >>> await recorder.start(executor, "checkout")
        >>> # User performs actions...
        >>> recording = await recorder.stop()
    """

    def __init__(
        self,
        store: IScriptStore,
        generator: Optional[PlaywrightScriptGenerator] = None,
        capture_screenshots: bool = True,
    ):
        """
        Initialize the recorder.

        Args:
            store: Where finalized scripts are written
            generator: Script generator (default PlaywrightScriptGenerator)
            capture_screenshots: Attach a page capture to manual steps
        """
        self._store = store
        self._generator = generator or PlaywrightScriptGenerator()
        self._capture_screenshots = capture_screenshots
        self._state = RecorderState.IDLE
        self._recording: Optional[Recording] = None
        self._page: Optional[IPageExecutor] = None
        self._on_action_callbacks: List[Callable[[RecordedAction], None]] = []

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        """True while a recording is current (recording or paused)."""
        return self._state != RecorderState.IDLE

    @property
    def current_recording(self) -> Optional[Recording]:
        return self._recording

    def on_action(self, callback: Callable[[RecordedAction], None]) -> None:
        """Register a callback for every appended action."""
        self._on_action_callbacks.append(callback)

    async def start(
        self,
        page: IPageExecutor,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Recording:
        """
        Start recording actions on a page.

        Args:
            page: Page to capture from
            name: Recording name (defaults to a timestamped name)
            description: Optional free text

        Returns:
            The new, empty Recording

        Raises:
            AlreadyRecordingError: If a recording is already current
            CaptureInstallError: If the capture listener could not be installed;
                the recorder is left idle
        """
        if self._state != RecorderState.IDLE:
            raise AlreadyRecordingError(
                recording_id=self._recording.id if self._recording else None
            )

        recording = Recording(
            name=name or default_recording_name(),
            description=description or None,
        )
        self._recording = recording
        self._page = page
        self._state = RecorderState.RECORDING

        try:
            target_site = await page.current_url()
            if target_site and target_site != "about:blank":
                recording.metadata.target_site = target_site
            await self._install_listener(page)
        except asyncio.CancelledError:
            self._reset()
            raise
        except Exception as e:
            self._reset()
            logger.error(f"Failed to install capture listener: {e}")
            raise CaptureInstallError(
                f"Failed to install capture listener: {e}",
                {"recording_id": recording.id},
            ) from e

        logger.info(f"Started recording '{recording.name}' ({recording.id})")
        return recording

    def pause(self) -> None:
        """Pause capture; events are dropped until resume()."""
        if self._state != RecorderState.RECORDING:
            raise NotRecordingError("Cannot pause: not recording", state=self._state.value)
        self._state = RecorderState.PAUSED
        logger.info("Recording paused")

    def resume(self) -> None:
        """Resume a paused recording."""
        if self._state != RecorderState.PAUSED:
            raise NotRecordingError("Cannot resume: not paused", state=self._state.value)
        self._state = RecorderState.RECORDING
        logger.info("Recording resumed")

    async def record_action(
        self,
        kind: ActionKind,
        locator: Optional[ElementSelector] = None,
        value: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[RecordedAction]:
        """
        Append a captured action.

        Silently ignored unless the state is exactly ``recording``.

        Returns:
            The appended action, or None when dropped
        """
        if self._state != RecorderState.RECORDING or not self._recording or not self._page:
            return None

        action = RecordedAction(
            kind=ActionKind(kind),
            page_url=await self._page.current_url(),
            locator=locator,
            value=value,
            description=description,
        )
        self._append(action)
        return action

    async def add_manual_step(self, description: str) -> RecordedAction:
        """
        Append a manual step placeholder with a snapshot of the page.

        Allowed while recording or paused.

        Raises:
            NotRecordingError: If no recording is current
        """
        if self._state == RecorderState.IDLE or not self._recording or not self._page:
            raise NotRecordingError("Cannot add manual step: not recording", state=self._state.value)

        screenshot = None
        if self._capture_screenshots:
            try:
                image = await self._page.capture_page()
                screenshot = "data:image/png;base64," + base64.b64encode(image).decode("ascii")
            except Exception as e:
                logger.warning(f"Could not capture page for manual step: {e}")

        action = RecordedAction(
            kind=ActionKind.MANUAL_STEP,
            page_url=await self._page.current_url(),
            description=description,
            screenshot=screenshot,
        )
        self._append(action)
        self._recording.metadata.manual_steps += 1
        logger.info(f"Manual step added: {description}")
        return action

    async def stop(self) -> Recording:
        """
        Finalize, persist and return the current recording.

        Raises:
            NotRecordingError: If no recording is current
            StorageError: If the script could not be written; the recording
                stays current so stop() can be retried
        """
        if self._state == RecorderState.IDLE or not self._recording:
            raise NotRecordingError("Cannot stop: not recording", state=self._state.value)

        recording = self._recording
        recording.updated_at = utc_now()

        script = self._generator.generate_recording(recording)
        self._store.write(recording.id, script)

        if self._page:
            await self._uninstall_listener(self._page)

        self._reset()
        logger.info(
            f"Stopped recording '{recording.name}'. "
            f"Captured {len(recording.actions)} actions."
        )
        return recording

    def list_recordings(self) -> List[Recording]:
        """All stored recordings (metadata only), newest first."""
        recordings = []
        for filename in self._store.list():
            recording_id = filename[: -len(self._store.suffix)] if self._store.suffix else filename
            try:
                content = self._store.read(recording_id)
            except Exception as e:
                logger.warning(f"Skipping unreadable script {filename}: {e}")
                continue
            recordings.append(parse_script_metadata(filename, content, self._store.suffix))
        recordings.sort(key=lambda r: r.updated_at, reverse=True)
        return recordings

    def get_recording(self, recording_id: str) -> Optional[Recording]:
        """Metadata for one stored recording, or None."""
        for recording in self.list_recordings():
            if recording.id == recording_id:
                return recording
        return None

    def delete_recording(self, recording_id: str) -> None:
        """
        Delete a stored recording.

        Raises:
            RecordingNotFoundError: If no script exists for the id
        """
        self._store.delete(recording_id)
        logger.info(f"Deleted recording {recording_id}")

    def get_state(self) -> Dict[str, Any]:
        """Snapshot of the recorder state."""
        return {
            "state": self._state.value,
            "is_recording": self._state != RecorderState.IDLE,
            "is_paused": self._state == RecorderState.PAUSED,
            "current_recording": self._recording.to_dict() if self._recording else None,
        }

    async def handle_capture_event(self, payload: str) -> None:
        """Receive one event from the in-page capture listener."""
        try:
            event = json.loads(payload)
            kind = ActionKind(event.get("kind"))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring malformed capture event: {e}")
            return

        locator = None
        if kind not in LOCATORLESS_KINDS:
            selector = event.get("selector")
            locator = ElementSelector.from_dict(selector if isinstance(selector, dict) else None)
            if locator.is_empty:
                logger.debug(f"Ignoring {kind.value} event without a usable selector")
                return

        value = event.get("value")
        await self.record_action(kind, locator, str(value) if value is not None else None)

    async def _install_listener(self, page: IPageExecutor) -> None:
        await page.expose_function(BINDING_NAME, self.handle_capture_event)
        await page.run_script(CAPTURE_SCRIPT)
        page.add_load_listener(self._reinstall_after_load)

    async def _uninstall_listener(self, page: IPageExecutor) -> None:
        page.remove_load_listener(self._reinstall_after_load)
        try:
            await page.run_script(UNINSTALL_SCRIPT)
        except Exception as e:
            logger.warning(f"Could not remove capture listener: {e}")

    async def _reinstall_after_load(self) -> None:
        """A full navigation wipes the listener; put it back while a recording is current."""
        if self._state == RecorderState.IDLE or not self._page:
            return
        try:
            await self._page.run_script(CAPTURE_SCRIPT)
        except Exception as e:
            logger.debug(f"Capture listener re-injection failed: {e}")

    def _append(self, action: RecordedAction) -> None:
        assert self._recording is not None
        self._recording.actions.append(action)
        logger.debug(f"Recorded: {action.kind.value} -> {action.locator or action.description}")

        for callback in self._on_action_callbacks:
            try:
                callback(action)
            except Exception as e:
                logger.warning(f"Action callback error: {e}")

    def _reset(self) -> None:
        self._state = RecorderState.IDLE
        self._recording = None
        self._page = None
