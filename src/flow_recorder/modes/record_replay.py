"""
Record & Replay Mode - The operation surface over recorder and replayer.

This mode allows callers to:
1. Start, pause, resume and stop recording browser actions
2. Feed single actions and manual steps into the current recording
3. List, inspect and delete stored recordings
4. Replay a stored recording and steer the replay while it runs
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from flow_recorder.exceptions import FlowRecorderError
from flow_recorder.interfaces.page import IPageExecutor
from flow_recorder.modes.base import (
    IInteractionMode,
    ModeConfig,
    ModeResult,
    ModeType,
)
from flow_recorder.recorder.models import ActionKind, ElementSelector
from flow_recorder.recorder.recorder import ActionRecorder
from flow_recorder.recorder.store import ScriptStore
from flow_recorder.replayer.replayer import ActionReplayer, ReplayOptions, StatusCallback

logger = logging.getLogger(__name__)


class RecordReplayMode(IInteractionMode):
    """
    Record & Replay interaction mode.

    State errors from the recorder and replayer come back as failed
    results, never as exceptions.

    Usage:
        >>> mode = RecordReplayMode()
        >>> await mode.start(executor, ModeConfig(ModeType.RECORD_REPLAY))
        >>>
        >>> # Start recording
        >>> result = await mode.execute({"action": "record", "name": "my_flow"})
        >>>
        >>> # User performs actions in browser...
        >>>
        >>> # Stop and persist the script
        >>> result = await mode.execute({"action": "stop"})
        >>> recording_id = result.data["recording"]["id"]
        >>>
        >>> # Replay it later
        >>> result = await mode.execute({"action": "replay", "recording_id": recording_id})
    """

    @property
    def mode_type(self) -> ModeType:
        return ModeType.RECORD_REPLAY

    @property
    def name(self) -> str:
        return "Record & Replay"

    @property
    def description(self) -> str:
        return "Record browser actions as Playwright scripts and replay them"

    def __init__(
        self,
        recorder: Optional[ActionRecorder] = None,
        replayer: Optional[ActionReplayer] = None,
    ):
        """
        Initialize the mode.

        Args:
            recorder: Recorder to drive (built from config options on start() if None)
            replayer: Replayer to drive (built from config options on start() if None)
        """
        self._page: Optional[IPageExecutor] = None
        self._config: Optional[ModeConfig] = None
        self._is_running = False
        self._recorder = recorder
        self._replayer = replayer
        self._status_callback: Optional[StatusCallback] = None
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[ModeResult]]] = {
            "record": self._start_recording,
            "pause": self._pause_recording,
            "resume": self._resume_recording,
            "stop": self._stop_recording,
            "record_action": self._record_action,
            "manual_step": self._add_manual_step,
            "list": self._list_recordings,
            "get": self._get_recording,
            "delete": self._delete_recording,
            "replay": self._start_replay,
            "replay_pause": self._pause_replay,
            "replay_resume": self._resume_replay,
            "replay_stop": self._stop_replay,
            "replay_status": self._replay_status,
            "status": self._get_status,
        }

    @property
    def recorder(self) -> Optional[ActionRecorder]:
        return self._recorder

    @property
    def replayer(self) -> Optional[ActionReplayer]:
        return self._replayer

    async def start(
        self,
        page: IPageExecutor,
        config: ModeConfig,
        **kwargs: Any,
    ) -> None:
        """
        Start the record/replay mode.

        Args:
            page: Page executor to record from and replay into
            config: Mode configuration. Recognized options: recordings_dir,
                script_suffix, capture_screenshots, pause_on_manual_step
            **kwargs: session (ISessionPersistence), wait_strategy
                (WaitStrategy), on_status_change (replay status callback)
        """
        self._page = page
        self._config = config
        options = config.options

        if self._recorder is None or self._replayer is None:
            store = ScriptStore(
                options.get("recordings_dir", "./recordings"),
                options.get("script_suffix", ".spec.ts"),
            )
            if self._recorder is None:
                self._recorder = ActionRecorder(
                    store,
                    capture_screenshots=options.get("capture_screenshots", True),
                )
            if self._replayer is None:
                self._replayer = ActionReplayer(
                    store,
                    session=kwargs.get("session"),
                    wait_strategy=kwargs.get("wait_strategy"),
                    pause_on_manual_step=options.get("pause_on_manual_step", False),
                )

        self._status_callback = kwargs.get("on_status_change")
        self._is_running = True
        logger.info("Record & Replay mode started")

    async def execute(self, input_data: Any) -> ModeResult:
        """
        Execute a record/replay operation.

        Args:
            input_data: Command dict with an 'action' key and its arguments:
                - record: name, description
                - record_action: kind, locator (dict), value, description
                - manual_step: description
                - get, delete: recording_id
                - replay: recording_id, speed, restore_session
                - pause, resume, stop, list, replay_pause, replay_resume,
                  replay_stop, replay_status, status: no arguments

        Returns:
            Execution result
        """
        if not self._is_running:
            return ModeResult(
                success=False,
                error="Mode not started. Call start() first.",
            )

        if not isinstance(input_data, dict):
            return ModeResult(
                success=False,
                error="Input must be a dict with 'action' key.",
            )

        action = str(input_data.get("action", "")).lower()
        handler = self._handlers.get(action)
        if handler is None:
            return ModeResult(
                success=False,
                error=f"Unknown action: {action}. Valid actions: {', '.join(self._handlers)}",
            )

        try:
            return await handler(input_data)
        except FlowRecorderError as e:
            logger.info(f"{action} rejected: {e.message}")
            return ModeResult(success=False, error=e.message)
        except Exception as e:
            logger.error(f"{action} failed: {e}")
            return ModeResult(success=False, error=str(e))

    async def _start_recording(self, data: Dict[str, Any]) -> ModeResult:
        recording = await self._recorder.start(
            self._page,
            name=data.get("name"),
            description=data.get("description"),
        )
        return ModeResult(
            success=True,
            data={
                "status": "recording",
                "recording": recording.to_dict(),
                "message": "Recording started. Perform actions in the browser, then stop.",
            },
        )

    async def _pause_recording(self, data: Dict[str, Any]) -> ModeResult:
        self._recorder.pause()
        return ModeResult(success=True, data={"status": "paused"})

    async def _resume_recording(self, data: Dict[str, Any]) -> ModeResult:
        self._recorder.resume()
        return ModeResult(success=True, data={"status": "recording"})

    async def _stop_recording(self, data: Dict[str, Any]) -> ModeResult:
        recording = await self._recorder.stop()
        return ModeResult(
            success=True,
            steps_executed=len(recording.actions),
            data={
                "status": "stopped",
                "recording": recording.to_dict(),
            },
        )

    async def _record_action(self, data: Dict[str, Any]) -> ModeResult:
        kind = ActionKind(data.get("kind"))
        locator = ElementSelector.from_dict(data["locator"]) if data.get("locator") else None
        action = await self._recorder.record_action(
            kind,
            locator=locator,
            value=data.get("value"),
            description=data.get("description"),
        )
        return ModeResult(
            success=True,
            steps_executed=1 if action else 0,
            data={"recorded": action is not None, "action": action.to_dict() if action else None},
        )

    async def _add_manual_step(self, data: Dict[str, Any]) -> ModeResult:
        action = await self._recorder.add_manual_step(data.get("description", ""))
        return ModeResult(success=True, steps_executed=1, data={"action": action.to_dict()})

    async def _list_recordings(self, data: Dict[str, Any]) -> ModeResult:
        recordings = self._recorder.list_recordings()
        return ModeResult(
            success=True,
            data={"recordings": [r.to_dict() for r in recordings]},
        )

    async def _get_recording(self, data: Dict[str, Any]) -> ModeResult:
        recording_id = data.get("recording_id", "")
        recording = self._recorder.get_recording(recording_id)
        if recording is None:
            return ModeResult(success=False, error=f"Recording not found: {recording_id}")
        return ModeResult(success=True, data={"recording": recording.to_dict()})

    async def _delete_recording(self, data: Dict[str, Any]) -> ModeResult:
        recording_id = data.get("recording_id", "")
        self._recorder.delete_recording(recording_id)
        return ModeResult(success=True, data={"deleted": recording_id})

    async def _start_replay(self, data: Dict[str, Any]) -> ModeResult:
        options = ReplayOptions(
            recording_id=data.get("recording_id", ""),
            speed=data.get("speed"),
            restore_session=bool(data.get("restore_session", False)),
        )
        report = await self._replayer.start_replay(self._page, options, self._status_callback)

        error = None
        if report.stopped:
            error = "Replay stopped"
        elif report.failed:
            error = f"{report.failed} of {report.executed} commands failed"

        return ModeResult(
            success=report.success,
            steps_executed=report.executed,
            data={"report": report.to_dict()},
            error=error,
        )

    async def _pause_replay(self, data: Dict[str, Any]) -> ModeResult:
        self._replayer.pause()
        return ModeResult(success=True, data=self._replayer.get_status().to_dict())

    async def _resume_replay(self, data: Dict[str, Any]) -> ModeResult:
        self._replayer.resume()
        return ModeResult(success=True, data=self._replayer.get_status().to_dict())

    async def _stop_replay(self, data: Dict[str, Any]) -> ModeResult:
        self._replayer.stop()
        return ModeResult(success=True, data=self._replayer.get_status().to_dict())

    async def _replay_status(self, data: Dict[str, Any]) -> ModeResult:
        return ModeResult(success=True, data=self._replayer.get_status().to_dict())

    async def _get_status(self, data: Dict[str, Any]) -> ModeResult:
        return ModeResult(
            success=True,
            data={
                "recorder": self._recorder.get_state(),
                "replay": self._replayer.get_status().to_dict(),
            },
        )

    async def stop(self) -> None:
        """Stop the mode, finalizing any recording in progress."""
        if self._recorder and self._recorder.is_recording:
            try:
                await self._recorder.stop()
            except FlowRecorderError as e:
                logger.error(f"Could not finalize recording: {e}")
        if self._replayer:
            self._replayer.stop()

        self._is_running = False
        self._page = None
        logger.info("Record & Replay mode stopped")
