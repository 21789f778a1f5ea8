"""
Tests for the action replayer.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from flow_recorder.exceptions import AlreadyReplayingError, ReplayError, ScriptLoadError
from flow_recorder.replayer.replayer import ActionReplayer, ReplayOptions, ReplayState

SCRIPT = """import { test, expect } from '@playwright/test';

// Recording ID: rec-1
// Created: 2025-11-17T00:55:07.065Z

test('flow', async ({ page }) => {
  // Navigate to starting URL
  await page.goto('https://www.example.com/');

  await page.click('#missing');
  await page.click('#go');
  await page.fill('#q', 'hello');
  await page.keyboard.press('Enter'); // May trigger form submission
});
"""


@pytest.fixture
def script_store(store):
    store.write("rec-1", SCRIPT)
    return store


@pytest.fixture
def replayer(script_store, no_wait):
    return ActionReplayer(script_store, wait_strategy=no_wait)


def missing_element(code):
    """Fake run_script: '#missing' resolves to nothing, everything else works."""
    return '"#missing"' not in code


class TestReplay:
    """Test executing a script."""

    @pytest.mark.asyncio
    async def test_commands_drive_page(self, replayer, page):
        report = await replayer.start_replay(page, ReplayOptions("rec-1"))

        page.load_url.assert_awaited_once_with("https://www.example.com/")
        scripts = [call.args[0] for call in page.run_script.await_args_list]
        assert '"#go"' in scripts[1]
        assert "el.click()" in scripts[1]
        assert '"#q", "hello"' in scripts[2]
        assert "dispatchEvent(new Event('input'" in scripts[2]
        assert "dispatchEvent(new Event('change'" in scripts[2]
        assert report.total_commands == 5
        assert report.success is True
        assert replayer.state == ReplayState.COMPLETED

    @pytest.mark.asyncio
    async def test_best_effort_continuation(self, replayer, page):
        """A command whose locator cannot be resolved does not stop the replay."""
        page.run_script.side_effect = missing_element

        report = await replayer.start_replay(page, ReplayOptions("rec-1"))

        assert report.executed == 5
        assert report.failed == 1
        assert report.succeeded == 4
        assert report.success is False
        failed = next(r for r in report.results if not r.success)
        assert failed.command.line_number == 10
        assert "#missing" in failed.error
        assert replayer.state == ReplayState.COMPLETED

    @pytest.mark.asyncio
    async def test_enter_submits_form(self, replayer, page):
        """Enter on an element inside a form submits the form."""
        await replayer.start_replay(page, ReplayOptions("rec-1"))

        key_script = page.run_script.await_args_list[-1].args[0]
        assert '("Enter")' in key_script
        assert "el.form" in key_script
        assert "requestSubmit" in key_script
        assert "'keydown'" in key_script and "'keyup'" in key_script

    @pytest.mark.asyncio
    async def test_navigation_failure_is_recorded(self, replayer, page):
        page.load_url.side_effect = RuntimeError("net::ERR_NAME_NOT_RESOLVED")

        report = await replayer.start_replay(page, ReplayOptions("rec-1"))

        assert report.results[0].success is False
        assert report.executed == 5

    @pytest.mark.asyncio
    async def test_session_saved_for_target_host(self, script_store, no_wait, page):
        session = MagicMock()
        session.save_session = AsyncMock()
        replayer = ActionReplayer(script_store, session=session, wait_strategy=no_wait)

        await replayer.start_replay(page, ReplayOptions("rec-1"))

        session.save_session.assert_awaited_once_with("www.example.com")

    @pytest.mark.asyncio
    async def test_session_save_failure_is_not_fatal(self, script_store, no_wait, page):
        session = MagicMock()
        session.save_session = AsyncMock(side_effect=OSError("read-only"))
        replayer = ActionReplayer(script_store, session=session, wait_strategy=no_wait)

        report = await replayer.start_replay(page, ReplayOptions("rec-1"))

        assert report.success is True
        assert replayer.state == ReplayState.COMPLETED

    @pytest.mark.asyncio
    async def test_restore_session_before_commands(self, script_store, no_wait, page):
        session = MagicMock()
        session.restore_session = AsyncMock(return_value=True)
        session.save_session = AsyncMock()
        replayer = ActionReplayer(script_store, session=session, wait_strategy=no_wait)

        await replayer.start_replay(page, ReplayOptions("rec-1", restore_session=True))

        session.restore_session.assert_awaited_once_with("www.example.com")

    @pytest.mark.asyncio
    async def test_status_callback(self, replayer, page):
        states = []

        await replayer.start_replay(page, ReplayOptions("rec-1"), lambda s: states.append(s.state))

        assert states == [ReplayState.RUNNING, ReplayState.COMPLETED]

    @pytest.mark.asyncio
    async def test_wait_command_sleeps(self, store, page):
        store.write("waits", "await page.waitForTimeout(20);\n")
        replayer = ActionReplayer(store)

        report = await replayer.start_replay(page, ReplayOptions("waits", speed=2.0))

        assert report.success is True
        assert report.results[0].duration_ms >= 5


class TestScriptLoad:
    """Test failures before any command runs."""

    @pytest.mark.asyncio
    async def test_missing_script(self, replayer, page):
        with pytest.raises(ScriptLoadError) as exc_info:
            await replayer.start_replay(page, ReplayOptions("nope"))

        assert exc_info.value.recording_id == "nope"
        assert replayer.state == ReplayState.ERROR
        page.run_script.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_can_replay_after_error(self, replayer, page):
        with pytest.raises(ScriptLoadError):
            await replayer.start_replay(page, ReplayOptions("nope"))

        report = await replayer.start_replay(page, ReplayOptions("rec-1"))

        assert report.success is True


class TestControl:
    """Test pause, resume and stop."""

    @pytest.mark.asyncio
    async def test_stop_discards_remaining_commands(self, replayer, page):
        async def run_script(code):
            replayer.stop()
            return True

        page.run_script.side_effect = run_script

        report = await replayer.start_replay(page, ReplayOptions("rec-1"))

        assert report.stopped is True
        assert report.executed == 2
        assert report.success is False
        assert replayer.state == ReplayState.IDLE

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, replayer, page):
        states = []

        async def run_script(code):
            if replayer.state == ReplayState.RUNNING and ReplayState.PAUSED not in states:
                replayer.pause()
                asyncio.get_running_loop().call_soon(replayer.resume)
            return True

        page.run_script.side_effect = run_script

        report = await replayer.start_replay(
            page, ReplayOptions("rec-1"), lambda s: states.append(s.state)
        )

        assert report.success is True
        assert states == [
            ReplayState.RUNNING,
            ReplayState.PAUSED,
            ReplayState.RUNNING,
            ReplayState.COMPLETED,
        ]

    @pytest.mark.asyncio
    async def test_already_replaying(self, store, no_wait, page):
        store.write("manual", "// MANUAL STEP: scan badge\nawait page.click('#go');\n")
        replayer = ActionReplayer(store, wait_strategy=no_wait, pause_on_manual_step=True)

        task = asyncio.create_task(replayer.start_replay(page, ReplayOptions("manual")))
        for _ in range(10):
            await asyncio.sleep(0)
            if replayer.state == ReplayState.MANUAL_STEP:
                break

        assert replayer.state == ReplayState.MANUAL_STEP
        with pytest.raises(AlreadyReplayingError):
            await replayer.start_replay(page, ReplayOptions("manual"))

        replayer.stop()
        report = await task
        assert report.stopped is True
        page.run_script.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_manual_step_waits_for_resume(self, store, no_wait, page):
        store.write("manual", "// MANUAL STEP: scan badge\nawait page.click('#go');\n")
        replayer = ActionReplayer(store, wait_strategy=no_wait, pause_on_manual_step=True)
        messages = []

        def on_status(status):
            messages.append((status.state, status.message))
            if status.state == ReplayState.MANUAL_STEP:
                asyncio.get_running_loop().call_soon(replayer.resume)

        report = await replayer.start_replay(page, ReplayOptions("manual"), on_status)

        assert (ReplayState.MANUAL_STEP, "scan badge") in messages
        assert report.success is True
        page.run_script.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_manual_step_skipped_by_default(self, store, no_wait, page):
        store.write("manual", "// MANUAL STEP: scan badge\nawait page.click('#go');\n")
        replayer = ActionReplayer(store, wait_strategy=no_wait)

        report = await replayer.start_replay(page, ReplayOptions("manual"))

        assert report.executed == 2
        assert replayer.state == ReplayState.COMPLETED

    def test_pause_when_idle_fails(self, replayer):
        with pytest.raises(ReplayError):
            replayer.pause()

    def test_resume_when_idle_fails(self, replayer):
        with pytest.raises(ReplayError):
            replayer.resume()

    def test_stop_when_idle_is_noop(self, replayer):
        replayer.stop()
        assert replayer.state == ReplayState.IDLE

    def test_initial_status(self, replayer):
        status = replayer.get_status()
        assert status.state == ReplayState.IDLE
        assert status.to_dict()["total_commands"] == 0

    @pytest.mark.asyncio
    async def test_cancelled_replay_returns_to_idle(self, store, no_wait, page):
        """Cancelling the replay task releases the replayer for the next run."""
        store.write("slow", "await page.waitForTimeout(5000);\n")
        store.write("quick", "await page.click('#go');\n")
        replayer = ActionReplayer(store, wait_strategy=no_wait)
        states = []

        task = asyncio.create_task(
            replayer.start_replay(page, ReplayOptions("slow"), lambda s: states.append(s.state))
        )
        await asyncio.sleep(0.05)
        assert replayer.state == ReplayState.RUNNING

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert replayer.state == ReplayState.IDLE
        assert replayer.is_active is False
        assert states[-1] == ReplayState.IDLE

        report = await replayer.start_replay(page, ReplayOptions("quick"))
        assert report.success is True
