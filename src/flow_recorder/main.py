"""
Flow Recorder - CLI Entry Point.

Configuration Priority:
    1. CLI arguments (--speed, --dir, etc.)
    2. Environment variables (FLOW_RECORDER__REPLAY__SPEED, etc.)
    3. Config file (flow-recorder.yaml)

Usage:
    flow-recorder record https://example.com --name checkout
    flow-recorder replay 4d6870eb-c94b-42f3-9a1f-e342420cd298 --speed 2
    flow-recorder list
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from flow_recorder import __version__
from flow_recorder.browsers.playwright_browser import PlaywrightBrowser
from flow_recorder.config import Settings, get_settings, load_config
from flow_recorder.exceptions import FlowRecorderError, RecordingNotFoundError
from flow_recorder.modes.base import ModeConfig, ModeType
from flow_recorder.modes.record_replay import RecordReplayMode
from flow_recorder.recorder.recorder import ActionRecorder
from flow_recorder.recorder.script_generator import format_timestamp
from flow_recorder.recorder.store import ScriptStore
from flow_recorder.replayer.replayer import ActionReplayer, ReplayState, ReplayStatus
from flow_recorder.replayer.waits import FixedDelayWait, PollingWait, WaitStrategy
from flow_recorder.session.manager import CookieSessionManager
from flow_recorder.utils.logging import setup_logging

# Create the CLI app
app = typer.Typer(
    name="flow-recorder",
    help="Record browser workflows as Playwright scripts and replay them",
    add_completion=False,
)

console = Console()

RECORD_HELP = (
    "[dim]Enter[/dim] stop and save   "
    "[dim]p[/dim] pause/resume   "
    "[dim]m <text>[/dim] add manual step"
)


def _load_settings(config: Optional[Path], verbose: bool) -> Settings:
    settings = load_config(config_path=config) if config else get_settings()
    level = "DEBUG" if verbose else settings.logging.level
    setup_logging(level, settings.logging.file, settings.logging.json_format)
    return settings


def _store(settings: Settings, directory: Optional[Path] = None) -> ScriptStore:
    return ScriptStore(
        directory or settings.recorder.recordings_dir,
        settings.recorder.script_suffix,
    )


def _wait_strategy(settings: Settings, name: str, speed: float) -> WaitStrategy:
    if name == "poll":
        return PollingWait(settings.replay.poll_timeout_ms, settings.replay.poll_interval_ms)
    return FixedDelayWait(settings.replay.navigate_delay_ms, settings.replay.action_delay_ms, speed)


def _launch_options(settings: Settings, visible: Optional[bool]) -> dict:
    headless = settings.browser.headless if visible is None else not visible
    return {
        "headless": headless,
        "browser_type": settings.browser.browser_type,
        "channel": settings.browser.channel,
        "viewport": {
            "width": settings.browser.viewport_width,
            "height": settings.browser.viewport_height,
        },
        "timeout_ms": settings.browser.timeout_ms,
    }


@app.command()
def record(
    url: str = typer.Argument(..., help="URL to start recording on"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Recording name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Free-text description"),
    directory: Optional[Path] = typer.Option(None, "--dir", help="Recordings directory"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """
    Open a browser and record what you do in it.

    Examples:
        flow-recorder record https://example.com --name checkout
    """
    settings = _load_settings(config, verbose)

    console.print(Panel.fit(
        f"[bold blue]Flow Recorder[/bold blue]\n"
        f"[dim]Start URL:[/dim] {url}\n"
        f"[dim]Name:[/dim] {name or 'auto'}",
        border_style="blue",
    ))

    asyncio.run(_record_async(settings, url, name, description, directory))


async def _record_async(
    settings: Settings,
    url: str,
    name: Optional[str],
    description: Optional[str],
    directory: Optional[Path],
) -> None:
    browser = PlaywrightBrowser()
    store = _store(settings, directory)
    recorder = ActionRecorder(store, capture_screenshots=settings.recorder.capture_manual_screenshots)
    mode = RecordReplayMode(recorder=recorder, replayer=ActionReplayer(store))
    recorder.on_action(lambda action: console.print(
        f"  [green]●[/green] {action.kind.value} [dim]{action.locator.to_dict() if action.locator else ''}[/dim]"
    ))

    try:
        executor = await browser.launch(**_launch_options(settings, visible=True))
        await executor.load_url(url)
        await mode.start(executor, ModeConfig(ModeType.RECORD_REPLAY))

        result = await mode.execute({"action": "record", "name": name, "description": description})
        if not result.success:
            console.print(f"[red]✗ {result.error}[/red]")
            raise typer.Exit(1)

        console.print(f"[green]✓ Recording[/green]   {RECORD_HELP}")
        while True:
            line = (await asyncio.to_thread(console.input, "")).strip()
            if not line:
                break
            if line == "p":
                paused = recorder.get_state()["is_paused"]
                result = await mode.execute({"action": "resume" if paused else "pause"})
                console.print(f"[yellow]{'Resumed' if paused else 'Paused'}[/yellow]")
            elif line.startswith("m"):
                result = await mode.execute({"action": "manual_step", "description": line[1:].strip()})
                console.print("[cyan]Manual step added[/cyan]")
            else:
                console.print(RECORD_HELP)
                continue
            if not result.success:
                console.print(f"[red]✗ {result.error}[/red]")

        result = await mode.execute({"action": "stop"})
        if not result.success:
            console.print(f"[red]✗ {result.error}[/red]")
            raise typer.Exit(1)

        saved = result.data["recording"]
        console.print(
            f"[green]✓ Saved '{saved['name']}'[/green] "
            f"({result.steps_executed} actions) -> {store.path_for(saved['id'])}"
        )

    except FlowRecorderError as e:
        console.print(f"\n[red]✗ Error: {e}[/red]")
        raise typer.Exit(1)

    finally:
        await mode.stop()
        await browser.close()


@app.command()
def replay(
    recording_id: str = typer.Argument(..., help="Recording id to replay"),
    speed: Optional[float] = typer.Option(None, "--speed", "-s", help="Playback speed multiplier"),
    wait: Optional[str] = typer.Option(None, "--wait", "-w", help="Wait strategy: fixed or poll"),
    visible: Optional[bool] = typer.Option(None, "--visible/--headless", help="Show the browser"),
    pause_on_manual: Optional[bool] = typer.Option(
        None, "--pause-on-manual/--skip-manual", help="Stop at manual steps until Enter is pressed"
    ),
    restore_session: bool = typer.Option(False, "--restore-session", help="Restore saved cookies first"),
    directory: Optional[Path] = typer.Option(None, "--dir", help="Recordings directory"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """
    Replay a stored recording.

    Examples:
        flow-recorder replay 4d6870eb-... --visible --speed 2
    """
    settings = _load_settings(config, verbose)
    wait_name = wait or settings.replay.wait_strategy
    if wait_name not in ("fixed", "poll"):
        console.print(f"[red]✗ Unknown wait strategy: {wait_name}[/red]")
        raise typer.Exit(1)

    store = _store(settings, directory)
    recording = ActionRecorder(store).get_recording(recording_id)
    if recording is None:
        console.print(f"[red]✗ Recording not found: {recording_id}[/red]")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold blue]Flow Recorder[/bold blue]\n"
        f"[dim]Replaying:[/dim] {recording.name}\n"
        f"[dim]Target:[/dim] {recording.metadata.target_site or '-'}\n"
        f"[dim]Wait:[/dim] {wait_name}",
        border_style="blue",
    ))

    ok = asyncio.run(_replay_async(
        settings,
        store,
        recording_id,
        speed=speed or settings.replay.speed,
        wait_name=wait_name,
        visible=visible,
        pause_on_manual=settings.replay.pause_on_manual_step if pause_on_manual is None else pause_on_manual,
        restore_session=restore_session,
    ))
    if not ok:
        raise typer.Exit(1)


async def _replay_async(
    settings: Settings,
    store: ScriptStore,
    recording_id: str,
    speed: float,
    wait_name: str,
    visible: Optional[bool],
    pause_on_manual: bool,
    restore_session: bool,
) -> bool:
    browser = PlaywrightBrowser()
    mode = RecordReplayMode()

    def on_status(status: ReplayStatus) -> None:
        if status.state == ReplayState.MANUAL_STEP:
            console.print(f"[cyan]Manual step:[/cyan] {status.message}  [dim](Enter to continue)[/dim]")
            asyncio.ensure_future(_continue_after_input(mode))
        elif status.message:
            console.print(f"[dim]{status.state.value}: {status.message}[/dim]")

    try:
        executor = await browser.launch(**_launch_options(settings, visible))
        session = None
        if settings.session.save_after_replay or restore_session:
            session = CookieSessionManager(browser.context, settings.session.sessions_dir)

        mode = RecordReplayMode(
            replayer=ActionReplayer(
                store,
                session=session,
                wait_strategy=_wait_strategy(settings, wait_name, speed),
                pause_on_manual_step=pause_on_manual,
            ),
            recorder=ActionRecorder(store),
        )
        await mode.start(executor, ModeConfig(ModeType.RECORD_REPLAY), on_status_change=on_status)

        result = await mode.execute({
            "action": "replay",
            "recording_id": recording_id,
            "speed": speed,
            "restore_session": restore_session,
        })
        if result.data is None:
            console.print(f"[red]✗ {result.error}[/red]")
            return False

        _print_report(result.data["report"])
        if result.success:
            console.print("[green]✓ Replay completed[/green]")
        else:
            console.print(f"[yellow]⚠ {result.error}[/yellow]")
        return result.success

    except FlowRecorderError as e:
        console.print(f"\n[red]✗ Error: {e}[/red]")
        return False

    finally:
        await mode.stop()
        await browser.close()


async def _continue_after_input(mode: RecordReplayMode) -> None:
    await asyncio.to_thread(console.input, "")
    await mode.execute({"action": "replay_resume"})


def _print_report(report: dict) -> None:
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Line", width=5)
    table.add_column("Command", style="dim")
    table.add_column("Status", width=8)
    table.add_column("ms", justify="right", width=8)

    for r in report["results"]:
        status = "[green]ok[/green]" if r["success"] else "[red]failed[/red]"
        source = r["source"][:70] + ("..." if len(r["source"]) > 70 else "")
        table.add_row(str(r["line_number"]), source, status, f"{r['duration_ms']:.0f}")
        if r["error"]:
            table.add_row("", f"[red]{r['error']}[/red]", "", "")

    console.print(table)
    console.print(
        f"[dim]{report['succeeded']}/{report['total_commands']} succeeded, "
        f"{report['failed']} failed in {report['duration_seconds']:.1f}s[/dim]"
    )


@app.command("list")
def list_recordings(
    directory: Optional[Path] = typer.Option(None, "--dir", help="Recordings directory"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """List stored recordings, newest first."""
    settings = _load_settings(config, verbose)
    recordings = ActionRecorder(_store(settings, directory)).list_recordings()

    if not recordings:
        console.print("[yellow]No recordings found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Created", style="dim")
    table.add_column("Target site", style="dim")
    table.add_column("Manual", justify="right")

    for r in recordings:
        table.add_row(
            r.id,
            r.name,
            format_timestamp(r.created_at),
            r.metadata.target_site or "-",
            str(r.metadata.manual_steps),
        )
    console.print(table)


@app.command()
def show(
    recording_id: str = typer.Argument(..., help="Recording id"),
    directory: Optional[Path] = typer.Option(None, "--dir", help="Recordings directory"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """Show a recording's metadata and script."""
    settings = _load_settings(config, verbose)
    store = _store(settings, directory)
    recording = ActionRecorder(store).get_recording(recording_id)
    if recording is None:
        console.print(f"[red]✗ Recording not found: {recording_id}[/red]")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold]{recording.name}[/bold]\n"
        f"[dim]ID:[/dim] {recording.id}\n"
        f"[dim]Created:[/dim] {format_timestamp(recording.created_at)}\n"
        f"[dim]Description:[/dim] {recording.description or '-'}\n"
        f"[dim]Target site:[/dim] {recording.metadata.target_site or '-'}\n"
        f"[dim]Manual steps:[/dim] {recording.metadata.manual_steps}",
        border_style="blue",
    ))
    console.print(Syntax(store.read(recording_id), "typescript", line_numbers=True))


@app.command()
def delete(
    recording_id: str = typer.Argument(..., help="Recording id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    directory: Optional[Path] = typer.Option(None, "--dir", help="Recordings directory"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """Delete a stored recording."""
    settings = _load_settings(config, verbose)
    recorder = ActionRecorder(_store(settings, directory))

    if not yes and not typer.confirm(f"Delete recording {recording_id}?"):
        raise typer.Abort()

    try:
        recorder.delete_recording(recording_id)
    except RecordingNotFoundError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Deleted {recording_id}[/green]")


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]Flow Recorder[/bold] v{__version__}")


if __name__ == "__main__":
    app()
