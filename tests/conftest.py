"""
Pytest configuration and fixtures.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def settings():
    """Provide test settings."""
    from flow_recorder.config import Settings, BrowserSettings, ReplaySettings

    return Settings(
        browser=BrowserSettings(headless=True),
        replay=ReplaySettings(navigate_delay_ms=0, action_delay_ms=0),
    )


@pytest.fixture
def page():
    """Provide a fake page executor; every script call succeeds."""
    page = MagicMock()
    page.run_script = AsyncMock(return_value=True)
    page.load_url = AsyncMock()
    page.current_url = AsyncMock(return_value="https://example.com/")
    page.capture_page = AsyncMock(return_value=b"\x89PNG")
    page.expose_function = AsyncMock()
    return page


@pytest.fixture
def store(tmp_path):
    """Provide a script store in a temporary directory."""
    from flow_recorder.recorder.store import ScriptStore

    return ScriptStore(tmp_path / "recordings")


@pytest.fixture
def no_wait():
    """Wait strategy that never sleeps."""
    from flow_recorder.replayer.waits import FixedDelayWait

    return FixedDelayWait(navigate_ms=0, action_ms=0)
