"""
Settings - Pydantic models for type-safe configuration.

This module defines all configuration settings as Pydantic models,
providing validation, type hints, and automatic environment variable loading.

Example:
    >>> from flow_recorder.config import Settings, load_config
    >>> settings = load_config()  # Loads from env, yaml, and defaults
    >>> print(settings.replay.navigate_delay_ms)
    2000
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserSettings(BaseModel):
    """
    Browser settings used by the CLI host.
    
    Attributes:
        headless: Run browser in headless mode
        browser_type: Playwright browser to launch
        channel: Optional branded channel (chrome, msedge)
        timeout_ms: Default timeout for browser operations
        viewport_width: Browser viewport width in pixels
        viewport_height: Browser viewport height in pixels
    """
    headless: bool = False
    browser_type: Literal["chromium", "firefox", "webkit"] = "chromium"
    channel: Optional[str] = None
    timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    viewport_width: int = Field(default=1280, ge=320, le=3840)
    viewport_height: int = Field(default=720, ge=240, le=2160)


class RecorderSettings(BaseModel):
    """
    Recorder and script store settings.
    
    Attributes:
        recordings_dir: Directory holding one script file per recording
        script_suffix: File suffix for stored scripts
        capture_manual_screenshots: Attach a page capture to manual steps
    """
    recordings_dir: str = "./recordings"
    script_suffix: str = ".spec.ts"
    capture_manual_screenshots: bool = True


class ReplaySettings(BaseModel):
    """
    Replay pacing and behavior settings.
    
    Attributes:
        navigate_delay_ms: Settle time after a navigation
        action_delay_ms: Settle time after any other command
        wait_strategy: "fixed" sleeps, "poll" polls for readiness
        poll_timeout_ms: Upper bound for a single readiness poll
        poll_interval_ms: Delay between readiness checks
        pause_on_manual_step: Hand control to the operator at manual steps
        speed: Playback speed multiplier (2.0 halves every delay)
    """
    navigate_delay_ms: int = Field(default=2000, ge=0, le=60000)
    action_delay_ms: int = Field(default=500, ge=0, le=60000)
    wait_strategy: Literal["fixed", "poll"] = "fixed"
    poll_timeout_ms: int = Field(default=10000, ge=100, le=120000)
    poll_interval_ms: int = Field(default=100, ge=10, le=5000)
    pause_on_manual_step: bool = False
    speed: float = Field(default=1.0, gt=0.0, le=10.0)


class SessionSettings(BaseModel):
    """
    Session persistence settings.
    
    Attributes:
        sessions_dir: Directory for saved cookie sessions
        save_after_replay: Save cookies for the target site after a replay
    """
    sessions_dir: str = "./sessions"
    save_after_replay: bool = True


class LoggingSettings(BaseModel):
    """
    Logging configuration.
    
    Attributes:
        level: Log level
        file: Log file path (None for console only)
        json_format: Use JSON format for logs
    """
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: Optional[str] = None
    json_format: bool = False


class Settings(BaseSettings):
    """
    Root settings container - single source of truth for all configuration.
    
    Settings are loaded in this priority order (highest to lowest):
    1. Explicit values passed to constructor
    2. Environment variables (prefixed with FLOW_RECORDER__)
    3. Config file (YAML)
    4. Default values
    
    Example:
        >>> settings = Settings()  # Load from env vars
        >>> settings = Settings(replay=ReplaySettings(speed=2.0))  # Override
    """
    
    model_config = SettingsConfigDict(
        env_prefix="FLOW_RECORDER__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
    
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    recorder: RecorderSettings = Field(default_factory=RecorderSettings)
    replay: ReplaySettings = Field(default_factory=ReplaySettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    
    debug: bool = False
    
    def merge_with(self, overrides: dict) -> "Settings":
        """
        Create a new Settings instance with overrides applied.
        
        Args:
            overrides: Dictionary of values to override
            
        Returns:
            New Settings instance with overrides applied
        """
        current = self.model_dump()
        
        def deep_merge(base: dict, updates: dict) -> dict:
            for key, value in updates.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    deep_merge(base[key], value)
                else:
                    base[key] = value
            return base
        
        merged = deep_merge(current, overrides)
        return Settings(**merged)
