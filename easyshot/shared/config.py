"""Configuration management for sway-easyshot using pydantic-settings."""

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

MIN_POLL_INTERVAL_MS = 100
DEFAULT_POLL_INTERVAL_MS = 1000

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m)?\s*$")


def _default_socket_path() -> Path:
    runtime_dir = os.environ.get("XDG_RUNTIME_DIR") or f"/run/user/{os.getuid()}"
    return Path(runtime_dir) / "sway-easyshot.sock"


def parse_poll_interval(value: Union[str, int, float, None]) -> int:
    """Parse a poll interval into milliseconds.

    Accepts ``500ms``, ``2s``, ``1m`` or a bare number of milliseconds.
    Unparseable values fall back to the default; anything below the floor
    is raised to it.
    """
    if value is None or value == "":
        return DEFAULT_POLL_INTERVAL_MS
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        millis = float(value)
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            return DEFAULT_POLL_INTERVAL_MS
        number = float(match.group(1))
        unit = match.group(2) or "ms"
        millis = number * {"ms": 1, "s": 1000, "m": 60_000}[unit]
    return max(MIN_POLL_INTERVAL_MS, int(millis))


class Settings(BaseSettings):
    """Application settings with automatic save directory creation.

    Settings can be configured via environment variables:
    - EASYSHOT_DEBUG: Enable debug mode (verbose logging)
    - EASYSHOT_SAVE_LOCATION: Directory for screenshots and recordings
    - EASYSHOT_CACHE_FILE: File holding the base name of the active recording
    - EASYSHOT_CLEANUP_DAYS: Delete captures older than this many days
    - EASYSHOT_CLEANUP_INTERVAL: Seconds between cleanup runs
    - EASYSHOT_AI_MODEL: aichat model used to suggest screenshot names
    - EASYSHOT_ICON_DIR: Directory holding notification icons
    - EASYSHOT_SOCKET_PATH: Unix socket the daemon listens on
    - EASYSHOT_WAYBAR_POLL_INTERVAL: Status poll interval (500ms, 2s, ...)
    - EASYSHOT_CLIENT_TIMEOUT: Client-side deadline for one request
    - EASYSHOT_SERVER_IO_TIMEOUT: Daemon-side deadline for request read/response write
    - EASYSHOT_RECORDER_STOP_TIMEOUT: Seconds to wait for the recorder to exit on stop
    - EASYSHOT_OBS_HOST / EASYSHOT_OBS_PORT: OBS websocket endpoint for obs-cli
    - EASYSHOT_OBS_PASSWORD_ENTRY: pass(1) entry holding the OBS password
    """

    debug: bool = Field(default=False, alias="EASYSHOT_DEBUG")
    save_location: Path = Field(
        default_factory=lambda: Path.home() / "Downloads" / "Screenshots",
        alias="EASYSHOT_SAVE_LOCATION",
        description="Directory for screenshots and recordings",
    )
    cache_file: Path = Field(
        default_factory=lambda: Path.home() / ".cache" / ".sway-easyshot-recording",
        alias="EASYSHOT_CACHE_FILE",
        description="Holds the base name of the current recording across start/stop calls",
    )
    cleanup_days: int = Field(
        default=3,
        alias="EASYSHOT_CLEANUP_DAYS",
        description="Captures older than this many days are deleted",
    )
    cleanup_interval: int = Field(
        default=24 * 60 * 60,
        alias="EASYSHOT_CLEANUP_INTERVAL",
        description="Seconds between cleanup runs (default: 86400 = 24 hours)",
    )
    ai_model_image: str = Field(
        default="gemini:gemini-2.5-flash-image",
        alias="EASYSHOT_AI_MODEL",
        description="aichat model used to suggest screenshot file names",
    )
    icon_dir: Path = Field(
        default_factory=lambda: Path.home() / ".local" / "share" / "icons",
        alias="EASYSHOT_ICON_DIR",
    )
    socket_path: Path = Field(
        default_factory=_default_socket_path,
        alias="EASYSHOT_SOCKET_PATH",
    )
    waybar_poll_interval_ms: int = Field(
        default=DEFAULT_POLL_INTERVAL_MS,
        alias="EASYSHOT_WAYBAR_POLL_INTERVAL",
        description="Waybar --follow poll interval in milliseconds (minimum 100)",
    )
    client_timeout: float = Field(default=30.0, alias="EASYSHOT_CLIENT_TIMEOUT")
    server_io_timeout: float = Field(
        default=10.0,
        alias="EASYSHOT_SERVER_IO_TIMEOUT",
        description="Deadline for reading a request and writing its response",
    )
    recorder_stop_timeout: float = Field(default=5.0, alias="EASYSHOT_RECORDER_STOP_TIMEOUT")
    obs_host: str = Field(default="127.0.0.1", alias="EASYSHOT_OBS_HOST")
    obs_port: int = Field(default=4444, alias="EASYSHOT_OBS_PORT")
    obs_password_entry: str = Field(default="obs/password", alias="EASYSHOT_OBS_PASSWORD_ENTRY")

    @field_validator("save_location", "cache_file", "icon_dir", "socket_path", mode="before")
    @classmethod
    def expand_path(cls, v: Optional[Union[str, Path]]) -> Optional[Path]:
        if v is None:
            return None
        return Path(str(v)).expanduser()

    @field_validator("waybar_poll_interval_ms", mode="before")
    @classmethod
    def validate_poll_interval(cls, v: Union[str, int, float, None]) -> int:
        return parse_poll_interval(v)

    model_config = {
        "env_prefix": "",
        "populate_by_name": True,
        "extra": "ignore",
        "env_file": ["easyshot.env", ".env"],
        "env_file_encoding": "utf-8",
    }

    @property
    def screenshot_icon(self) -> str:
        return str(self.icon_dir / "screenshot.svg")

    @property
    def recording_start_icon(self) -> str:
        return str(self.icon_dir / "record-start.svg")

    @property
    def recording_stop_icon(self) -> str:
        return str(self.icon_dir / "record-stop.svg")

    @property
    def recording_pause_icon(self) -> str:
        return str(self.icon_dir / "record-pause.svg")

    @property
    def cleanup_age_seconds(self) -> int:
        return self.cleanup_days * 24 * 60 * 60

    @property
    def waybar_poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.waybar_poll_interval_ms / 1000.0

    def generate_filename(self, now: Optional[datetime] = None) -> Path:
        """Timestamped path for a new screenshot."""
        now = now or datetime.now()
        return self.save_location / f"Screenshot_{now.strftime('%Y-%m-%d-%H:%M.%S')}.png"

    def generate_recording_base(self, now: Optional[datetime] = None) -> Path:
        """Timestamped base path (no extension) for a new recording."""
        now = now or datetime.now()
        return self.save_location / f"recording-{now.strftime('%Y%m%d-%Hh%M')}"

    def ensure_directories(self) -> None:
        """Create the save and cache directories if they don't exist."""
        for directory in (self.save_location, self.cache_file.parent):
            directory.mkdir(parents=True, exist_ok=True)

    @model_validator(mode="after")
    def _ensure_dirs_on_init(self) -> "Settings":
        self.ensure_directories()
        return self


# Global settings instance - directories are created on import
settings = Settings()
