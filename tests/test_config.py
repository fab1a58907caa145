from datetime import datetime
from pathlib import Path

import pytest

from easyshot.shared.config import (
    DEFAULT_POLL_INTERVAL_MS,
    MIN_POLL_INTERVAL_MS,
    Settings,
    parse_poll_interval,
)


def _set_tmp_dirs(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("EASYSHOT_SAVE_LOCATION", str(tmp_path / "shots"))
    monkeypatch.setenv("EASYSHOT_CACHE_FILE", str(tmp_path / "cache" / "rec"))


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("500ms", 500),
        ("2s", 2000),
        ("1m", 60_000),
        ("1500", 1500),
        (250, 250),
        ("0.5s", 500),
        ("10ms", MIN_POLL_INTERVAL_MS),
        ("", DEFAULT_POLL_INTERVAL_MS),
        ("soon", DEFAULT_POLL_INTERVAL_MS),
        (None, DEFAULT_POLL_INTERVAL_MS),
    ],
)
def test_parse_poll_interval(raw, expected) -> None:
    assert parse_poll_interval(raw) == expected


def test_settings_defaults(monkeypatch, tmp_path) -> None:
    _set_tmp_dirs(monkeypatch, tmp_path)
    for name in (
        "EASYSHOT_CLEANUP_DAYS",
        "EASYSHOT_WAYBAR_POLL_INTERVAL",
        "EASYSHOT_OBS_PORT",
        "EASYSHOT_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.debug is False
    assert settings.cleanup_days == 3
    assert settings.cleanup_interval == 86400
    assert settings.client_timeout == 30.0
    assert settings.server_io_timeout == 10.0
    assert settings.obs_port == 4444
    assert settings.waybar_poll_interval == 1.0


def test_settings_read_environment(monkeypatch, tmp_path) -> None:
    _set_tmp_dirs(monkeypatch, tmp_path)
    monkeypatch.setenv("EASYSHOT_CLEANUP_DAYS", "7")
    monkeypatch.setenv("EASYSHOT_WAYBAR_POLL_INTERVAL", "250ms")
    monkeypatch.setenv("EASYSHOT_DEBUG", "true")
    monkeypatch.setenv("EASYSHOT_SOCKET_PATH", str(tmp_path / "s.sock"))

    settings = Settings()

    assert settings.cleanup_days == 7
    assert settings.cleanup_age_seconds == 7 * 86400
    assert settings.waybar_poll_interval_ms == 250
    assert settings.debug is True
    assert settings.socket_path == tmp_path / "s.sock"


def test_socket_path_defaults_to_runtime_dir(monkeypatch, tmp_path) -> None:
    _set_tmp_dirs(monkeypatch, tmp_path)
    monkeypatch.delenv("EASYSHOT_SOCKET_PATH", raising=False)
    monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path / "run"))

    assert Settings().socket_path == tmp_path / "run" / "sway-easyshot.sock"


def test_directories_created_on_load(monkeypatch, tmp_path) -> None:
    _set_tmp_dirs(monkeypatch, tmp_path)

    Settings()

    assert (tmp_path / "shots").is_dir()
    assert (tmp_path / "cache").is_dir()


def test_home_is_expanded(monkeypatch, tmp_path) -> None:
    _set_tmp_dirs(monkeypatch, tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("EASYSHOT_ICON_DIR", "~/icons")

    settings = Settings()

    assert settings.icon_dir == tmp_path / "icons"
    assert settings.screenshot_icon == str(tmp_path / "icons" / "screenshot.svg")


def test_generated_names(settings) -> None:
    now = datetime(2026, 3, 4, 5, 6, 7)

    assert settings.generate_filename(now) == settings.save_location / "Screenshot_2026-03-04-05:06.07.png"
    assert settings.generate_recording_base(now) == settings.save_location / "recording-20260304-05h06"
    assert isinstance(settings.generate_recording_base(now), Path)
