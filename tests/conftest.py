import sys
import os
import shutil
import tempfile
from pathlib import Path

import pytest


_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT))

# The global settings object creates its directories on import.
_DEFAULT_TEST_DATA_DIR = tempfile.mkdtemp(prefix="easyshot_test_data_")
os.environ.setdefault("EASYSHOT_SAVE_LOCATION", str(Path(_DEFAULT_TEST_DATA_DIR) / "captures"))
os.environ.setdefault("EASYSHOT_CACHE_FILE", str(Path(_DEFAULT_TEST_DATA_DIR) / "cache" / "recording"))
os.environ.setdefault("EASYSHOT_ICON_DIR", str(Path(_DEFAULT_TEST_DATA_DIR) / "icons"))
os.environ.setdefault("EASYSHOT_SOCKET_PATH", str(Path(_DEFAULT_TEST_DATA_DIR) / "easyshot.sock"))

from easyshot.server.state import SharedState
from easyshot.shared.config import Settings


@pytest.fixture
def short_tmp():
    """A short temp dir; AF_UNIX paths are limited to ~108 bytes."""
    path = Path(tempfile.mkdtemp(prefix="es-"))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def settings(tmp_path, short_tmp) -> Settings:
    return Settings(
        save_location=tmp_path / "captures",
        cache_file=tmp_path / "cache" / "recording",
        icon_dir=tmp_path / "icons",
        socket_path=short_tmp / "d.sock",
        cleanup_interval=3600,
        server_io_timeout=2.0,
        client_timeout=5.0,
        recorder_stop_timeout=5.0,
    )


@pytest.fixture
def state() -> SharedState:
    return SharedState()

