"""CleanupWorker: age-based deletion in the save directory."""

import os
import time
from unittest.mock import patch

from easyshot.server.retention import CleanupWorker

DAY = 24 * 60 * 60


def _touch(path, age_seconds):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x")
    stamp = time.time() - age_seconds
    os.utime(path, (stamp, stamp))
    return path


class TestRunOnce:
    def test_deletes_only_expired_files(self, settings):
        old = _touch(settings.save_location / "Screenshot_old.png", 4 * DAY)
        fresh = _touch(settings.save_location / "Screenshot_new.png", 1 * DAY)

        deleted = CleanupWorker(settings).run_once()

        assert deleted == 1
        assert not old.exists()
        assert fresh.exists()

    def test_walks_subdirectories(self, settings):
        nested = _touch(settings.save_location / "2025" / "recording-old.mp4", 10 * DAY)

        CleanupWorker(settings).run_once()

        assert not nested.exists()
        assert (settings.save_location / "2025").is_dir()

    def test_missing_directory(self, settings, tmp_path):
        settings.save_location = tmp_path / "does-not-exist"

        assert CleanupWorker(settings).run_once() == 0

    def test_respects_configured_days(self, settings):
        settings.cleanup_days = 10
        kept = _touch(settings.save_location / "a.png", 4 * DAY)

        assert CleanupWorker(settings).run_once() == 0
        assert kept.exists()

    def test_unlink_errors_are_not_fatal(self, settings):
        _touch(settings.save_location / "a.png", 4 * DAY)
        _touch(settings.save_location / "b.png", 4 * DAY)

        with patch("pathlib.Path.unlink", side_effect=PermissionError("read-only")):
            assert CleanupWorker(settings).run_once() == 0


def test_worker_runs_immediately_and_stops(settings):
    old = _touch(settings.save_location / "a.png", 4 * DAY)
    worker = CleanupWorker(settings)

    worker.start()
    deadline = time.time() + 5
    while old.exists() and time.time() < deadline:
        time.sleep(0.01)
    worker.stop()
    worker.join(timeout=5)

    assert not old.exists()
    assert not worker.is_alive()
