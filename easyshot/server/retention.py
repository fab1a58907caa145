"""Cleanup worker that deletes old captures from the save directory."""

import logging
import threading
import time
from pathlib import Path
from typing import Optional

from easyshot.shared.config import Settings

logger = logging.getLogger(__name__)


class CleanupWorker(threading.Thread):
    """Background daemon that periodically deletes expired captures.

    Any regular file below ``settings.save_location`` whose modification time
    is older than ``settings.cleanup_days`` is removed. Runs once at startup
    and then every ``settings.cleanup_interval`` seconds (default 24h).
    """

    def __init__(self, settings: Settings):
        super().__init__(daemon=True, name="CleanupWorker")
        self.settings = settings
        self._stop_event = threading.Event()

    def stop(self):
        """Signal the worker to stop."""
        logger.info("CleanupWorker stop signal received")
        self._stop_event.set()

    def run(self):
        logger.info(
            "CleanupWorker started (dir=%s, max_age=%sd, interval=%ss)",
            self.settings.save_location,
            self.settings.cleanup_days,
            self.settings.cleanup_interval,
        )
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                logger.error("Cleanup error: %s", e)

            self._stop_event.wait(self.settings.cleanup_interval)

        logger.info("CleanupWorker stopped")

    def run_once(self, now: Optional[float] = None) -> int:
        """Delete expired files once; returns how many were removed."""
        root = self.settings.save_location
        if not root.is_dir():
            return 0

        cutoff = (now if now is not None else time.time()) - self.settings.cleanup_age_seconds
        deleted = 0
        for path in root.rglob("*"):
            if self._delete_if_expired(path, cutoff):
                deleted += 1

        if deleted:
            logger.info("Cleanup: deleted %d files older than %d days", deleted, self.settings.cleanup_days)
        return deleted

    def _delete_if_expired(self, path: Path, cutoff: float) -> bool:
        try:
            if not path.is_file() or path.stat().st_mtime >= cutoff:
                return False
            path.unlink()
        except OSError as e:
            logger.error("Failed to delete %s: %s", path, e)
            return False
        logger.debug("Deleted expired capture %s", path)
        return True
