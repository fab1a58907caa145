"""Screen recording commands and the recorder state machine.

Idle -> Countdown(n) -> Recording -> Idle, with an orthogonal paused flag
that only means something while recording. The recorder writes a raw
``.avi``; stop converts it to ``.mp4``. The base name is kept in a cache file
because start and stop arrive as separate requests and may straddle a daemon
restart.
"""

from __future__ import annotations

import logging
import os
import signal
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from easyshot.server import notify, tools
from easyshot.server.commands.base import (
    select_output,
    select_region,
    sleep_with_countdown,
    window_geometry,
)
from easyshot.server.state import SharedState
from easyshot.server.supervisor import RecordingSupervisor
from easyshot.shared.config import Settings
from easyshot.shared.errors import CommandError, ToolError

logger = logging.getLogger(__name__)

RECORDER_NAME = "wf-recorder"
RAW_SUFFIX = ".avi"
FINAL_SUFFIX = ".mp4"
NAME_KILL_GRACE_SECONDS = 0.5

MOVIE_SELECTION = "movie-selection"
MOVIE_SCREEN = "movie-screen"
MOVIE_CURRENT_WINDOW = "movie-current-window"
START_ACTIONS = (MOVIE_SELECTION, MOVIE_SCREEN, MOVIE_CURRENT_WINDOW)


def _with_suffix(base: Path, suffix: str) -> Path:
    # Base names carry no extension; Path.with_suffix would eat "-20h15"-style parts.
    return Path(f"{base}{suffix}")


class RecordingHandler:
    def __init__(
        self,
        settings: Settings,
        state: SharedState,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.state = state
        self._sleep = sleep
        # Serializes start and stop so only one recorder is ever tracked.
        self._lifecycle_lock = threading.Lock()
        self._supervisor: Optional[RecordingSupervisor] = None

    # -- start ---------------------------------------------------------------

    def movie_selection(self, delay: int = 0) -> None:
        self._ensure_idle()
        notify.capture_delay(delay, "movie selection", self.settings.recording_start_icon)
        geometry = select_region()
        sleep_with_countdown(self.state, delay, self._sleep)
        self._start_recording(geometry=geometry)

    def movie_screen(self, delay: int = 0, use_current_screen: bool = False) -> None:
        self._ensure_idle()
        output = select_output(use_current_screen)
        notify.capture_delay(delay, "movie screen", self.settings.recording_start_icon)
        sleep_with_countdown(self.state, delay, self._sleep)
        self._start_recording(output=output)

    def movie_current_window(self, delay: int = 0) -> None:
        self._ensure_idle()
        notify.capture_delay(delay, "movie current window", self.settings.recording_start_icon)
        geometry = window_geometry()
        sleep_with_countdown(self.state, delay, self._sleep)
        self._start_recording(geometry=geometry)

    def _ensure_idle(self) -> None:
        if self.state.snapshot().recording:
            raise CommandError("recording already in progress")

    def recording_paths(self) -> tuple[Path, Path]:
        """Return ``(base, raw_file)`` for a new recording.

        If a file with the timestamped base already exists the daemon PID is
        appended, so an earlier recording from the same minute is never
        overwritten.
        """
        base = self.settings.generate_recording_base()
        if _with_suffix(base, FINAL_SUFFIX).exists() or _with_suffix(base, RAW_SUFFIX).exists():
            base = Path(f"{base}-{os.getpid()}")
        return base, _with_suffix(base, RAW_SUFFIX)

    def _start_recording(self, geometry: str = "", output: str = "") -> None:
        with self._lifecycle_lock:
            self._ensure_idle()
            base, raw_file = self.recording_paths()

            cache_file = self.settings.cache_file
            try:
                cache_file.parent.mkdir(parents=True, exist_ok=True)
                cache_file.write_text(str(base), encoding="utf-8")
                cache_file.chmod(0o600)
            except OSError as exc:
                raise CommandError(f"failed to write cache file: {exc}") from exc

            try:
                self._supervisor = RecordingSupervisor.launch(
                    lambda: tools.start_wf_recorder(geometry, output, raw_file),
                    self.state,
                    str(raw_file),
                )
            except (ToolError, OSError) as exc:
                cache_file.unlink(missing_ok=True)
                raise CommandError(f"failed to start recording: {exc}") from exc

    # -- stop ----------------------------------------------------------------

    def stop_recording(self) -> None:
        with self._lifecycle_lock:
            # Read the cache first: without a base name there is nothing to
            # convert, and the running recorder is left alone.
            cache_file = self.settings.cache_file
            try:
                base_name = cache_file.read_text(encoding="utf-8").strip()
            except OSError as exc:
                raise CommandError(f"failed to read cache file: {exc}") from exc
            if not base_name:
                raise CommandError(f"failed to read cache file: {cache_file} is empty")

            pid = self.state.recording_pid()
            if not self._halt_recorder(pid):
                self.state.end_recording(pid)

            base = Path(base_name)
            raw_file = _with_suffix(base, RAW_SUFFIX)
            icon = self.settings.screenshot_icon
            if not raw_file.exists():
                notify.send_quiet(5000, icon, f"Could not find {raw_file}")
                raise CommandError(f"recording file not found: {raw_file}")

            notify.send_quiet(3000, icon, "Recording finished, converting")
            final_file = _with_suffix(base, FINAL_SUFFIX)
            try:
                tools.ffmpeg_convert(raw_file, final_file)
            except ToolError as exc:
                raise CommandError(f"failed to convert video: {exc}") from exc

            raw_file.unlink(missing_ok=True)
            cache_file.unlink(missing_ok=True)
            logger.info("Recording converted: %s", final_file)

        notify.send_quiet(5000, self.settings.recording_stop_icon, f"{final_file} is available")

    def _halt_recorder(self, pid: int) -> bool:
        """Stop the recorder; True when its supervisor has reconciled the state.

        Signals the tracked process. Only when nothing is tracked does it fall
        back to signalling every recorder by name.
        """
        supervisor = self._supervisor
        if pid and supervisor is not None and supervisor.pid == pid:
            exited = supervisor.interrupt(self.settings.recorder_stop_timeout)
            if not exited:
                logger.warning("Recorder PID=%s still running after stop timeout", pid)
            self._supervisor = None
            return exited

        if pid:
            try:
                os.kill(pid, signal.SIGINT)
            except ProcessLookupError:
                logger.info("Tracked recorder PID=%s already gone", pid)
        elif not tools.killall(RECORDER_NAME, "SIGINT"):
            logger.info("No %s process to stop", RECORDER_NAME)
        self._sleep(NAME_KILL_GRACE_SECONDS)
        return False

    # -- pause / toggle ------------------------------------------------------

    def pause_recording(self) -> None:
        pid = self.state.recording_pid()
        if pid == 0:
            raise CommandError("no recording in progress")

        try:
            supervisor = self._supervisor
            if supervisor is not None and supervisor.pid == pid:
                supervisor.send_signal(signal.SIGUSR1)
            else:
                os.kill(pid, signal.SIGUSR1)
        except (ProcessLookupError, PermissionError) as exc:
            raise CommandError(f"failed to pause recording: {exc}") from exc

        # Optimistic: the recorder does not acknowledge the signal.
        paused = self.state.toggle_paused_if(pid)
        if paused is None:
            raise CommandError("no recording in progress")
        if paused:
            notify.send_quiet(2000, self.settings.recording_pause_icon, "Recording paused")
        else:
            notify.send_quiet(2000, self.settings.recording_start_icon, "Recording resumed")

    def toggle_record(
        self,
        start_action: str = MOVIE_SELECTION,
        delay: int = 0,
        use_current_screen: bool = False,
    ) -> None:
        if self.state.snapshot().recording:
            self.stop_recording()
            return

        if start_action == MOVIE_SELECTION:
            self.movie_selection(delay)
        elif start_action == MOVIE_SCREEN:
            self.movie_screen(delay, use_current_screen)
        elif start_action == MOVIE_CURRENT_WINDOW:
            self.movie_current_window(delay)
        else:
            raise CommandError(
                f"invalid start action: {start_action} (valid: {', '.join(START_ACTIONS)})"
            )
