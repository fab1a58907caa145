"""In-memory recording/OBS/countdown state shared by every daemon thread."""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Mapping, Optional

from easyshot.shared.models import Icons, State, WaybarStatus


class ReadWriteLock:
    """Many concurrent readers or one writer. Writers are preferred."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SharedState:
    """Single source of truth read by every status query.

    Every operation takes the lock for its whole duration and never does I/O
    while holding it, so readers always see one consistent instant.
    """

    def __init__(self, icons: Optional[Icons] = None):
        self._lock = ReadWriteLock()
        self._recording = False
        self._paused = False
        self._recording_file = ""
        self._recording_pid = 0
        self._recording_start_time: Optional[datetime] = None
        self._obs_recording = False
        self._obs_paused = False
        self._countdown_remaining = 0
        self._icons = icons or Icons()

    def _snapshot_unlocked(self) -> State:
        return State(
            recording=self._recording,
            paused=self._paused,
            recording_file=self._recording_file,
            recording_pid=self._recording_pid,
            recording_start_time=self._recording_start_time,
            obs_recording=self._obs_recording,
            obs_paused=self._obs_paused,
            countdown_remaining=self._countdown_remaining,
            icons=self._icons,
        )

    def snapshot(self) -> State:
        with self._lock.read():
            return self._snapshot_unlocked()

    def recording_pid(self) -> int:
        with self._lock.read():
            return self._recording_pid

    def set_recording(self, active: bool, file: str = "", pid: int = 0) -> None:
        with self._lock.write():
            self._recording = active
            self._recording_file = file if active else ""
            self._recording_pid = pid if active else 0
            self._recording_start_time = datetime.now() if active else None
            self._paused = False

    def end_recording(self, pid: int) -> bool:
        """Clear recording state if ``pid`` is still the tracked process.

        Returns True when the state was cleared. A stale caller (a watcher of
        an older process, or a stop racing a newer start) is a no-op.
        """
        with self._lock.write():
            if self._recording_pid != pid:
                return False
            self._recording = False
            self._paused = False
            self._recording_file = ""
            self._recording_pid = 0
            self._recording_start_time = None
            return True

    def toggle_paused_if(self, pid: int) -> Optional[bool]:
        """Flip ``paused`` only while ``pid`` is the tracked recording.

        Returns the new value, or None when that recording has already ended.
        """
        with self._lock.write():
            if not self._recording or self._recording_pid != pid:
                return None
            self._paused = not self._paused
            return self._paused

    def set_obs(self, active: bool, paused: bool) -> None:
        with self._lock.write():
            self._obs_recording = active
            self._obs_paused = paused

    def set_countdown(self, seconds: int) -> None:
        with self._lock.write():
            self._countdown_remaining = max(0, seconds)

    def clear_countdown(self) -> None:
        with self._lock.write():
            self._countdown_remaining = 0

    def merge_icons(self, overrides: Mapping[str, Any]) -> Icons:
        with self._lock.write():
            self._icons = self._icons.merged(overrides)
            return self._icons

    def waybar_status(self, now: Optional[datetime] = None) -> tuple[WaybarStatus, State]:
        """The current status and the snapshot it was computed from."""
        with self._lock.read():
            snapshot = self._snapshot_unlocked()
        return compute_waybar_status(snapshot, now), snapshot


def compute_waybar_status(state: State, now: Optional[datetime] = None) -> WaybarStatus:
    """Priority: countdown > local recording > OBS recording > idle."""
    icons = state.icons

    if state.countdown_remaining > 0:
        return WaybarStatus(
            text=f"{icons.countdown} {state.countdown_remaining}",
            tooltip=f"Starting in {state.countdown_remaining} seconds",
            css_class="countdown",
            alt="countdown",
        )

    if state.recording:
        if state.paused:
            return WaybarStatus(
                text=icons.paused,
                tooltip="Recording paused",
                css_class="paused",
                alt="paused",
            )
        elapsed = 0
        if state.recording_start_time is not None:
            now = now or datetime.now()
            elapsed = max(0, int((now - state.recording_start_time).total_seconds()))
        minutes, seconds = divmod(elapsed, 60)
        return WaybarStatus(
            text=f"{icons.recording} {minutes:02d}:{seconds:02d}",
            tooltip=f"Recording: {state.recording_file} ({minutes:02d}:{seconds:02d})",
            css_class="recording",
            alt="recording",
        )

    if state.obs_recording:
        if state.obs_paused:
            return WaybarStatus(
                text=icons.obs_paused,
                tooltip="OBS recording paused",
                css_class="paused",
                alt="paused",
            )
        return WaybarStatus(
            text=icons.obs_recording,
            tooltip="OBS recording in progress",
            css_class="recording",
            alt="recording",
        )

    return WaybarStatus.idle(icons)
