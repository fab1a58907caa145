"""Lifecycle of the external recorder process."""

from __future__ import annotations

import logging
import signal
import subprocess
import threading
from typing import Callable, Optional

from easyshot.server.state import SharedState

logger = logging.getLogger(__name__)


class RecordingSupervisor:
    """Owns one recorder process and reconciles SharedState when it exits.

    The watcher thread is the only path that observes the exit; it clears
    the recording state with a PID compare-and-clear, so a late watcher can
    never wipe out a newer recording.
    """

    def __init__(
        self,
        process: subprocess.Popen,
        state: SharedState,
        on_exit: Optional[Callable[[int, Optional[int]], None]] = None,
    ):
        self.process = process
        self.pid = process.pid
        self.returncode: Optional[int] = None
        self._state = state
        self._on_exit = on_exit
        self._exited = threading.Event()
        self._watch_thread = threading.Thread(
            target=self._watch,
            daemon=True,
            name=f"RecorderWatch-{self.pid}",
        )

    @classmethod
    def launch(
        cls,
        start: Callable[[], subprocess.Popen],
        state: SharedState,
        file: str,
        on_exit: Optional[Callable[[int, Optional[int]], None]] = None,
    ) -> "RecordingSupervisor":
        """Start the process, publish it in ``state`` and begin watching it."""
        process = start()
        supervisor = cls(process, state, on_exit=on_exit)
        state.set_recording(True, file, supervisor.pid)
        supervisor._watch_thread.start()
        logger.info("Recorder started (PID=%s) -> %s", supervisor.pid, file)
        return supervisor

    def _watch(self) -> None:
        try:
            self.returncode = self.process.wait()
        except Exception as e:
            logger.error("Error waiting for recorder PID=%s: %s", self.pid, e)
        finally:
            cleared = self._state.end_recording(self.pid)
            logger.info(
                "Recorder exited (PID=%s, code=%s, state_cleared=%s)",
                self.pid,
                self.returncode,
                cleared,
            )
            self._exited.set()
            if self._on_exit:
                try:
                    self._on_exit(self.pid, self.returncode)
                except Exception as exc:
                    logger.error("Recorder exit callback error: %s", exc)

    def is_alive(self) -> bool:
        return not self._exited.is_set()

    def send_signal(self, sig: int) -> None:
        if not self.is_alive():
            raise ProcessLookupError(f"recorder PID={self.pid} has already exited")
        self.process.send_signal(sig)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the watcher has reconciled the exit; False on timeout."""
        return self._exited.wait(timeout)

    def interrupt(self, timeout: float) -> bool:
        """Ask the recorder to finish its file (SIGINT) and wait for it.

        Escalates to SIGTERM if it ignores the interrupt. Returns True once
        the process has exited.
        """
        if not self.is_alive():
            return True
        try:
            self.send_signal(signal.SIGINT)
        except ProcessLookupError:
            return True
        if self.wait(timeout):
            return True

        logger.warning("Recorder PID=%s ignored SIGINT, terminating", self.pid)
        try:
            self.process.terminate()
        except ProcessLookupError:
            pass
        return self.wait(timeout)
