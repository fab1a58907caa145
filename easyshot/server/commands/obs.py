"""OBS control through obs-cli."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable

from easyshot.server import notify, tools
from easyshot.server.state import SharedState
from easyshot.shared.config import Settings
from easyshot.shared.errors import CommandError, ToolError

logger = logging.getLogger(__name__)

START_SETTLE_SECONDS = 1
STOP_SETTLE_SECONDS = 2

_PAIR_RE = re.compile(r"^\s*([A-Za-z][\w ]*?)\s*:\s*(true|false)\s*$", re.IGNORECASE | re.MULTILINE)


@dataclass(frozen=True)
class ObsStatus:
    recording: bool = False
    paused: bool = False


def parse_obs_status(text: str) -> ObsStatus:
    """Parse ``obs-cli recording status`` output.

    Reads ``Name: true|false`` lines first. Only when no ``Recording`` pair
    is present does it fall back to looking for the literal phrases.
    """
    pairs = {name.strip().lower(): value.lower() == "true" for name, value in _PAIR_RE.findall(text)}
    if "recording" in pairs:
        return ObsStatus(recording=pairs["recording"], paused=pairs.get("paused", False))

    logger.debug("Unstructured OBS status, falling back to substring match: %r", text)
    return ObsStatus(
        recording="Recording: true" in text,
        paused="Paused: true" in text,
    )


class OBSHandler:
    def __init__(
        self,
        settings: Settings,
        state: SharedState,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.state = state
        self._sleep = sleep

    def _status(self, notify_failure: bool = False) -> ObsStatus:
        try:
            output = tools.obs_cli(self.settings, "recording", "status")
        except ToolError as exc:
            if notify_failure:
                notify.send_quiet(2000, self.settings.screenshot_icon, "Failed to get OBS status")
            raise CommandError(f"failed to get OBS recording status: {exc}") from exc
        return parse_obs_status(output)

    def _run(self, description: str, *args: str) -> None:
        try:
            tools.obs_cli(self.settings, *args)
        except ToolError as exc:
            raise CommandError(f"failed to {description}: {exc}") from exc

    def toggle_recording(self) -> None:
        status = self._status(notify_failure=True)

        if not status.recording:
            self._sleep(START_SETTLE_SECONDS)
            self._run("start OBS recording", "recording", "start")
            self.state.set_obs(True, False)
            logger.info("OBS recording started")
            return

        self._run("stop OBS recording", "recording", "stop")
        self._sleep(STOP_SETTLE_SECONDS)
        notify.send_quiet(2000, self.settings.recording_stop_icon, "Recording has stopped")
        self.state.set_obs(False, False)
        logger.info("OBS recording stopped")

    def toggle_pause(self) -> None:
        self._run("toggle OBS pause", "recording", "pause", "toggle")
        status = self._status()

        if status.paused:
            notify.send_quiet(2000, self.settings.recording_pause_icon, "Recording paused")
            self.state.set_obs(True, True)
        else:
            notify.send_quiet(2000, self.settings.recording_start_icon, "Recording resumed")
            self.state.set_obs(True, False)
