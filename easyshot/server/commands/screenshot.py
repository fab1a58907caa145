"""Screenshot commands: capture, then copy, save, edit or offer follow-up actions."""

from __future__ import annotations

import logging
import tempfile
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

from easyshot.server import notify, tools
from easyshot.server.commands.base import (
    select_output,
    select_region,
    sleep_with_countdown,
    window_geometry,
)
from easyshot.server.state import SharedState
from easyshot.shared.config import Settings
from easyshot.shared.errors import CommandError, ToolError

logger = logging.getLogger(__name__)

ACTION_TIMEOUT_MS = 30000
EDIT_SELECTION_COLOR = "#ff0000ff"
AI_NAME_PROMPT = (
    "identify a filename for that image and return only the slug of the filename, nothing else"
)

FILE_ACTIONS = {
    "copyclip": "Copy image",
    "rename": "Rename",
    "copypath": "Copy path",
    "edit": "Edit",
}

CLIPBOARD_ACTIONS = {
    "save": "Save",
    "saveai": "Save with AI",
    "edit": "Edit",
}


@contextmanager
def temporary_png(data: bytes) -> Iterator[Path]:
    """Write ``data`` to a private temp file that is removed afterwards."""
    with tempfile.NamedTemporaryFile(prefix="screenshot-", suffix=".png", delete=False) as tmp:
        tmp.write(data)
        path = Path(tmp.name)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)


def with_suffix(name: str, suffix: str) -> str:
    return name if name.endswith(suffix) else name + suffix


class ScreenshotHandler:
    """Stateless apart from countdown updates while a delay runs."""

    def __init__(
        self,
        settings: Settings,
        state: SharedState,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.state = state
        self._sleep = sleep

    @property
    def icon(self) -> str:
        return self.settings.screenshot_icon

    def _countdown(self, delay: int) -> None:
        sleep_with_countdown(self.state, delay, self._sleep)

    def _grab(self, geometry: str = "", output: str = "", filename: Optional[Path] = None) -> bytes:
        try:
            return tools.grim(geometry=geometry, output=output, filename=filename)
        except ToolError as exc:
            raise CommandError(f"failed to capture screenshot: {exc}") from exc

    def _prompt_name(self, text: str, default: str) -> Optional[str]:
        """Ask for a file name; None when the dialog is cancelled or empty."""
        try:
            name = tools.zenity(text, default)
        except ToolError as exc:
            logger.debug("Name prompt dismissed: %s", exc)
            return None
        return name or None

    def current_window_clipboard(self, delay: int = 0) -> None:
        notify.capture_delay(delay, "window to clipboard", self.icon)
        geometry = window_geometry()
        self._countdown(delay)
        tools.wl_copy(self._grab(geometry=geometry), "image/png")

    def current_window_file(self, delay: int = 0) -> None:
        notify.capture_delay(delay, "window to file", self.icon)
        geometry = window_geometry()
        file = self.settings.generate_filename()
        self._countdown(delay)
        self._grab(geometry=geometry, filename=file)
        notify.send(3000, self.icon, f"Screenshot saved: {file.name}")

    def current_screen_clipboard(self, delay: int = 0, use_current_screen: bool = False) -> None:
        output = select_output(use_current_screen)
        notify.capture_delay(delay, "screen to clipboard", self.icon)
        self._countdown(delay)
        tools.wl_copy(self._grab(output=output), "image/png")

    def selection_file(self, delay: int = 0) -> None:
        notify.capture_delay(delay, "selection to file", self.icon)
        geometry = select_region()
        file = self.settings.generate_filename()
        self._countdown(delay)
        self._grab(geometry=geometry, filename=file)

        try:
            action = notify.send_with_actions(ACTION_TIMEOUT_MS, self.icon, file.name, FILE_ACTIONS)
        except ToolError as exc:
            logger.debug("Action prompt failed: %s", exc)
            notify.send(5000, self.icon, f"Screenshot saved: {file.name}")
            return

        self._apply_file_action(action.strip(), file)

    def _apply_file_action(self, action: str, file: Path) -> None:
        if action == "copyclip":
            tools.wl_copy(file.read_bytes(), "image/png")
        elif action == "copypath":
            tools.wl_copy_text(str(file))
        elif action in ("rename", "edit"):
            new_name = self._prompt_name("Rename file", file.name)
            if new_name is None:
                return
            target = self.settings.save_location / with_suffix(new_name, file.suffix)
            if action == "edit":
                tools.satty(file, target, early_exit=True)
            else:
                file.rename(target)
                logger.info("Renamed %s -> %s", file.name, target.name)

    def selection_edit(self, delay: int = 0) -> None:
        notify.capture_delay(delay, "selection edit", self.icon)
        geometry = select_region(EDIT_SELECTION_COLOR)
        self._countdown(delay)
        data = self._grab(geometry=geometry)

        stamp = datetime.now().strftime("%Y%m%d-%H:%M:%S")
        output_file = self.settings.save_location / f"screenshot-{stamp}.png"
        with temporary_png(data) as tmp_file:
            tools.satty(tmp_file, output_file, early_exit=True)

    def selection_clipboard(self, delay: int = 0) -> None:
        notify.capture_delay(delay, "selection to clipboard", self.icon)
        geometry = select_region()
        self._countdown(delay)
        tools.wl_copy(self._grab(geometry=geometry), "image/png")

        try:
            action = notify.send_with_actions(
                ACTION_TIMEOUT_MS, self.icon, "Screenshot captured to clipboard", CLIPBOARD_ACTIONS
            )
        except ToolError as exc:
            # The clipboard copy already succeeded.
            logger.debug("Action prompt failed: %s", exc)
            return

        action = action.strip()
        if action not in CLIPBOARD_ACTIONS:
            return

        default_name = self.settings.generate_filename().name
        if action == "saveai":
            default_name = self._suggest_name(default_name)

        new_name = self._prompt_name("File Name", default_name)
        if new_name is None:
            return
        output_file = self.settings.save_location / with_suffix(new_name, ".png")

        if action == "edit":
            with temporary_png(tools.wl_paste("image/png")) as tmp_file:
                tools.satty(tmp_file, output_file, early_exit=True)
            return

        output_file.write_bytes(tools.wl_paste("image/png"))
        output_file.chmod(0o600)
        tools.nautilus(output_file.as_uri())

    def _suggest_name(self, fallback: str) -> str:
        """Ask aichat for a file-name slug for the clipboard image."""
        with temporary_png(tools.wl_paste("image/png")) as tmp_file:
            try:
                slug = tools.aichat(self.settings.ai_model_image, tmp_file, AI_NAME_PROMPT)
            except ToolError as exc:
                logger.warning("AI naming failed, using default name: %s", exc)
                return fallback
        return with_suffix(slug, ".png") if slug else fallback
