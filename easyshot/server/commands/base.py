"""Helpers shared by the command handlers."""

import time
from typing import Callable

from easyshot.server.state import SharedState
from easyshot.server import sway, tools
from easyshot.shared.errors import CommandError, ToolError


def sleep_with_countdown(
    state: SharedState,
    delay: int,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Sleep ``delay`` seconds, publishing the remaining time once per second.

    The countdown is always cleared on return so nothing launches while
    ``countdown_remaining`` is still positive.
    """
    if delay <= 0:
        return
    try:
        for remaining in range(delay, 0, -1):
            state.set_countdown(remaining)
            sleep(1)
    finally:
        state.clear_countdown()


def select_region(color: str = "") -> str:
    try:
        geometry = tools.slurp(color)
    except ToolError as exc:
        raise CommandError(f"selection cancelled or failed: {exc}") from exc
    if not geometry:
        raise CommandError("selection cancelled or failed: empty selection")
    return geometry


def select_output(use_current_screen: bool) -> str:
    try:
        output = sway.select_output(use_current_screen)
    except (ToolError, CommandError) as exc:
        raise CommandError(f"failed to select output: {exc}") from exc
    if not output:
        raise CommandError("failed to select output: empty output name")
    return output


def window_geometry() -> str:
    try:
        return sway.focused_window_geometry()
    except (ToolError, CommandError) as exc:
        raise CommandError(f"failed to get window geometry: {exc}") from exc
