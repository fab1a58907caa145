"""Desktop notifications through notify-send."""

import logging
from typing import Mapping

from easyshot.server.tools import run_text
from easyshot.shared.errors import ToolError

logger = logging.getLogger(__name__)


def _base_args(timeout_ms: int, icon: str) -> list[str]:
    args = ["notify-send", "-t", str(timeout_ms)]
    if icon:
        args += ["-i", icon]
    return args


def send(timeout_ms: int, icon: str, message: str) -> None:
    run_text(_base_args(timeout_ms, icon) + [message])


def send_quiet(timeout_ms: int, icon: str, message: str) -> None:
    """Like :func:`send`, but a failed notification is only logged."""
    try:
        send(timeout_ms, icon, message)
    except ToolError as exc:
        logger.warning("Notification failed: %s", exc)


def send_with_actions(timeout_ms: int, icon: str, message: str, actions: Mapping[str, str]) -> str:
    """Show a notification with buttons and block until one is picked.

    Returns the chosen action id, or ``""`` when dismissed.
    """
    args = _base_args(timeout_ms, icon)
    for action_id, label in actions.items():
        args += ["-A", f"{action_id}={label}"]
    args.append(message)
    return run_text(args)


def capture_delay(wait_seconds: int, label: str, icon: str) -> None:
    """Announce a delayed capture when the delay is long enough to notice."""
    if wait_seconds > 2:
        send((wait_seconds - 1) * 1000, icon, f"Capturing {label} in {wait_seconds} seconds")
