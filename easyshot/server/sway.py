"""Window-manager queries through swaymsg."""

import json
from typing import Any, Iterator, Optional

from easyshot.server import tools
from easyshot.shared.errors import CommandError, ToolError


def _swaymsg(message_type: str) -> Any:
    raw = tools.run_text(["swaymsg", "-r", "-t", message_type])
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ToolError("swaymsg", f"unreadable {message_type} output: {exc}") from exc


def _walk(node: dict) -> Iterator[dict]:
    yield node
    for child in node.get("nodes", []) + node.get("floating_nodes", []):
        yield from _walk(child)


def find_focused(tree: dict) -> Optional[dict]:
    for node in _walk(tree):
        if node.get("focused"):
            return node
    return None


def format_geometry(rect: dict) -> str:
    return f"{rect['x']},{rect['y']} {rect['width']}x{rect['height']}"


def focused_window_geometry() -> str:
    """Geometry of the focused window in slurp/grim format."""
    node = find_focused(_swaymsg("get_tree"))
    if node is None or "rect" not in node:
        raise CommandError("no focused window")
    return format_geometry(node["rect"])


def select_output(use_current_screen: bool) -> str:
    """Name of the output to capture.

    The focused output when ``use_current_screen`` is set or only one output
    is active; otherwise the user picks one from a wofi menu.
    """
    outputs = [o for o in _swaymsg("get_outputs") if o.get("active", True)]
    if not outputs:
        raise CommandError("no active outputs")

    if use_current_screen:
        for output in outputs:
            if output.get("focused"):
                return output["name"]
        raise CommandError("no focused output")

    if len(outputs) == 1:
        return outputs[0]["name"]

    choice = tools.wofi("Output", [o["name"] for o in outputs])
    if not choice:
        raise CommandError("no output selected")
    return choice
