"""Client side of the daemon protocol: auto-start, requests and the status feed."""

import logging
import socket
import subprocess
import sys
import threading
import time
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, TextIO

from pydantic import ValidationError

from easyshot.shared.config import Settings, settings as default_settings
from easyshot.shared.errors import CommandError, EasyshotError
from easyshot.shared.models import Icons, Request, Response, WaybarStatus
from easyshot.shared.protocol import read_response, send_message

logger = logging.getLogger(__name__)

STARTUP_POLL_ATTEMPTS = 10
STARTUP_POLL_INTERVAL = 0.1
PROBE_TIMEOUT = 0.5


def is_daemon_running(socket_path: Path) -> bool:
    """True if something accepts connections on ``socket_path``."""
    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(PROBE_TIMEOUT)
            sock.connect(str(socket_path))
        return True
    except OSError:
        return False


def start_daemon() -> subprocess.Popen:
    """Spawn ``python -m easyshot daemon`` detached from this process."""
    return subprocess.Popen(
        [sys.executable, "-m", "easyshot", "daemon"],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def parse_waybar_status(message: str) -> WaybarStatus:
    """Decode the WaybarStatus carried in a ``waybar-status`` response message."""
    return WaybarStatus.model_validate_json(message)


def status_equal(a: Optional[WaybarStatus], b: Optional[WaybarStatus]) -> bool:
    if a is None or b is None:
        return a is b
    return (a.text, a.tooltip, a.css_class, a.alt) == (b.text, b.tooltip, b.css_class, b.alt)


class DaemonClient:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.socket_path = self.settings.socket_path

    def is_running(self) -> bool:
        return is_daemon_running(self.socket_path)

    def ensure_running(self, sleep: Callable[[float], None] = time.sleep) -> None:
        """Start the daemon if nothing is listening and wait until it is.

        Raises:
            EasyshotError: the daemon could not be spawned or never came up.
        """
        if self.is_running():
            return

        logger.debug("Daemon not reachable at %s, starting it", self.socket_path)
        try:
            start_daemon()
        except OSError as e:
            raise EasyshotError(f"failed to start daemon: {e}") from e

        for _ in range(STARTUP_POLL_ATTEMPTS):
            if self.is_running():
                return
            sleep(STARTUP_POLL_INTERVAL)
        raise EasyshotError("daemon failed to start")

    def send_request(self, request: Request) -> Response:
        """Send one request and return the daemon's response.

        Raises:
            OSError: the socket could not be reached or timed out.
            ProtocolError: the response was not a valid Response.
        """
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(self.settings.client_timeout)
            sock.connect(str(self.socket_path))
            send_message(sock, request)
            return read_response(sock)

    def execute(self, action: str, options: Optional[Mapping[str, Any]] = None) -> Response:
        """Run ``action`` on the daemon, starting it first if needed.

        Raises:
            CommandError: the daemon reported failure.
        """
        self.ensure_running()
        try:
            response = self.send_request(Request(action=action, options=dict(options or {})))
        except (OSError, EasyshotError) as e:
            raise EasyshotError(f"failed to send request: {e}") from e
        if not response.success:
            raise CommandError(f"command failed: {response.message}")
        return response

    def get_waybar_status(self, icons: Optional[Icons] = None) -> WaybarStatus:
        """Current status; the idle payload whenever the daemon can't answer."""
        icons = icons or Icons()
        if not self.is_running():
            return WaybarStatus.idle(icons)

        request = Request(action="waybar-status", options={"icons": icons.model_dump(by_alias=True)})
        try:
            response = self.send_request(request)
            return parse_waybar_status(response.message)
        except (OSError, EasyshotError, ValidationError) as e:
            logger.debug("Falling back to idle status: %s", e)
            return WaybarStatus.idle(icons)


def write_status(status: WaybarStatus, out: TextIO) -> None:
    out.write(status.to_json() + "\n")
    out.flush()


def follow_waybar_status(
    client: DaemonClient,
    icons: Icons,
    interval: float,
    out: TextIO = sys.stdout,
    stop_event: Optional[threading.Event] = None,
) -> None:
    """Print the status now, then again every time it changes."""
    stop_event = stop_event or threading.Event()
    previous = client.get_waybar_status(icons)
    write_status(previous, out)

    while not stop_event.wait(interval):
        current = client.get_waybar_status(icons)
        if not status_equal(previous, current):
            write_status(current, out)
            previous = current
