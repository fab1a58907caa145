"""Command line entry point: ``sway-easyshot <action>``."""

import argparse
import signal
import sys
import threading
from typing import Any

from easyshot import __version__
from easyshot.client.client import DaemonClient, follow_waybar_status, write_status
from easyshot.server.commands.recording import MOVIE_SELECTION, START_ACTIONS
from easyshot.shared.config import settings
from easyshot.shared.errors import EasyshotError
from easyshot.shared.models import Icons

CAPTURE_COMMANDS = {
    "current-window-clipboard": "Capture focused window to clipboard",
    "current-window-file": "Capture focused window to file",
    "current-screen-clipboard": "Capture focused screen to clipboard",
    "selection-file": "Capture selection to file (interactive actions)",
    "selection-edit": "Capture selection and open editor",
    "selection-clipboard": "Capture selection to clipboard (optional save/edit)",
    "movie-selection": "Record video of selection",
    "movie-screen": "Record video of screen",
    "movie-current-window": "Record video of focused window",
}

SIMPLE_COMMANDS = {
    "stop-recording": "Stop wf-recorder and convert to mp4",
    "pause-recording": "Pause/resume current recording",
    "obs-toggle-recording": "Toggle OBS recording",
    "obs-toggle-pause": "Toggle OBS pause state",
}

_DEFAULT_ICONS = Icons()


def _add_capture_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-t",
        "--delay",
        type=int,
        default=0,
        help="Delay capture/recording in seconds.",
    )
    parser.add_argument(
        "-c",
        "--current-screen",
        action="store_true",
        help="Use current focused screen (skip selection).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sway-easyshot",
        description="Recording and screenshot utility for sway.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    daemon = subparsers.add_parser("daemon", help="Run in daemon mode (auto-started if needed).")
    daemon.add_argument("--debug", action="store_true", help="Enable debug logging.")

    waybar = subparsers.add_parser(
        "waybar-status",
        help="Output waybar status (JSON).",
        description=(
            "Outputs current recording/screenshot status in Waybar JSON format. "
            "Poll interval: EASYSHOT_WAYBAR_POLL_INTERVAL (default: 1s)."
        ),
    )
    waybar.add_argument(
        "--follow",
        action="store_true",
        help="Continuously monitor and output on state change.",
    )
    waybar.add_argument("--icon-idle", default=_DEFAULT_ICONS.idle, help="Icon for idle/ready state.")
    waybar.add_argument(
        "--icon-recording", default=_DEFAULT_ICONS.recording, help="Icon for recording state."
    )
    waybar.add_argument(
        "--icon-paused", default=_DEFAULT_ICONS.paused, help="Icon for paused recording state."
    )
    waybar.add_argument(
        "--icon-obs-recording",
        default=_DEFAULT_ICONS.obs_recording,
        help="Icon for OBS recording state.",
    )
    waybar.add_argument(
        "--icon-obs-paused",
        default=_DEFAULT_ICONS.obs_paused,
        help="Icon for OBS paused recording state.",
    )
    waybar.add_argument(
        "--icon-countdown", default=_DEFAULT_ICONS.countdown, help="Icon shown during a delay."
    )

    for name, help_text in CAPTURE_COMMANDS.items():
        _add_capture_flags(subparsers.add_parser(name, help=help_text))

    for name, help_text in SIMPLE_COMMANDS.items():
        subparsers.add_parser(name, help=help_text)

    toggle = subparsers.add_parser(
        "toggle-record",
        help="Toggle recording (start if not recording, stop if recording).",
    )
    toggle.add_argument(
        "-a",
        "--start-action",
        default=MOVIE_SELECTION,
        choices=START_ACTIONS,
        help="Action when starting a recording.",
    )
    _add_capture_flags(toggle)

    return parser


def _icons_from_args(args: argparse.Namespace) -> Icons:
    return Icons(
        idle=args.icon_idle,
        recording=args.icon_recording,
        paused=args.icon_paused,
        obs_recording=args.icon_obs_recording,
        obs_paused=args.icon_obs_paused,
        countdown=args.icon_countdown,
    )


def request_options(args: argparse.Namespace) -> dict[str, Any]:
    """Options payload for an action command."""
    options: dict[str, Any] = {}
    if hasattr(args, "delay"):
        options["delay"] = args.delay
        options["use_current_screen"] = args.current_screen
    if getattr(args, "start_action", None):
        options["start_action"] = args.start_action
    return options


def run_daemon(debug: bool) -> int:
    from easyshot.server.daemon import Daemon
    from easyshot.shared.logging_config import configure_logging

    debug = debug or settings.debug
    logger = configure_logging("easyshot.daemon", debug=debug)
    logger.info(f"Save location: {settings.save_location}")
    logger.info(f"Cleanup: files older than {settings.cleanup_days} days")

    try:
        Daemon(settings, debug=debug).start()
    except OSError as e:
        logger.error(f"Failed to start daemon: {e}")
        return 1
    return 0


def run_waybar_status(args: argparse.Namespace, client: DaemonClient) -> int:
    icons = _icons_from_args(args)
    if not args.follow:
        write_status(client.get_waybar_status(icons), sys.stdout)
        return 0

    stop_event = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: stop_event.set())
    try:
        follow_waybar_status(
            client,
            icons,
            settings.waybar_poll_interval,
            out=sys.stdout,
            stop_event=stop_event,
        )
    except KeyboardInterrupt:
        pass
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "daemon":
        return run_daemon(args.debug)

    client = DaemonClient(settings)
    if args.command == "waybar-status":
        return run_waybar_status(args, client)

    try:
        client.execute(args.command, request_options(args))
    except EasyshotError as e:
        print(f"sway-easyshot: {e}", file=sys.stderr)
        return 1
    return 0
