"""Routes a decoded Request to the handler that implements its action."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from easyshot.server.commands import OBSHandler, RecordingHandler, ScreenshotHandler
from easyshot.server.commands.recording import MOVIE_SELECTION
from easyshot.server.state import SharedState
from easyshot.shared.models import Request, Response

logger = logging.getLogger(__name__)

WAYBAR_STATUS = "waybar-status"
SUCCESS_MESSAGE = "Command executed successfully"


@dataclass(frozen=True)
class ActionOptions:
    delay: int = 0
    use_current_screen: bool = False
    start_action: str = MOVIE_SELECTION


def extract_options(options: Optional[Mapping[str, Any]]) -> ActionOptions:
    """Read the common options, ignoring values of the wrong type."""
    if not options:
        return ActionOptions()

    delay = options.get("delay")
    if isinstance(delay, bool) or not isinstance(delay, (int, float)):
        delay = 0

    use_current_screen = options.get("use_current_screen")
    if not isinstance(use_current_screen, bool):
        use_current_screen = False

    start_action = options.get("start_action")
    if not isinstance(start_action, str) or not start_action:
        start_action = MOVIE_SELECTION

    return ActionOptions(
        delay=int(delay),
        use_current_screen=use_current_screen,
        start_action=start_action,
    )


class Dispatcher:
    def __init__(
        self,
        state: SharedState,
        screenshot: ScreenshotHandler,
        recording: RecordingHandler,
        obs: OBSHandler,
    ):
        self.state = state
        self._routes: dict[str, Callable[[ActionOptions], None]] = {
            "current-window-clipboard": lambda o: screenshot.current_window_clipboard(o.delay),
            "current-window-file": lambda o: screenshot.current_window_file(o.delay),
            "current-screen-clipboard": lambda o: screenshot.current_screen_clipboard(
                o.delay, o.use_current_screen
            ),
            "selection-file": lambda o: screenshot.selection_file(o.delay),
            "selection-edit": lambda o: screenshot.selection_edit(o.delay),
            "selection-clipboard": lambda o: screenshot.selection_clipboard(o.delay),
            "movie-selection": lambda o: recording.movie_selection(o.delay),
            "movie-screen": lambda o: recording.movie_screen(o.delay, o.use_current_screen),
            "movie-current-window": lambda o: recording.movie_current_window(o.delay),
            "stop-recording": lambda o: recording.stop_recording(),
            "pause-recording": lambda o: recording.pause_recording(),
            "toggle-record": lambda o: recording.toggle_record(
                o.start_action, o.delay, o.use_current_screen
            ),
            "obs-toggle-recording": lambda o: obs.toggle_recording(),
            "obs-toggle-pause": lambda o: obs.toggle_pause(),
        }

    @property
    def actions(self) -> list[str]:
        return [*self._routes, WAYBAR_STATUS]

    def dispatch(self, request: Request) -> Response:
        if request.action == WAYBAR_STATUS:
            return self._waybar_status(request.options)

        route = self._routes.get(request.action)
        if route is None:
            return Response(success=False, message=f"Unknown action: {request.action}")

        try:
            route(extract_options(request.options))
        except Exception as exc:
            logger.error("Action %s failed: %s", request.action, exc)
            return Response(success=False, message=str(exc), state=self.state.snapshot())

        return Response(success=True, message=SUCCESS_MESSAGE, state=self.state.snapshot())

    def _waybar_status(self, options: Mapping[str, Any]) -> Response:
        icons = options.get("icons") if options else None
        if isinstance(icons, Mapping):
            self.state.merge_icons(icons)
        status, snapshot = self.state.waybar_status()
        return Response(success=True, message=status.to_json(), state=snapshot)
