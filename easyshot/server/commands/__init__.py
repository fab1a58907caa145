from easyshot.server.commands.obs import OBSHandler, ObsStatus, parse_obs_status
from easyshot.server.commands.recording import START_ACTIONS, RecordingHandler
from easyshot.server.commands.screenshot import ScreenshotHandler

__all__ = [
    "OBSHandler",
    "ObsStatus",
    "RecordingHandler",
    "START_ACTIONS",
    "ScreenshotHandler",
    "parse_obs_status",
]
