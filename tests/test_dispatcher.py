import json
from unittest.mock import MagicMock

import pytest

from easyshot.server.dispatcher import ActionOptions, Dispatcher, extract_options
from easyshot.shared.errors import CommandError
from easyshot.shared.models import Request


@pytest.fixture
def handlers():
    return MagicMock(), MagicMock(), MagicMock()


@pytest.fixture
def dispatcher(state, handlers):
    screenshot, recording, obs = handlers
    return Dispatcher(state, screenshot, recording, obs)


class TestExtractOptions:
    def test_empty(self):
        assert extract_options({}) == ActionOptions()
        assert extract_options(None) == ActionOptions()

    def test_numbers_are_truncated_to_int(self):
        assert extract_options({"delay": 3.9}).delay == 3
        assert extract_options({"delay": 5}).delay == 5

    @pytest.mark.parametrize("value", [True, False, "5", None, [1]])
    def test_non_numeric_delay_is_zero(self, value):
        assert extract_options({"delay": value}).delay == 0

    @pytest.mark.parametrize("value", ["true", 1, None])
    def test_use_current_screen_must_be_bool(self, value):
        assert extract_options({"use_current_screen": value}).use_current_screen is False

    def test_use_current_screen(self):
        assert extract_options({"use_current_screen": True}).use_current_screen is True

    @pytest.mark.parametrize("value", ["", 3, None])
    def test_start_action_defaults(self, value):
        assert extract_options({"start_action": value}).start_action == "movie-selection"

    def test_unknown_keys_ignored(self):
        assert extract_options({"colour": "red", "delay": 1}) == ActionOptions(delay=1)


class TestDispatch:
    def test_unknown_action(self, dispatcher):
        resp = dispatcher.dispatch(Request(action="make-coffee"))

        assert resp.success is False
        assert resp.message == "Unknown action: make-coffee"
        assert resp.state is None

    def test_success_carries_state(self, dispatcher, handlers):
        screenshot, _, _ = handlers

        resp = dispatcher.dispatch(Request(action="selection-file", options={"delay": 2}))

        screenshot.selection_file.assert_called_once_with(2)
        assert resp.success is True
        assert resp.message == "Command executed successfully"
        assert resp.state is not None

    def test_handler_error_becomes_failure_with_state(self, dispatcher, handlers, state):
        _, recording, _ = handlers
        recording.stop_recording.side_effect = CommandError("failed to read cache file: gone")
        state.set_obs(True, False)

        resp = dispatcher.dispatch(Request(action="stop-recording"))

        assert resp.success is False
        assert resp.message == "failed to read cache file: gone"
        assert resp.state.obs_recording is True

    def test_unexpected_exception_is_contained(self, dispatcher, handlers):
        _, _, obs = handlers
        obs.toggle_recording.side_effect = RuntimeError("boom")

        resp = dispatcher.dispatch(Request(action="obs-toggle-recording"))

        assert resp.success is False
        assert resp.message == "boom"

    @pytest.mark.parametrize(
        "action, handler_index, method, args",
        [
            ("current-window-clipboard", 0, "current_window_clipboard", (4,)),
            ("current-window-file", 0, "current_window_file", (4,)),
            ("current-screen-clipboard", 0, "current_screen_clipboard", (4, True)),
            ("selection-edit", 0, "selection_edit", (4,)),
            ("selection-clipboard", 0, "selection_clipboard", (4,)),
            ("movie-selection", 1, "movie_selection", (4,)),
            ("movie-screen", 1, "movie_screen", (4, True)),
            ("movie-current-window", 1, "movie_current_window", (4,)),
            ("pause-recording", 1, "pause_recording", ()),
            ("toggle-record", 1, "toggle_record", ("movie-screen", 4, True)),
            ("obs-toggle-pause", 2, "toggle_pause", ()),
        ],
    )
    def test_routing(self, dispatcher, handlers, action, handler_index, method, args):
        options = {"delay": 4, "use_current_screen": True, "start_action": "movie-screen"}

        resp = dispatcher.dispatch(Request(action=action, options=options))

        assert resp.success is True
        getattr(handlers[handler_index], method).assert_called_once_with(*args)

    def test_actions_list(self, dispatcher):
        assert "waybar-status" in dispatcher.actions
        assert len(dispatcher.actions) == 15


class TestWaybarStatus:
    def test_message_is_status_json(self, dispatcher):
        resp = dispatcher.dispatch(Request(action="waybar-status"))

        assert resp.success is True
        payload = json.loads(resp.message)
        assert payload["class"] == "idle"
        assert resp.state.recording is False

    def test_icons_merge_into_current(self, dispatcher, state):
        dispatcher.dispatch(Request(action="waybar-status", options={"icons": {"Recording": "REC"}}))
        resp = dispatcher.dispatch(Request(action="waybar-status", options={"icons": {"Idle": "IDLE"}}))

        assert json.loads(resp.message)["text"] == "IDLE"
        assert state.snapshot().icons.recording == "REC"

    def test_non_mapping_icons_ignored(self, dispatcher, state):
        resp = dispatcher.dispatch(Request(action="waybar-status", options={"icons": "IDLE"}))

        assert resp.success is True
        assert state.snapshot().icons.idle != "IDLE"

    def test_reflects_recording(self, dispatcher, state):
        state.set_recording(True, "/tmp/x.avi", 77)

        resp = dispatcher.dispatch(Request(action="waybar-status"))

        assert json.loads(resp.message)["class"] == "recording"
        assert resp.state.recording_pid == 77
