"""Daemon server over a real Unix socket."""

import json
import socket
import stat
import threading
import time
from unittest.mock import MagicMock

import pytest

from easyshot.client.client import DaemonClient, parse_waybar_status
from easyshot.server.daemon import Daemon
from easyshot.server.dispatcher import Dispatcher
from easyshot.shared.errors import CommandError
from easyshot.shared.models import Request


@pytest.fixture
def handlers():
    return MagicMock(), MagicMock(), MagicMock()


@pytest.fixture
def daemon(settings, state, handlers):
    screenshot, recording, obs = handlers
    d = Daemon(settings, debug=False, state=state, dispatcher=Dispatcher(state, screenshot, recording, obs))
    thread = threading.Thread(target=d.start, kwargs={"install_signal_handlers": False}, daemon=True)
    thread.start()
    assert d.ready.wait(5)
    yield d
    d.stop()
    thread.join(timeout=5)


def _raw_exchange(path, payload: bytes) -> bytes:
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.settimeout(5)
        sock.connect(str(path))
        if payload:
            sock.sendall(payload)
        sock.shutdown(socket.SHUT_WR)
        data = b""
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                return data
            data += chunk


class TestLifecycle:
    def test_socket_is_private(self, daemon, settings):
        mode = settings.socket_path.stat().st_mode

        assert stat.S_ISSOCK(mode)
        assert mode & 0o777 == 0o600

    def test_stale_socket_is_replaced(self, settings, state):
        settings.socket_path.write_text("stale")
        d = Daemon(settings, state=state)
        thread = threading.Thread(target=d.start, kwargs={"install_signal_handlers": False}, daemon=True)
        thread.start()

        assert d.ready.wait(5)
        assert stat.S_ISSOCK(settings.socket_path.stat().st_mode)
        d.stop()
        thread.join(timeout=5)

    def test_stop_removes_socket(self, settings, state):
        d = Daemon(settings, state=state)
        thread = threading.Thread(target=d.start, kwargs={"install_signal_handlers": False}, daemon=True)
        thread.start()
        assert d.ready.wait(5)

        d.stop()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert not settings.socket_path.exists()
        assert d.cleanup_worker._stop_event.is_set()

    def test_bind_failure_propagates(self, settings, state, tmp_path):
        settings.socket_path = tmp_path / ("x" * 200) / "d.sock"

        with pytest.raises(OSError):
            Daemon(settings, state=state).start(install_signal_handlers=False)


class TestRequests:
    def test_waybar_status_roundtrip(self, daemon, settings):
        status = DaemonClient(settings).get_waybar_status()

        assert status.css_class == "idle"

    def test_action_is_dispatched(self, daemon, settings, handlers):
        screenshot, _, _ = handlers

        resp = DaemonClient(settings).send_request(Request(action="selection-edit", options={"delay": 1}))

        assert resp.success is True
        assert resp.message == "Command executed successfully"
        screenshot.selection_edit.assert_called_once_with(1)

    def test_handler_failure(self, daemon, settings, handlers):
        _, recording, _ = handlers
        recording.pause_recording.side_effect = CommandError("no recording in progress")

        resp = DaemonClient(settings).send_request(Request(action="pause-recording"))

        assert resp.success is False
        assert resp.message == "no recording in progress"
        assert resp.state is not None

    def test_unknown_action(self, daemon, settings):
        resp = DaemonClient(settings).send_request(Request(action="nope"))

        assert resp.success is False
        assert resp.message == "Unknown action: nope"
        assert resp.state is None

    def test_malformed_payload(self, daemon, settings):
        reply = json.loads(_raw_exchange(settings.socket_path, b"{this is not json}\n"))

        assert reply["success"] is False
        assert reply["message"].startswith("Invalid request: ")

    def test_missing_action_field(self, daemon, settings):
        reply = json.loads(_raw_exchange(settings.socket_path, b'{"command": "execute"}\n'))

        assert reply["success"] is False
        assert reply["message"].startswith("Invalid request: ")

    def test_empty_connection_gets_no_reply(self, daemon, settings):
        assert _raw_exchange(settings.socket_path, b"") == b""

    def test_daemon_survives_bad_clients(self, daemon, settings):
        _raw_exchange(settings.socket_path, b"garbage")
        _raw_exchange(settings.socket_path, b"")

        assert DaemonClient(settings).get_waybar_status().css_class == "idle"


class TestConcurrency:
    def test_status_queries_while_handler_blocks(self, daemon, settings, handlers):
        screenshot, _, _ = handlers
        release = threading.Event()
        screenshot.selection_file.side_effect = lambda delay: release.wait(10)
        client = DaemonClient(settings)

        blocked = threading.Thread(target=client.send_request, args=(Request(action="selection-file"),))
        blocked.start()
        time.sleep(0.1)

        started = time.monotonic()
        status = client.get_waybar_status()
        elapsed = time.monotonic() - started
        release.set()
        blocked.join(timeout=5)

        assert status.css_class == "idle"
        assert elapsed < 2

    def test_concurrent_status_queries_agree(self, daemon, settings, state):
        state.set_recording(True, "/tmp/rec.avi", 4321)
        client = DaemonClient(settings)
        results = []
        errors = []

        def query():
            try:
                resp = client.send_request(Request(action="waybar-status"))
                results.append((parse_waybar_status(resp.message).css_class, resp.state.recording_pid))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=query) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        assert results == [("recording", 4321)] * 20
