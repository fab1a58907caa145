"""Unix-socket daemon: one request per connection, one thread per connection."""

import logging
import os
import signal
import socket
import threading
from typing import Optional

from easyshot.server.commands import OBSHandler, RecordingHandler, ScreenshotHandler
from easyshot.server.dispatcher import WAYBAR_STATUS, Dispatcher
from easyshot.server.retention import CleanupWorker
from easyshot.server.state import SharedState
from easyshot.shared.config import Settings, settings as default_settings
from easyshot.shared.errors import ConnectionClosed, ProtocolError
from easyshot.shared.models import Response
from easyshot.shared.protocol import read_request, send_message

logger = logging.getLogger(__name__)

ACCEPT_POLL_SECONDS = 1.0
LISTEN_BACKLOG = 64


class Daemon:
    """Owns the listening socket, the shared state and the handlers."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        debug: Optional[bool] = None,
        state: Optional[SharedState] = None,
        dispatcher: Optional[Dispatcher] = None,
    ):
        self.settings = settings or default_settings
        self.debug = self.settings.debug if debug is None else debug
        self.socket_path = self.settings.socket_path
        self.state = state or SharedState()
        self.dispatcher = dispatcher or Dispatcher(
            self.state,
            ScreenshotHandler(self.settings, self.state),
            RecordingHandler(self.settings, self.state),
            OBSHandler(self.settings, self.state),
        )
        self.cleanup_worker: Optional[CleanupWorker] = None
        self.server_socket: Optional[socket.socket] = None
        self.ready = threading.Event()
        self._stop_event = threading.Event()

    def _setup_socket(self) -> None:
        """Create and bind the Unix socket, replacing a stale one."""
        if self.socket_path.exists() or self.socket_path.is_symlink():
            self.socket_path.unlink()
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)

        self.server_socket = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.server_socket.bind(str(self.socket_path))
        os.chmod(str(self.socket_path), 0o600)
        self.server_socket.listen(LISTEN_BACKLOG)
        self.server_socket.settimeout(ACCEPT_POLL_SECONDS)

    def _handle_signal(self, signum, frame):
        logger.info("Received signal %s, shutting down...", signum)
        self.stop()

    def start(self, install_signal_handlers: bool = True) -> None:
        """Bind the socket and serve until :meth:`stop` is called.

        Raises:
            OSError: the socket could not be created, bound or chmod-ed.
        """
        try:
            self._setup_socket()
        except OSError:
            if self.server_socket is not None:
                self.server_socket.close()
            raise
        logger.info("Daemon started, listening on %s", self.socket_path)

        self.cleanup_worker = CleanupWorker(self.settings)
        self.cleanup_worker.start()

        if install_signal_handlers and threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGTERM, self._handle_signal)
            signal.signal(signal.SIGINT, self._handle_signal)

        self.ready.set()
        self._serve()

    def _serve(self) -> None:
        while not self._stop_event.is_set():
            try:
                client_socket, _ = self.server_socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._stop_event.is_set():
                    break
                logger.error("Accept error: %s", e)
                continue

            thread = threading.Thread(
                target=self._handle_connection,
                args=(client_socket,),
                daemon=True,
                name="EasyshotConnection",
            )
            thread.start()

        logger.info("Daemon stopped")

    def stop(self) -> None:
        if self._stop_event.is_set():
            return
        logger.info("Stopping daemon")
        self._stop_event.set()

        if self.server_socket is not None:
            self.server_socket.close()
        try:
            self.socket_path.unlink()
        except FileNotFoundError:
            pass
        if self.cleanup_worker is not None:
            self.cleanup_worker.stop()

    def _handle_connection(self, client_socket: socket.socket) -> None:
        with client_socket:
            client_socket.settimeout(self.settings.server_io_timeout)
            try:
                request = read_request(client_socket)
            except ConnectionClosed:
                return
            except ProtocolError as e:
                logger.warning("Error decoding request: %s", e)
                self._reply(client_socket, Response(success=False, message=f"Invalid request: {e}"))
                return
            except OSError as e:
                logger.error("Error reading request: %s", e)
                return

            if request.action != WAYBAR_STATUS or self.debug:
                logger.info("Received command: %s, action: %s", request.command, request.action)

            self._reply(client_socket, self.dispatcher.dispatch(request))

    def _reply(self, client_socket: socket.socket, response: Response) -> None:
        try:
            send_message(client_socket, response)
        except OSError as e:
            logger.error("Error sending response: %s", e)
