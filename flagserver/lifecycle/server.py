"""
HTTP server lifecycle.

ServerLifecycle owns the listening socket and the uvicorn server running the
application. start() blocks the calling thread until the server stops;
stop() may be called from any other thread to drain and stop it.
"""
import contextlib
import logging
import socket
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

import uvicorn
from starlette.types import ASGIApp

from flagserver.config import DEFAULT_MAX_HEADER_BYTES, Settings
from flagserver.errors import ServerLifecycleError, ServerListenError, ShutdownTimeoutError
from flagserver.middleware.timeout import RequestTimeoutMiddleware

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 2048


@dataclass(frozen=True)
class ServerConfig:
    """Immutable listener configuration, fixed at construction."""

    host: str = "0.0.0.0"
    port: int = 3000
    read_timeout: float = 15.0
    write_timeout: float = 60.0
    idle_timeout: int = 30
    max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServerConfig":
        return cls(
            host=settings.host,
            port=settings.port,
            read_timeout=settings.read_timeout_seconds,
            write_timeout=settings.write_timeout_seconds,
            idle_timeout=settings.idle_timeout_seconds,
            max_header_bytes=settings.max_header_bytes,
        )


class _UvicornServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the ShutdownCoordinator."""

    @contextlib.contextmanager
    def capture_signals(self):
        yield

    def install_signal_handlers(self) -> None:
        pass


class ServerLifecycle:
    """
    Owns the listening socket and the HTTP server instance.

    Example:
        >>> lifecycle = ServerLifecycle(app, ServerConfig(port=3000))
        >>> lifecycle.start()  # blocks until stop() is called elsewhere
    """

    def __init__(self, app: ASGIApp, config: ServerConfig):
        self.app = app
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._address: Optional[Tuple[str, int]] = None
        self._server: Optional[_UvicornServer] = None
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._start_called = False
        self._stop_requested = False

    @property
    def started(self) -> bool:
        """True once the server is accepting connections."""
        return self._server is not None and self._server.started

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """Bound (host, port), useful when the configured port is 0."""
        return self._address

    def _bind(self) -> socket.socket:
        host, port = self.config.host, self.config.port
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(LISTEN_BACKLOG)
            self._address = tuple(sock.getsockname()[:2])
        except OSError as e:
            sock.close()
            raise ServerListenError(host, port, e.strerror or str(e)) from e
        return sock

    def _build_server(self) -> _UvicornServer:
        app = RequestTimeoutMiddleware(
            self.app,
            read_timeout=self.config.read_timeout,
            write_timeout=self.config.write_timeout,
        )
        uvicorn_config = uvicorn.Config(
            app,
            # httptools ignores h11_max_incomplete_event_size
            http="h11",
            timeout_keep_alive=self.config.idle_timeout,
            h11_max_incomplete_event_size=self.config.max_header_bytes,
            backlog=LISTEN_BACKLOG,
            log_config=None,
        )
        return _UvicornServer(uvicorn_config)

    def start(self) -> None:
        """
        Bind the listening socket and serve until stopped.

        Returns normally after a graceful stop().

        Raises:
            ServerListenError: If the socket cannot be bound; no accept loop starts
            ServerLifecycleError: If start() has already been called
        """
        with self._lock:
            if self._start_called:
                raise ServerLifecycleError("server has already been started")
            self._start_called = True
            if self._stop_requested:
                logger.info("Server stopped before it was started")
                self._stopped.set()
                return

            try:
                self._socket = self._bind()
            except ServerListenError:
                self._stopped.set()
                raise
            self._server = self._build_server()

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")

        try:
            self._server.run(sockets=[self._socket])
        finally:
            self._socket.close()
            self._stopped.set()
            logger.info("Server stopped")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop accepting connections and wait for in-flight requests to finish.

        Args:
            timeout: Seconds to wait for the drain, None waits indefinitely

        Raises:
            ShutdownTimeoutError: If the drain does not finish before the timeout
        """
        with self._lock:
            self._stop_requested = True
            if not self._start_called:
                return
            if self._server is not None:
                self._server.should_exit = True

        if not self._stopped.wait(timeout):
            raise ShutdownTimeoutError(timeout)
