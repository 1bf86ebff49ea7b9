"""Listening socket ownership, the accept loop and worker dispatch."""

import logging
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from static_server.bootstrap.config import ServerConfig
from static_server.bootstrap.socket_factory import create_server_socket
from static_server.domain.connection_id import get_component_logger
from static_server.domain.response_builders import service_unavailable_response
from static_server.lifecycle.state import ServerLifecycle
from static_server.pipeline.io import ResponseWriter
from static_server.transport.admission import AdmissionLimiter
from static_server.transport.context import WorkerContext
from static_server.transport.worker import handle_connection

ACCEPT_LOGGER = get_component_logger("transport.accept")

REJECTION_SEND_TIMEOUT = 1.0


class Listener:
    """Accepts connections and dispatches each one to a fixed-size worker pool.

    ``start()`` blocks in the accept loop until ``stop()`` is called from
    another thread or a signal handler. Connections already accepted are
    allowed to finish; stopping only ends acceptance.
    """

    def __init__(self, config: ServerConfig, logger=None) -> None:
        self._config = config
        self._logger = logger or ACCEPT_LOGGER
        self._lifecycle = ServerLifecycle()
        self._admission = AdmissionLimiter(config.worker_count, config.queue_limit)
        self._pool = ThreadPoolExecutor(
            max_workers=config.worker_count, thread_name_prefix="static-worker"
        )
        self._context = WorkerContext(
            config=config, admission=self._admission, lifecycle=self._lifecycle
        )
        self._socket_lock = threading.Lock()
        self._server_socket: Optional[socket.socket] = None
        self._server_address: Optional[tuple[str, int]] = None

    @property
    def config(self) -> ServerConfig:
        """Return the configuration this listener was built with."""
        return self._config

    @property
    def server_address(self) -> Optional[tuple[str, int]]:
        """Return the bound (host, port), or None before ``bind()``."""
        return self._server_address

    @property
    def lifecycle(self) -> ServerLifecycle:
        """Return the lifecycle tracker shared with the workers."""
        return self._lifecycle

    def bind(self) -> tuple[str, int]:
        """Bind the listening socket, raising BindError when the port is taken."""
        with self._socket_lock:
            if self._server_socket is None:
                self._server_socket = create_server_socket(self._config)
                self._server_address = self._server_socket.getsockname()[:2]
        self._logger.info(
            "Server listening for connections",
            extra={
                "event": "server_listening",
                "host": self._server_address[0],
                "port": self._server_address[1],
                "directory": self._config.root_directory,
                "workers": self._config.worker_count,
                "queue_limit": self._config.queue_limit,
            },
        )
        return self._server_address

    def start(self) -> None:
        """Bind if needed and run the accept loop until stopped."""
        if self._server_socket is None:
            self.bind()
        self.serve_forever()

    def serve_forever(self) -> None:
        """Accept connections until ``stop()``; then wait for in-flight work."""
        server_socket = self._server_socket
        if server_socket is None:
            raise RuntimeError("bind() must be called before serve_forever()")

        try:
            while not self._lifecycle.should_stop():
                try:
                    client_socket, client_address = server_socket.accept()
                except socket.timeout:
                    continue
                except OSError as error:
                    if self._lifecycle.should_stop():
                        break
                    self._logger.error(
                        "Socket accept failed",
                        extra={
                            "event": "accept_error",
                            "error_type": type(error).__name__,
                        },
                    )
                    continue
                self._dispatch(client_socket, client_address)
        finally:
            self.stop()
            self._logger.info(
                "Waiting for active connections to complete",
                extra={
                    "event": "shutdown_waiting",
                    "grace_seconds": self._config.shutdown_grace_seconds,
                    "active_connections": self._lifecycle.active_connection_count(),
                },
            )
            self._lifecycle.wait_for_connections(self._config.shutdown_grace_seconds)
            self._logger.info("Server stopped", extra={"event": "server_stopped"})

    def request_stop(self) -> None:
        """Flag the accept loop to stop on its next poll.

        Only sets an event, so it is safe to call from a signal handler that
        interrupted the accept loop itself; the loop then calls ``stop()``.
        """
        self._lifecycle.begin_stopping()

    def stop(self) -> None:
        """Stop accepting connections; in-flight and queued ones still finish."""
        self._lifecycle.begin_stopping()
        with self._socket_lock:
            server_socket = self._server_socket
        if server_socket is not None:
            server_socket.close()
        self._pool.shutdown(wait=False)

    def wait_for_connections(self, timeout: float) -> bool:
        """Return True once every accepted connection has been closed."""
        return self._lifecycle.wait_for_connections(timeout)

    def _dispatch(
        self, client_socket: socket.socket, client_address: tuple[str, int]
    ) -> None:
        client_addr_str = f"{client_address[0]}:{client_address[1]}"
        if self._logger.logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(
                "Client connection accepted",
                extra={"event": "client_accepted", "client": client_addr_str},
            )

        if not self._admission.acquire():
            self._logger.warning(
                "Admission limit reached",
                extra={
                    "event": "admission_rejected",
                    "client": client_addr_str,
                    "capacity": self._admission.capacity,
                },
            )
            self._reject(client_socket)
            return

        self._lifecycle.connection_opened()
        try:
            self._pool.submit(
                handle_connection, client_socket, client_address, self._context
            )
        except RuntimeError:
            # Pool already shut down by a concurrent stop().
            self._admission.release()
            self._lifecycle.connection_closed()
            self._reject(client_socket)

    def _reject(self, client_socket: socket.socket) -> None:
        try:
            client_socket.settimeout(REJECTION_SEND_TIMEOUT)
            ResponseWriter(client_socket, self._config.chunk_size).send(
                service_unavailable_response()
            )
        except OSError as error:
            self._logger.debug(
                "Could not deliver rejection",
                extra={
                    "event": "error_response_failed",
                    "error_type": type(error).__name__,
                },
            )
        finally:
            client_socket.close()
