"""Server lifecycle state management."""

import threading
import time

from static_server.domain.connection_id import get_component_logger

LIFECYCLE_LOGGER = get_component_logger("lifecycle")


class ServerLifecycle:
    """Tracks the stop request and the connections still being handled."""

    def __init__(self, logger=None) -> None:
        self._logger = logger or LIFECYCLE_LOGGER
        self._stop_event = threading.Event()
        self._idle = threading.Condition()
        self._active_connections = 0

    def should_stop(self) -> bool:
        """Check if the server should stop accepting new connections."""
        return self._stop_event.is_set()

    def begin_stopping(self) -> bool:
        """Flag the server as stopping; return False if it already was."""
        if self._stop_event.is_set():
            return False
        self._stop_event.set()
        self._logger.info("Stop requested", extra={"event": "stop_requested"})
        return True

    def connection_opened(self) -> None:
        """Count a connection handed to the worker pool."""
        with self._idle:
            self._active_connections += 1

    def connection_closed(self) -> None:
        """Count a connection whose handler has finished."""
        with self._idle:
            if self._active_connections > 0:
                self._active_connections -= 1
            if self._active_connections == 0:
                self._idle.notify_all()

    def active_connection_count(self) -> int:
        """Return the number of connections queued or being handled."""
        with self._idle:
            return self._active_connections

    def wait_for_connections(self, timeout: float) -> bool:
        """Wait for all tracked connections to finish within the timeout."""
        deadline = time.monotonic() + timeout
        with self._idle:
            while self._active_connections:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self._logger.warning(
                        "Shutdown timeout exceeded",
                        extra={
                            "event": "shutdown_timeout",
                            "active_connections": self._active_connections,
                        },
                    )
                    return False
                self._idle.wait(remaining)
        return True
