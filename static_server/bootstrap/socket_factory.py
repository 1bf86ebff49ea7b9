"""Listening socket creation."""

import socket

from static_server.bootstrap.config import ServerConfig

ACCEPT_POLL_SECONDS = 0.5
LISTEN_BACKLOG = 128


class BindError(OSError):
    """Raised when the listening socket cannot be bound to the configured port."""


def create_server_socket(config: ServerConfig) -> socket.socket:
    """Bind and listen on the configured address.

    The socket gets a short accept timeout so the accept loop can notice a
    stop request without relying on close() to interrupt a blocked accept.
    """
    try:
        server_socket = socket.create_server(
            (config.host, config.port), backlog=LISTEN_BACKLOG
        )
    except OSError as error:
        raise BindError(
            error.errno, f"cannot bind {config.host}:{config.port}: {error.strerror}"
        ) from error
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket
