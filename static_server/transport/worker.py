"""Worker logic for handling one client connection."""

import logging
import socket
import time
from typing import Optional

from static_server.domain.connection_id import (
    clear_connection_id,
    generate_connection_id,
    get_component_logger,
    set_connection_id,
)
from static_server.domain.http_types import HttpResponse
from static_server.domain.response_builders import (
    bad_request_response,
    internal_error_response,
    method_not_allowed_response,
)
from static_server.handlers.file_handler import serve_file
from static_server.pipeline.io import (
    RECV_SIZE,
    RequestTimeout,
    ResponseWriter,
    read_request_line,
)
from static_server.pipeline.request_line import (
    MalformedRequest,
    decode_request_line,
    parse_request_line,
)
from static_server.transport.context import WorkerContext

WORKER_LOGGER = get_component_logger("transport.worker")

RETRIEVAL_METHOD = "GET"
LINGER_SECONDS = 0.5


def _read_and_route(
    client_socket: socket.socket,
    context: WorkerContext,
    logger,
    client_addr_str: str,
) -> Optional[HttpResponse]:
    """Read the request line and build its response; None means stay silent."""
    config = context.config
    try:
        raw_line = read_request_line(
            client_socket, config.request_timeout, config.max_request_line_bytes
        )
        line = decode_request_line(raw_line) if raw_line is not None else ""
        if not line:
            if logger.logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "Connection closed without a request line",
                    extra={"event": "empty_request", "client": client_addr_str},
                )
            return None
        request = parse_request_line(line)
    except MalformedRequest as error:
        logger.warning(
            "Malformed request received",
            extra={
                "event": "malformed_request",
                "client": client_addr_str,
                "error": str(error),
            },
        )
        return bad_request_response()
    finally:
        client_socket.settimeout(config.socket_timeout or None)

    if logger.logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Request line parsed",
            extra={
                "event": "request_line_parsed",
                "method": request.method,
                "route": request.path,
            },
        )

    if request.method != RETRIEVAL_METHOD:
        logger.info(
            "Method not allowed",
            extra={
                "event": "method_not_allowed",
                "method": request.method,
                "route": request.path,
            },
        )
        return method_not_allowed_response()

    return serve_file(request.path, config.root_directory)


def _send_internal_error(writer: ResponseWriter, logger) -> Optional[int]:
    """Attempt a 500 if nothing has been written; return the status sent."""
    if writer.response_started:
        return None
    try:
        writer.send(internal_error_response())
    except OSError as error:
        logger.debug(
            "Could not deliver error response",
            extra={
                "event": "error_response_failed",
                "error_type": type(error).__name__,
            },
        )
        return None
    return 500


def _drain_unread(client_socket: socket.socket) -> None:
    """Discard request bytes the client is still sending, for a bounded time.

    Closing with unread data makes the kernel answer with a reset, which can
    destroy the response before the client has read it.
    """
    deadline = time.monotonic() + LINGER_SECONDS
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return
        client_socket.settimeout(remaining)
        if not client_socket.recv(RECV_SIZE):
            return


def _cleanup_connection(
    client_socket: socket.socket,
    context: WorkerContext,
    logger,
    client_addr_str: str,
) -> None:
    try:
        client_socket.shutdown(socket.SHUT_WR)
        _drain_unread(client_socket)
    except OSError:
        pass
    client_socket.close()

    if context.admission is not None:
        context.admission.release()
    if context.lifecycle is not None:
        context.lifecycle.connection_closed()

    logger.debug(
        "Socket closed",
        extra={"event": "socket_closed", "client": client_addr_str},
    )
    clear_connection_id()


def handle_connection(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Serve a single request on ``client_socket`` and close it.

    Every failure is contained here: nothing propagates to the worker pool,
    and the socket is closed exactly once on every path.
    """
    logger = context.logger or WORKER_LOGGER
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    writer = ResponseWriter(client_socket, context.config.chunk_size)
    started_ns = time.monotonic_ns()
    status_code: Optional[int] = None

    set_connection_id(generate_connection_id())
    logger.debug(
        "Request processing started",
        extra={"event": "request_started", "client": client_addr_str},
    )

    try:
        response = _read_and_route(client_socket, context, logger, client_addr_str)
        if response is not None:
            status_code = response.status_code
            writer.send(response)
    except RequestTimeout:
        logger.warning(
            "Request line not received before deadline",
            extra={
                "event": "request_timeout",
                "client": client_addr_str,
                "request_timeout": context.config.request_timeout,
            },
        )
    except (ConnectionError, TimeoutError) as error:
        logger.warning(
            "Client connection lost",
            extra={
                "event": "connection_lost",
                "client": client_addr_str,
                "error_type": type(error).__name__,
                "bytes_out": writer.bytes_sent,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        logger.error(
            "Unexpected error while handling connection",
            extra={
                "event": "connection_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
        status_code = _send_internal_error(writer, logger)
    finally:
        logger.debug(
            "Request processing complete",
            extra={
                "event": "request_complete",
                "client": client_addr_str,
                "status_code": status_code,
                "bytes_out": writer.bytes_sent,
                "duration_ms": (time.monotonic_ns() - started_ns) // 1_000_000,
            },
        )
        _cleanup_connection(client_socket, context, logger, client_addr_str)
