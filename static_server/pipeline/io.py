"""HTTP input/output on a client connection."""

import logging
import socket
import time
from typing import Optional

from static_server.domain.connection_id import get_component_logger
from static_server.domain.http_types import HttpResponse
from static_server.pipeline.request_line import MalformedRequest

IO_LOGGER = get_component_logger("io")

RECV_SIZE = 4096
LINE_TERMINATOR = b"\n"
CRLF = "\r\n"


class RequestTimeout(TimeoutError):
    """Raised when the client does not deliver the request line in time."""


def _recv_with_deadline(
    client_socket: socket.socket, deadline_ns: Optional[int]
) -> bytes:
    """Receive data from socket with a deadline, raising RequestTimeout if exceeded."""
    if deadline_ns is None:
        client_socket.settimeout(None)
        return client_socket.recv(RECV_SIZE)
    remaining_ns = deadline_ns - time.monotonic_ns()
    if remaining_ns <= 0:
        raise RequestTimeout("Request deadline exceeded")
    client_socket.settimeout(remaining_ns / 1_000_000_000)
    try:
        return client_socket.recv(RECV_SIZE)
    except socket.timeout as exc:
        raise RequestTimeout("Request deadline exceeded") from exc


def read_request_line(
    client_socket: socket.socket, timeout: float, max_bytes: int = 0
) -> Optional[bytes]:
    """Read bytes from the socket until the first line terminator.

    Returns ``None`` when the client closes the connection before sending
    anything. A client that closes mid-line yields whatever was received.
    ``timeout`` bounds the whole line rather than each read. A ``timeout`` or
    ``max_bytes`` of 0 disables that limit.
    """
    deadline_ns = None
    if timeout > 0:
        deadline_ns = time.monotonic_ns() + int(timeout * 1_000_000_000)
    buffer = b""
    while LINE_TERMINATOR not in buffer:
        if max_bytes and len(buffer) > max_bytes:
            raise MalformedRequest("Request line too long")
        chunk = _recv_with_deadline(client_socket, deadline_ns)
        if not chunk:
            return buffer or None
        buffer += chunk

    line, _, _ = buffer.partition(LINE_TERMINATOR)
    if max_bytes and len(line) > max_bytes:
        raise MalformedRequest("Request line too long")
    return line + LINE_TERMINATOR


def serialize_head(response: HttpResponse) -> bytes:
    """Render the status line and header block, including the blank line."""
    headers = dict(response.headers)
    headers["Content-Length"] = str(response.declared_length())
    headers["Connection"] = "close"
    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    return (CRLF.join(header_lines) + CRLF + CRLF).encode("latin-1")


class ResponseWriter:
    """Frames responses onto a client socket and tracks what reached the wire."""

    def __init__(
        self, client_socket: socket.socket, chunk_size: int, logger=None
    ) -> None:
        self._socket = client_socket
        self._chunk_size = chunk_size
        self._logger = logger or IO_LOGGER
        self.response_started = False
        self.bytes_sent = 0

    def send(self, response: HttpResponse) -> int:
        """Write the response, streaming file bodies chunk by chunk.

        ``response_started`` flips before the first byte is attempted, since a
        failed sendall may still have put part of the head on the wire.
        """
        try:
            self.response_started = True
            self._sendall(serialize_head(response))
            if response.body:
                self._sendall(response.body)
            if response.body_stream is not None:
                self._stream(response)
        finally:
            response.close()
        if self._logger.logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(
                "Sent response",
                extra={
                    "event": "response_sent",
                    "status_code": response.status_code,
                    "bytes_out": self.bytes_sent,
                },
            )
        return self.bytes_sent

    def _stream(self, response: HttpResponse) -> None:
        while True:
            chunk = response.body_stream.read(self._chunk_size)
            if not chunk:
                break
            self._sendall(chunk)

    def _sendall(self, payload: bytes) -> None:
        self._socket.sendall(payload)
        self.bytes_sent += len(payload)
