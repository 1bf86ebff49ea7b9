"""Shared HTTP type definitions to avoid circular imports."""

from dataclasses import dataclass, field
from typing import BinaryIO, Optional

HTTP_VERSION = "HTTP/1.1"


@dataclass(frozen=True)
class ParsedRequest:
    """Method and path extracted from a single request line."""

    method: str
    path: str


@dataclass
class HttpResponse:
    """Represents an HTTP response to be written to a client connection.

    ``body`` holds small in-memory payloads such as error pages. File
    responses leave it empty and hand the writer an open ``body_stream``
    instead, together with the ``content_length`` taken from the file's
    metadata so the body never has to be buffered.
    """

    status_code: int
    reason: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    body_stream: Optional[BinaryIO] = None
    content_length: Optional[int] = None

    @property
    def status_line(self) -> str:
        """Return the HTTP status line without its terminator."""
        return f"{HTTP_VERSION} {self.status_code} {self.reason}"

    def declared_length(self) -> int:
        """Return the value advertised in the Content-Length header."""
        if self.content_length is not None:
            return self.content_length
        return len(self.body)

    def close(self) -> None:
        """Release the body stream if it has not been consumed."""
        if self.body_stream is not None:
            self.body_stream.close()
