"""Request line decoding and parsing."""

from static_server.domain.http_types import ParsedRequest


class MalformedRequest(ValueError):
    """Raised when a request line cannot be turned into a method and path."""


def decode_request_line(raw_line: bytes) -> str:
    """Decode raw request line bytes, dropping the LF or CRLF terminator.

    Bytes that are not valid UTF-8 are kept as lone surrogates, so the
    path still maps to the same file name bytes on disk.
    """
    line = raw_line.decode("utf-8", errors="surrogateescape")
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def parse_request_line(request_line: str) -> ParsedRequest:
    """Parse the method and path from a request line.

    Tokens are separated by runs of whitespace and anything after the path
    token, including the protocol version, is ignored. The query string is
    cut off at the first ``?``; the remaining path is not percent-decoded.
    """
    tokens = request_line.split()
    if len(tokens) < 2:
        raise MalformedRequest("Invalid request line")
    method, target = tokens[0], tokens[1]
    path = target.split("?", 1)[0]
    return ParsedRequest(method, path)
