"""Pure HTTP response builders."""

from typing import BinaryIO, Optional

from static_server.domain.http_types import HttpResponse

ALLOWED_METHODS = ("GET",)


def error_body(status_code: int, reason: str) -> bytes:
    """Render the minimal HTML fragment used for every error response."""
    return f"<h1>{status_code} {reason}</h1>".encode()


def error_response(
    status_code: int, reason: str, extra_headers: Optional[dict[str, str]] = None
) -> HttpResponse:
    """Build an HTML error response for the given status."""
    headers = {"Content-Type": "text/html"}
    if extra_headers:
        headers.update(extra_headers)
    return HttpResponse(status_code, reason, headers, error_body(status_code, reason))


def file_response(
    content_type: str, body_stream: BinaryIO, content_length: int
) -> HttpResponse:
    """Produce a 200 response that streams an already opened file."""
    return HttpResponse(
        200,
        "OK",
        {"Content-Type": content_type},
        body_stream=body_stream,
        content_length=content_length,
    )


def bad_request_response() -> HttpResponse:
    """Produce a 400 response for a malformed request line."""
    return error_response(400, "Bad Request")


def not_found_response() -> HttpResponse:
    """Produce a 404 response for missing files and directories."""
    return error_response(404, "Not Found")


def method_not_allowed_response() -> HttpResponse:
    """Produce a 405 response enumerating the supported HTTP methods."""
    return error_response(
        405, "Method Not Allowed", {"Allow": ", ".join(ALLOWED_METHODS)}
    )


def internal_error_response() -> HttpResponse:
    """Produce the best-effort 500 sent after an unexpected failure."""
    return error_response(500, "Internal Server Error")


def service_unavailable_response() -> HttpResponse:
    """Produce a 503 response for connections refused by admission control."""
    return error_response(503, "Service Unavailable", {"Retry-After": "1"})
