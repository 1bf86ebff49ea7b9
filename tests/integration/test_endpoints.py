"""Integration tests exercising the server over real sockets."""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import pytest
import requests

from tests.utils.http import send_raw_request
from tests.utils.webroot import INDEX_BODY, STYLE_BODY

pytestmark = pytest.mark.integration

if TYPE_CHECKING:
    from tests.conftest import ServerProcessInfo


def test_index_is_served_as_html(base_url: str) -> None:
    """An existing HTML file comes back with its type and exact length."""

    response = requests.get(f"{base_url}/index.html", timeout=5)
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/html"
    assert response.headers["Content-Length"] == str(len(INDEX_BODY))
    assert response.headers["Connection"] == "close"
    assert response.content == INDEX_BODY


def test_stylesheet_is_served_as_css(base_url: str) -> None:
    """CSS files are labelled text/css."""

    response = requests.get(f"{base_url}/style.css", timeout=5)
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/css"
    assert response.content == STYLE_BODY


def test_nested_binary_file(base_url: str, server_process: "ServerProcessInfo") -> None:
    """Files in subdirectories are served byte for byte."""

    response = requests.get(f"{base_url}/images/pixel.png", timeout=5)
    expected = (server_process["directory"] / "images" / "pixel.png").read_bytes()
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "image/png"
    assert response.content == expected


def test_query_string_is_ignored(base_url: str) -> None:
    """Query parameters do not change the file that is served."""

    response = requests.get(f"{base_url}/index.html?cache=bust", timeout=5)
    assert response.status_code == 200
    assert response.content == INDEX_BODY


def test_missing_file_returns_404(base_url: str) -> None:
    """Unknown paths produce the HTML 404 page."""

    response = requests.get(f"{base_url}/missing.png", timeout=5)
    assert response.status_code == 404
    assert response.headers["Content-Type"] == "text/html"
    assert response.content == b"<h1>404 Not Found</h1>"


def test_directory_returns_404(base_url: str) -> None:
    """Directories, including the root, are not listed."""

    assert requests.get(f"{base_url}/", timeout=5).status_code == 404
    assert requests.get(f"{base_url}/images", timeout=5).status_code == 404


def test_post_returns_405(base_url: str) -> None:
    """Only GET is supported."""

    response = requests.post(f"{base_url}/index.html", data=b"payload", timeout=5)
    assert response.status_code == 405
    assert response.headers["Allow"] == "GET"
    assert response.content == b"<h1>405 Method Not Allowed</h1>"


def test_malformed_request_line_returns_400(
    server_process: "ServerProcessInfo",
) -> None:
    """A request line without a path is rejected."""

    response = send_raw_request(
        server_process["host"], server_process["port"], b"GET\r\n\r\n"
    )
    assert response.status_code == 400
    assert response.body == b"<h1>400 Bad Request</h1>"


def test_bare_lf_request_line_is_accepted(server_process: "ServerProcessInfo") -> None:
    """Clients terminating the line with LF alone are still understood."""

    response = send_raw_request(
        server_process["host"], server_process["port"], b"GET /index.html\n\n"
    )
    assert response.status_code == 200
    assert response.body == INDEX_BODY


def test_traversal_outside_root_returns_404(
    server_process: "ServerProcessInfo",
) -> None:
    """Parent segments cannot reach files above the document root."""

    outside = server_process["directory"].parent / "outside.txt"
    outside.write_bytes(b"private")
    response = send_raw_request(
        server_process["host"],
        server_process["port"],
        b"GET /../outside.txt HTTP/1.1\r\nHost: localhost\r\n\r\n",
    )
    assert response.status_code == 404
    assert b"private" not in response.body


def test_repeated_gets_are_identical(base_url: str) -> None:
    """Serving a file has no side effects on later requests."""

    first = requests.get(f"{base_url}/style.css", timeout=5)
    second = requests.get(f"{base_url}/style.css", timeout=5)
    assert first.status_code == second.status_code == 200
    assert first.content == second.content
    assert first.headers["Content-Type"] == second.headers["Content-Type"]


def test_concurrent_clients_beyond_worker_count(base_url: str) -> None:
    """More simultaneous clients than workers are all answered."""

    def fetch(_index: int) -> tuple[int, bytes]:
        response = requests.get(f"{base_url}/index.html", timeout=10)
        return response.status_code, response.content

    with ThreadPoolExecutor(max_workers=15) as pool:
        results = list(pool.map(fetch, range(15)))

    assert all(status == 200 for status, _ in results)
    assert all(body == INDEX_BODY for _, body in results)


def test_requests_are_logged_as_json(
    base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """The log destination receives structured records."""

    requests.get(f"{base_url}/missing.png", timeout=5)
    log_file = server_process["log_file"]
    records = [
        json.loads(line) for line in log_file.read_text().splitlines() if line.strip()
    ]
    events = {record.get("event") for record in records}
    assert "server_listening" in events
    assert "file_not_found" in events
    assert all("connection_id" in record for record in records)
