"""Shared fixtures for unit tests."""

import logging
from pathlib import Path

import pytest

from static_server.bootstrap.config import ServerConfig


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Ensure logs propagate to root so caplog can catch them."""
    logger = logging.getLogger("static_server")
    old_propagate = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = old_propagate


@pytest.fixture(name="webroot")
def fixture_webroot(tmp_path: Path) -> Path:
    """Create a document root holding a small set of servable files."""
    root = tmp_path / "webapp"
    root.mkdir()
    (root / "index.html").write_bytes(b"<h1>Hi</h1>")
    (root / "style.css").write_bytes(b"body { color: red; }")
    (root / "assets").mkdir()
    (root / "assets" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n" + bytes(range(256)))
    (tmp_path / "secret.txt").write_bytes(b"outside the root")
    return root


@pytest.fixture(name="config")
def fixture_config(webroot: Path) -> ServerConfig:
    """Build a config pointing at the test document root."""
    return ServerConfig(
        port=0,
        root_directory=str(webroot),
        host="127.0.0.1",
        request_timeout=2.0,
        socket_timeout=2.0,
        shutdown_grace_seconds=2.0,
    )
