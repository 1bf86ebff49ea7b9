"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value is not None else default


DEFAULT_PORT = 8080
DEFAULT_ROOT_DIRECTORY = "webapp"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_WORKER_COUNT = _env_int("STATIC_SERVER_WORKERS", 10)
DEFAULT_QUEUE_LIMIT = _env_int("STATIC_SERVER_QUEUE_LIMIT", 100)
DEFAULT_REQUEST_TIMEOUT = _env_float("STATIC_SERVER_REQUEST_TIMEOUT", 30.0)
DEFAULT_SOCKET_TIMEOUT = _env_float("STATIC_SERVER_SOCKET_TIMEOUT", 60.0)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_float(
    "STATIC_SERVER_SHUTDOWN_GRACE_SECONDS", 30.0
)
DEFAULT_MAX_REQUEST_LINE_BYTES = _env_int("STATIC_SERVER_MAX_REQUEST_LINE_BYTES", 8192)
DEFAULT_CHUNK_SIZE = _env_int("STATIC_SERVER_CHUNK_SIZE", 64 * 1024)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass(frozen=True)
class ServerConfig:
    """Immutable settings shared read-only by the listener and every worker.

    ``queue_limit`` and ``max_request_line_bytes`` use 0 for unlimited.
    """

    # pylint: disable=too-many-instance-attributes
    port: int
    root_directory: str
    host: str = DEFAULT_HOST
    worker_count: int = DEFAULT_WORKER_COUNT
    queue_limit: int = DEFAULT_QUEUE_LIMIT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    socket_timeout: float = DEFAULT_SOCKET_TIMEOUT
    shutdown_grace_seconds: float = DEFAULT_SHUTDOWN_GRACE_SECONDS
    max_request_line_bytes: int = DEFAULT_MAX_REQUEST_LINE_BYTES
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port must be between 0 and 65535, got {self.port}")
        if self.worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        for name in (
            "queue_limit",
            "request_timeout",
            "socket_timeout",
            "shutdown_grace_seconds",
            "max_request_line_bytes",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(description="Static file HTTP server")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--directory",
        default=DEFAULT_ROOT_DIRECTORY,
        help="Root directory to serve files from",
    )
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKER_COUNT,
        help="Number of worker threads handling connections",
    )
    parser.add_argument(
        "--queue-limit",
        type=int,
        default=DEFAULT_QUEUE_LIMIT,
        help="Connections allowed to wait for a worker (0 for unlimited)",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT,
        help="Seconds a client has to send the request line",
    )
    parser.add_argument(
        "--socket-timeout",
        type=float,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Socket timeout in seconds while writing a response",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=float,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for in-flight connections on shutdown",
    )
    parser.add_argument(
        "--max-request-line-bytes",
        type=int,
        default=DEFAULT_MAX_REQUEST_LINE_BYTES,
        help="Longest accepted request line in bytes (0 for unlimited)",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help="Bytes read from disk per write when streaming files",
    )
    default_log_level = os.getenv("STATIC_SERVER_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("STATIC_SERVER_LOG_DESTINATION", "stdout")
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=LOG_LEVELS,
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default="json",
        choices=["json", "text"],
        help="Structured JSON records or plain text lines",
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Build the immutable server configuration from parsed CLI arguments."""
    return ServerConfig(
        port=args.port,
        root_directory=args.directory,
        host=args.host,
        worker_count=args.workers,
        queue_limit=args.queue_limit,
        request_timeout=args.request_timeout,
        socket_timeout=args.socket_timeout,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
        max_request_line_bytes=args.max_request_line_bytes,
        chunk_size=args.chunk_size,
    )
