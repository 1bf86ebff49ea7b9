"""Static file HTTP server entry point."""

import signal
import sys
from typing import Optional

from static_server.bootstrap.config import config_from_args, parse_cli_args
from static_server.bootstrap.logging_setup import configure_logging
from static_server.bootstrap.socket_factory import BindError
from static_server.domain.connection_id import get_component_logger
from static_server.transport.accept_loop import Listener

SERVER_LOGGER = get_component_logger("server")


def main(argv: Optional[list[str]] = None) -> int:
    """Serve files from the configured directory until SIGTERM or SIGINT."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination, args.log_format == "json")

    try:
        config = config_from_args(args)
    except ValueError as error:
        SERVER_LOGGER.critical(
            "Invalid configuration",
            extra={"event": "invalid_config", "error": str(error)},
        )
        return 2

    listener = Listener(config)

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal",
            extra={"event": "shutdown_signal", "signal": signum},
        )
        listener.request_stop()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting static file server",
        extra={
            "event": "server_starting",
            "host": config.host,
            "port": config.port,
            "directory": config.root_directory,
            "workers": config.worker_count,
            "queue_limit": config.queue_limit,
            "request_timeout": config.request_timeout,
            "socket_timeout": config.socket_timeout,
            "grace_seconds": config.shutdown_grace_seconds,
        },
    )

    try:
        listener.bind()
    except BindError as error:
        SERVER_LOGGER.critical(
            "Failed to bind listening socket",
            extra={
                "event": "bind_failed",
                "host": config.host,
                "port": config.port,
                "error": str(error),
            },
        )
        return 1

    listener.serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
