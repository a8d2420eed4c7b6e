"""HTTP server supporting echo, user-agent, and file operations."""

import logging
import signal
import sys

from server.bootstrap.config import build_server_config, parse_cli_args
from server.bootstrap.logging_setup import configure_logging
from server.domain.correlation_id import CorrelationLoggerAdapter
from server.lifecycle.state import ServerLifecycle
from server.pipeline.router import build_router
from server.transport.accept_loop import run_server

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("http_server.server"), {})


def main(argv: list[str] | None = None) -> None:
    """Start the HTTP server and spawn a worker thread per connection."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination, args.log_format == "json")

    config = build_server_config(args)
    router = build_router(config.directory)
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal", extra={"event": "signal", "signal": signum}
        )
        lifecycle.request_stop()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": config.host,
            "port": config.port,
            "directory": config.directory,
            "log_destination": args.log_destination,
            "log_level": args.log_level,
            "log_format": args.log_format,
            "max_connections": config.max_connections,
            "body_timeout": config.body_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
        },
    )
    run_server(config, router, lifecycle)


if __name__ == "__main__":
    main()
