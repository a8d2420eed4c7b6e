"""Main connection acceptance loop."""

import logging
import socket
import threading
from typing import Optional

from server.bootstrap.config import ServerConfig
from server.bootstrap.socket_factory import create_server_socket
from server.domain.correlation_id import CorrelationLoggerAdapter
from server.lifecycle.state import ServerLifecycle
from server.pipeline.response_writer import close_connection
from server.pipeline.router import Router
from server.transport.connection_limiter import ConnectionLimiter
from server.transport.context import WorkerContext
from server.transport.worker import handle_client

ACCEPT_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("http_server.transport.accept"), {}
)


def _handle_accepted_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> Optional[threading.Thread]:
    """Hand a new connection to its own worker thread."""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={"event": "client_accepted", "client": client_addr_str},
        )

    limiter = context.connection_limiter
    if limiter is not None and not limiter.acquire():
        ACCEPT_LOGGER.warning(
            "Connection limit reached; closing connection",
            extra={"event": "connection_rejected", "client": client_addr_str},
        )
        close_connection(client_socket)
        return None

    thread = threading.Thread(
        target=handle_client,
        args=(client_socket, client_address, context),
        daemon=False,
    )
    if context.lifecycle is not None:
        context.lifecycle.register_worker(thread)
    thread.start()
    return thread


def run_server(
    config: ServerConfig, router: Router, lifecycle: ServerLifecycle
) -> None:
    """Bind, accept until the lifecycle says stop, then wait for workers."""
    server_socket = create_server_socket(config)

    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": config.host,
            "port": config.port,
        },
    )

    context = WorkerContext(
        router=router,
        body_timeout=config.body_timeout,
        connection_limiter=ConnectionLimiter(config.max_connections),
        lifecycle=lifecycle,
    )

    try:
        while not lifecycle.should_stop():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            _handle_accepted_client(client_socket, client_address, context)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "grace_seconds": config.shutdown_grace_seconds,
            },
        )
        lifecycle.wait_for_workers(config.shutdown_grace_seconds)
        ACCEPT_LOGGER.info(
            "Server shutdown complete", extra={"event": "server_stopped"}
        )
