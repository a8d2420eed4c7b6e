"""Worker thread logic for handling a single client connection."""

import logging
import socket
import threading
from dataclasses import dataclass
from typing import Optional

from server.domain.correlation_id import (
    CorrelationLoggerAdapter,
    clear_correlation_id,
    generate_correlation_id,
    set_correlation_id,
)
from server.domain.http_types import HttpRequest, RequestParseError
from server.pipeline.io import receive_request
from server.pipeline.response_writer import (
    ResponseAlreadyFinalized,
    ResponseWriter,
    close_connection,
)
from server.transport.context import WorkerContext

WORKER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("http_server.transport.worker"), {}
)


@dataclass
class _WorkerResources:
    thread: threading.Thread
    client_socket: socket.socket
    client_addr_str: str
    writer: Optional[ResponseWriter] = None


def _read_request(
    resources: _WorkerResources, context: WorkerContext
) -> Optional[HttpRequest]:
    """Parse the request, answering 400 itself when the bytes are unusable."""
    try:
        request = receive_request(resources.client_socket, context.body_timeout)
    except RequestParseError as error:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={
                "event": "malformed_request",
                "client": resources.client_addr_str,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        resources.writer = ResponseWriter(resources.client_socket, None)
        resources.writer.bad_request()
        return None

    if request is None and WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        WORKER_LOGGER.debug(
            "Client disconnected before sending a request",
            extra={"event": "client_disconnected", "client": resources.client_addr_str},
        )
    return request


def _dispatch(
    request: HttpRequest, resources: _WorkerResources, context: WorkerContext
) -> None:
    writer = ResponseWriter(resources.client_socket, request)
    resources.writer = writer

    handler, found = context.router.resolve(request.path)
    if not found:
        writer.not_found()
        return

    handler(writer, request)
    if not writer.finalized:
        WORKER_LOGGER.warning(
            "Handler returned without sending a response",
            extra={
                "event": "handler_unfinalized",
                "method": request.method,
                "path": request.path,
            },
        )


def _cleanup_worker(context: WorkerContext, resources: _WorkerResources) -> None:
    if resources.writer is None or not resources.writer.finalized:
        close_connection(resources.client_socket)
    if context.connection_limiter is not None:
        context.connection_limiter.release()
    if context.lifecycle is not None:
        context.lifecycle.cleanup_worker(resources.thread)
    WORKER_LOGGER.debug(
        "Socket closed",
        extra={"event": "socket_closed", "client": resources.client_addr_str},
    )
    clear_correlation_id()


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Serve exactly one request on ``client_socket``, then close it."""
    set_correlation_id(generate_correlation_id())
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    resources = _WorkerResources(
        threading.current_thread(), client_socket, client_addr_str
    )

    WORKER_LOGGER.debug(
        "Request processing started",
        extra={"event": "request_started", "client": client_addr_str},
    )
    try:
        request = _read_request(resources, context)
        if request is not None:
            WORKER_LOGGER.info(
                "Request received",
                extra={
                    "event": "request_received",
                    "client": client_addr_str,
                    "method": request.method,
                    "path": request.path,
                },
            )
            _dispatch(request, resources, context)
    except ResponseAlreadyFinalized as error:
        WORKER_LOGGER.error(
            "Handler finalized the response twice",
            extra={"event": "response_refinalized", "error": str(error)},
        )
    except (ConnectionError, TimeoutError, OSError) as error:
        WORKER_LOGGER.error(
            "Error handling client connection",
            extra={
                "event": "connection_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
    finally:
        _cleanup_worker(context, resources)
