"""Handlers for the root, echo and user-agent endpoints."""

import logging

from server.bootstrap.config import ECHO_ENDPOINT_PREFIX
from server.domain.correlation_id import CorrelationLoggerAdapter
from server.domain.http_types import HttpRequest
from server.pipeline.response_writer import ResponseWriter

SYSTEM_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("http_server.handlers.system"), {}
)


def handle_root(response: ResponseWriter, request: HttpRequest) -> None:
    """Answer ``/`` with an empty 200."""
    response.ok()


def handle_echo(response: ResponseWriter, request: HttpRequest) -> None:
    """Echo everything after ``/echo/`` back as text/plain."""
    _, separator, content = request.path.partition(ECHO_ENDPOINT_PREFIX)
    if not separator:
        response.not_found()
        return
    if SYSTEM_LOGGER.logger.isEnabledFor(logging.DEBUG):
        SYSTEM_LOGGER.debug(
            "Echo request processed",
            extra={"event": "echo_request", "bytes_out": len(content)},
        )
    response.text(content)


def handle_user_agent(response: ResponseWriter, request: HttpRequest) -> None:
    """Return the User-Agent header, or an empty body when it is missing."""
    response.text(request.headers.get("User-Agent", ""))
