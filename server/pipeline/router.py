"""First-segment request routing."""

import logging
from typing import Callable, Optional

from server.domain.correlation_id import CorrelationLoggerAdapter
from server.domain.http_types import HttpRequest
from server.handlers.file_handler import FileHandler
from server.handlers.system_handlers import handle_echo, handle_root, handle_user_agent
from server.pipeline.response_writer import ResponseWriter

ROUTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("http_server.pipeline.router"), {}
)

Handler = Callable[[ResponseWriter, HttpRequest], None]

ROOT_PREFIX = "/"


def first_segment(path: str) -> str:
    """Return ``/`` plus the first non-empty path segment, or ``/`` if there is none."""
    for segment in path.split("/"):
        if segment:
            return ROOT_PREFIX + segment
    return ROOT_PREFIX


class Router:
    """Maps the first path segment to a handler.

    Populated at startup and only read afterwards, so lookups from worker
    threads need no locking.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def register(self, prefix: str, handler: Handler) -> None:
        """Register ``handler`` for ``prefix``; a later registration replaces it."""
        key = first_segment(prefix)
        if key in self._handlers:
            ROUTER_LOGGER.debug(
                "Replacing route", extra={"event": "route_replaced", "route": key}
            )
        self._handlers[key] = handler

    def resolve(self, path: str) -> tuple[Optional[Handler], bool]:
        key = first_segment(path)
        handler = self._handlers.get(key)
        if handler is None:
            ROUTER_LOGGER.info(
                "No matching route found",
                extra={"event": "route_not_found", "route": key, "path": path},
            )
            return None, False
        if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            ROUTER_LOGGER.debug(
                "Route matched", extra={"event": "route_matched", "route": key}
            )
        return handler, True

    def prefixes(self) -> list[str]:
        return sorted(self._handlers)


def build_router(directory: Optional[str]) -> Router:
    """Return the server's route table."""
    router = Router()
    router.register("/", handle_root)
    router.register("/echo", handle_echo)
    router.register("/user-agent", handle_user_agent)
    router.register("/files", FileHandler(directory))
    return router
