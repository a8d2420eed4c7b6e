"""Context object shared across worker threads."""

from dataclasses import dataclass
from typing import Optional

from server.lifecycle.state import ServerLifecycle
from server.pipeline.router import Router
from server.transport.connection_limiter import ConnectionLimiter


@dataclass
class WorkerContext:
    """Dependencies shared across handler threads; all read-only or lock-protected."""

    router: Router
    body_timeout: Optional[float] = None
    connection_limiter: Optional[ConnectionLimiter] = None
    lifecycle: Optional[ServerLifecycle] = None
