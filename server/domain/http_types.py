"""Shared HTTP type definitions to avoid circular imports."""

from dataclasses import dataclass, field
from typing import Optional


class RequestParseError(ValueError):
    """Base class for requests that cannot be read off the wire."""


class MalformedRequestLine(RequestParseError):
    """Raised when the request line is not ``METHOD PATH VERSION``."""


class MalformedContentLength(RequestParseError):
    """Raised when Content-Length is not a non-negative integer."""


class IncompleteBody(RequestParseError):
    """Raised when fewer body bytes arrive than Content-Length declared."""


@dataclass(frozen=True)
class HttpRequest:
    """Represents a parsed HTTP request."""

    method: str
    path: str
    version: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass
class HttpResponse:
    """Represents an HTTP response before it is framed for the wire."""

    status: str
    content_type: Optional[str] = None
    body: bytes = b""


STATUS_OK = "200 OK"
STATUS_CREATED = "201 Created"
STATUS_BAD_REQUEST = "400 Bad Request"
STATUS_NOT_FOUND = "404 Not Found"
