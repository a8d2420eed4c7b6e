"""Pure HTTP response framing and gzip negotiation."""

import gzip
import zlib
from typing import Mapping, Optional

from server.domain.http_types import HttpResponse

CRLF = "\r\n"


class CompressionError(Exception):
    """Raised when a response body cannot be gzip-compressed."""


def accepts_gzip(headers: Optional[Mapping[str, str]]) -> bool:
    """Return True when Accept-Encoding is exactly ``gzip`` or lists ``gzip,``.

    This is not a quality-value parser: ``deflate, gzip`` and ``gzip;q=1``
    do not enable compression.
    """
    if not headers:
        return False
    encodings = headers.get("Accept-Encoding")
    if encodings is None:
        return False
    return encodings == "gzip" or "gzip," in encodings


def compress_body(payload: bytes) -> bytes:
    """Gzip the payload, translating codec failures into CompressionError."""
    try:
        return gzip.compress(payload, mtime=0)
    except (zlib.error, OSError, ValueError) as exc:
        raise CompressionError(str(exc)) from exc


def serialize_response(response: HttpResponse, compress: bool = False) -> bytes:
    """Frame a response as HTTP/1.1 wire bytes.

    Header order is fixed: status line, Content-Type, Content-Encoding,
    Content-Length. Content-Length counts the transmitted (possibly
    compressed) body and is omitted when that body is empty.
    """
    body = response.body
    lines = [f"HTTP/1.1 {response.status}"]
    if response.content_type:
        lines.append(f"Content-Type: {response.content_type}")
    if compress:
        body = compress_body(body)
        lines.append("Content-Encoding: gzip")
    if body:
        lines.append(f"Content-Length: {len(body)}")
    head = (CRLF.join(lines) + CRLF + CRLF).encode()
    return head + body if body else head
