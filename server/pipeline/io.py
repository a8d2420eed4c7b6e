"""Reading HTTP requests off a client socket."""

import logging
import socket
import time
from typing import Optional

from server.domain.correlation_id import CorrelationLoggerAdapter
from server.domain.http_types import (
    HttpRequest,
    IncompleteBody,
    MalformedContentLength,
    MalformedRequestLine,
)

IO_LOGGER = CorrelationLoggerAdapter(logging.getLogger("http_server.io"), {})

RECV_CHUNK_SIZE = 4096
HEADER_TERMINATORS = (b"\r\n", b"\n")


def _recv_with_deadline(client_socket: socket.socket, deadline_ns: int) -> bytes:
    """Receive data from socket with a deadline, raising TimeoutError if exceeded."""
    remaining_ns = deadline_ns - time.monotonic_ns()
    if remaining_ns <= 0:
        raise TimeoutError("Request deadline exceeded")
    client_socket.settimeout(remaining_ns / 1_000_000_000)
    return client_socket.recv(RECV_CHUNK_SIZE)


class SocketLineReader:
    """Buffered reader over ``recv`` that hands out lines and fixed-size blocks."""

    def __init__(self, client_socket: socket.socket) -> None:
        self._socket = client_socket
        self._buffer = b""

    def readline(self) -> bytes:
        """Return the next line including its ``\\n``.

        At end of stream the unterminated remainder is returned, then ``b""``.
        """
        while b"\n" not in self._buffer:
            chunk = self._socket.recv(RECV_CHUNK_SIZE)
            if not chunk:
                line, self._buffer = self._buffer, b""
                return line
            self._buffer += chunk
        line, _, self._buffer = self._buffer.partition(b"\n")
        return line + b"\n"

    def read_exact(self, size: int, timeout: Optional[float] = None) -> bytes:
        """Return exactly ``size`` bytes or raise IncompleteBody."""
        deadline_ns = (
            time.monotonic_ns() + int(timeout * 1_000_000_000) if timeout else None
        )
        try:
            while len(self._buffer) < size:
                if deadline_ns is None:
                    chunk = self._socket.recv(RECV_CHUNK_SIZE)
                else:
                    chunk = _recv_with_deadline(self._socket, deadline_ns)
                if not chunk:
                    raise IncompleteBody(
                        f"expected {size} body bytes, received {len(self._buffer)}"
                    )
                self._buffer += chunk
        except TimeoutError as exc:
            raise IncompleteBody(
                f"body not received within {timeout}s ({len(self._buffer)}/{size} bytes)"
            ) from exc
        finally:
            if deadline_ns is not None:
                self._socket.settimeout(None)
        data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data


def parse_request_line(raw_line: bytes) -> tuple[str, str, str]:
    """Split the request line into method, path and version."""
    try:
        text = raw_line.decode()
    except UnicodeDecodeError as exc:
        raise MalformedRequestLine("request line is not valid UTF-8") from exc
    tokens = text.split()
    if len(tokens) != 3:
        raise MalformedRequestLine(f"expected 3 tokens, got {len(tokens)}")
    method, path, version = tokens
    if not path.startswith("/"):
        raise MalformedRequestLine(f"path must start with '/': {path!r}")
    return method, path, version


def parse_header_line(raw_line: bytes) -> Optional[tuple[str, str]]:
    """Return ``(name, value)`` or None when the line has no ``": "`` separator."""
    try:
        text = raw_line.decode().rstrip("\r\n")
    except UnicodeDecodeError:
        return None
    name, separator, value = text.partition(": ")
    if not separator:
        return None
    return name, value.strip()


def read_headers(reader: SocketLineReader) -> dict[str, str]:
    """Collect header lines until a blank line or the end of the stream."""
    headers: dict[str, str] = {}
    while True:
        raw_line = reader.readline()
        if not raw_line or raw_line in HEADER_TERMINATORS:
            return headers
        parsed = parse_header_line(raw_line)
        if parsed is None:
            IO_LOGGER.warning(
                "Skipping malformed header line",
                extra={"event": "malformed_header", "line": raw_line[:80]},
            )
            continue
        name, value = parsed
        headers[name] = value


def determine_content_length(headers: dict[str, str]) -> int:
    """Return the declared body size, 0 when Content-Length is absent or empty."""
    value = headers.get("Content-Length")
    if not value:
        return 0
    if not (value.isascii() and value.isdigit()):
        raise MalformedContentLength(f"invalid Content-Length: {value!r}")
    return int(value)


def receive_request(
    client_socket: socket.socket, body_timeout: Optional[float] = None
) -> Optional[HttpRequest]:
    """Read one request from the socket.

    Returns None when the peer closes the connection before sending anything.
    Raises a RequestParseError subclass when the bytes are not a usable request.
    """
    reader = SocketLineReader(client_socket)
    raw_line = reader.readline()
    if not raw_line:
        return None

    method, path, version = parse_request_line(raw_line)
    headers = read_headers(reader)
    content_length = determine_content_length(headers)
    body = reader.read_exact(content_length, body_timeout) if content_length else b""

    IO_LOGGER.debug(
        "Parsed request",
        extra={
            "event": "request_parsed",
            "method": method,
            "path": path,
            "bytes_in": len(body),
        },
    )
    return HttpRequest(method, path, version, headers, body)
