"""Finalizing responses onto the client socket."""

import logging
import socket
from typing import Optional

from server.domain.correlation_id import CorrelationLoggerAdapter
from server.domain.http_types import (
    STATUS_BAD_REQUEST,
    STATUS_CREATED,
    STATUS_NOT_FOUND,
    STATUS_OK,
    HttpRequest,
    HttpResponse,
)
from server.domain.response_builders import (
    CompressionError,
    accepts_gzip,
    serialize_response,
)

WRITER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("http_server.writer"), {})

TEXT_PLAIN = "text/plain"
OCTET_STREAM = "application/octet-stream"


class ResponseAlreadyFinalized(RuntimeError):
    """Raised when a handler tries to send a second response on one connection."""


class ResponseWriter:
    """Sends exactly one response for ``request`` and closes the connection.

    ``request`` may be None when the request could not be parsed; no
    compression is negotiated in that case.
    """

    def __init__(
        self, client_socket: socket.socket, request: Optional[HttpRequest] = None
    ) -> None:
        self._socket = client_socket
        self._request = request
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def ok(self) -> None:
        self._finalize(HttpResponse(STATUS_OK))

    def created(self) -> None:
        self._finalize(HttpResponse(STATUS_CREATED))

    def not_found(self) -> None:
        self._finalize(HttpResponse(STATUS_NOT_FOUND))

    def bad_request(self) -> None:
        self._finalize(HttpResponse(STATUS_BAD_REQUEST))

    def text(self, content: str) -> None:
        self._finalize(HttpResponse(STATUS_OK, TEXT_PLAIN, content.encode()))

    def file(self, content: bytes) -> None:
        self._finalize(HttpResponse(STATUS_OK, OCTET_STREAM, bytes(content)))

    def _finalize(self, response: HttpResponse) -> None:
        if self._finalized:
            raise ResponseAlreadyFinalized(
                f"response already sent; refusing {response.status!r}"
            )
        self._finalized = True

        headers = self._request.headers if self._request is not None else None
        compress = accepts_gzip(headers)
        try:
            payload = serialize_response(response, compress)
            self._socket.sendall(payload)
        except CompressionError as error:
            WRITER_LOGGER.error(
                "Compression failed; closing without response",
                extra={"event": "compression_failed", "error": str(error)},
            )
        except OSError as error:
            WRITER_LOGGER.error(
                "Failed to send response",
                extra={
                    "event": "response_failed",
                    "status": response.status,
                    "error_type": type(error).__name__,
                },
            )
        else:
            WRITER_LOGGER.debug(
                "Sent response",
                extra={
                    "event": "response_sent",
                    "status": response.status,
                    "bytes_out": len(payload),
                    "compressed": compress,
                },
            )
        finally:
            close_connection(self._socket)


def close_connection(client_socket: socket.socket) -> None:
    """Half-close for writing, then release the socket."""
    try:
        client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    client_socket.close()
