"""Reading and storing files under the configured directory."""

import logging
from typing import Optional

from server.bootstrap.config import FILES_ENDPOINT_PREFIX
from server.domain.correlation_id import CorrelationLoggerAdapter
from server.domain.http_types import HttpRequest
from server.domain.sandbox import ForbiddenPath, resolve_sandbox_path
from server.pipeline.response_writer import ResponseWriter

FILE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("http_server.handlers.file"), {}
)


class FileHandler:
    """Serves ``GET /files/<name>`` and stores ``POST /files/<name>``.

    Every failure (no directory configured, unknown name, refused path,
    filesystem error, unsupported method) is answered with 404. Whole files
    are held in memory in both directions.
    """

    def __init__(self, directory: Optional[str]) -> None:
        self.directory = directory

    def __call__(self, response: ResponseWriter, request: HttpRequest) -> None:
        if self.directory is None:
            FILE_LOGGER.info(
                "Files route requested without a configured directory",
                extra={"event": "files_disabled", "path": request.path},
            )
            response.not_found()
            return

        _, separator, file_name = request.path.partition(FILES_ENDPOINT_PREFIX)
        if not separator or not file_name:
            response.not_found()
            return

        try:
            file_path = resolve_sandbox_path(self.directory, file_name)
        except ForbiddenPath:
            FILE_LOGGER.warning(
                "Forbidden path access blocked",
                extra={
                    "event": "forbidden_path",
                    "path": file_name,
                    "method": request.method,
                },
            )
            response.not_found()
            return

        if request.method == "GET":
            self._read(response, file_path, request)
        elif request.method == "POST":
            self._write(response, file_path, request)
        else:
            FILE_LOGGER.warning(
                "Unsupported method",
                extra={"event": "unsupported_method", "method": request.method},
            )
            response.not_found()

    def _read(self, response: ResponseWriter, file_path, request: HttpRequest) -> None:
        try:
            content = file_path.read_bytes()
        except OSError as error:
            FILE_LOGGER.info(
                "File not readable",
                extra={
                    "event": "file_not_found",
                    "path": file_path.as_posix(),
                    "error_type": type(error).__name__,
                },
            )
            response.not_found()
            return
        FILE_LOGGER.info(
            "File read operation complete",
            extra={
                "event": "file_read_complete",
                "path": file_path.as_posix(),
                "method": request.method,
                "bytes_out": len(content),
            },
        )
        response.file(content)

    def _write(self, response: ResponseWriter, file_path, request: HttpRequest) -> None:
        try:
            with open(file_path, "wb") as file_handle:
                file_handle.write(request.body)
        except OSError as error:
            FILE_LOGGER.error(
                "File write failed",
                extra={
                    "event": "file_write_failed",
                    "path": file_path.as_posix(),
                    "error_type": type(error).__name__,
                },
            )
            response.not_found()
            return
        FILE_LOGGER.info(
            "File write complete",
            extra={
                "event": "file_write_complete",
                "path": file_path.as_posix(),
                "method": request.method,
                "bytes_in": len(request.body),
            },
        )
        response.created()
