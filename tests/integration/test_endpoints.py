"""Integration tests exercising the public HTTP endpoints."""

from __future__ import annotations

import gzip
import json
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import requests

from tests.utils.http import send_raw_request

pytestmark = pytest.mark.integration

if TYPE_CHECKING:
    from tests.conftest import ServerProcessInfo

IDENTITY = {"Accept-Encoding": "identity"}


def _raw(server: "ServerProcessInfo", payload: bytes):
    return send_raw_request(server["host"], server["port"], payload)


def test_root_endpoint_returns_bare_status_line(server_process: "ServerProcessInfo") -> None:
    """Root should respond with nothing but the status line."""

    response = _raw(server_process, b"GET / HTTP/1.1\r\nHost: localhost\r\n\r\n")
    assert response.raw == b"HTTP/1.1 200 OK\r\n\r\n"


def test_root_endpoint_with_requests(base_url: str) -> None:
    """A regular client reads an empty 200 delimited by connection close."""

    response = requests.get(f"{base_url}/", headers=IDENTITY, timeout=5)
    assert response.status_code == 200
    assert response.content == b""
    assert "Content-Length" not in response.headers


def test_echo_endpoint_exact_bytes(server_process: "ServerProcessInfo") -> None:
    """Echo responses carry text/plain and the byte length."""

    response = _raw(server_process, b"GET /echo/abc HTTP/1.1\r\nHost: localhost\r\n\r\n")
    assert response.raw == (
        b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\nContent-Length: 3\r\n\r\nabc"
    )


def test_echo_endpoint_round_trips_payload(base_url: str) -> None:
    """Echo path should round-trip the payload unmodified."""

    response = requests.get(f"{base_url}/echo/sample", headers=IDENTITY, timeout=5)
    assert response.status_code == 200
    assert response.text == "sample"
    assert response.headers["Content-Type"] == "text/plain"


def test_echo_responds_with_gzip_when_requested(server_process: "ServerProcessInfo") -> None:
    """Echo should gzip payloads when the client opts in."""

    response = _raw(
        server_process,
        b"GET /echo/zip HTTP/1.1\r\nAccept-Encoding: gzip\r\n\r\n",
    )
    assert response.status_line == "HTTP/1.1 200 OK"
    assert response.header_lines[:2] == ["Content-Type: text/plain", "Content-Encoding: gzip"]
    assert int(response.headers["content-length"]) == len(response.body)
    assert gzip.decompress(response.body) == b"zip"


def test_gzip_listed_first_is_honored(base_url: str) -> None:
    """``gzip, deflate`` matches because gzip is followed by a comma."""

    with requests.get(
        f"{base_url}/echo/zip",
        headers={"Accept-Encoding": "gzip, deflate"},
        timeout=5,
        stream=True,
    ) as response:
        assert response.headers.get("Content-Encoding") == "gzip"
        payload = response.raw.read(decode_content=False)
    assert gzip.decompress(payload) == b"zip"


@pytest.mark.parametrize("encoding", ["deflate, gzip", "br", "identity"])
def test_gzip_not_applied_otherwise(
    server_process: "ServerProcessInfo", encoding: str
) -> None:
    """Only an exact ``gzip`` or a ``gzip,`` substring enables compression."""

    response = _raw(
        server_process,
        f"GET /echo/plain HTTP/1.1\r\nAccept-Encoding: {encoding}\r\n\r\n".encode(),
    )
    assert "content-encoding" not in response.headers
    assert response.body == b"plain"


def test_user_agent_endpoint_reflects_header(base_url: str) -> None:
    """User-agent endpoint must mirror the request header."""

    headers = {"User-Agent": "pytest-agent", **IDENTITY}
    response = requests.get(f"{base_url}/user-agent", headers=headers, timeout=5)
    assert response.status_code == 200
    assert response.text == "pytest-agent"


def test_unknown_path_is_not_found(server_process: "ServerProcessInfo") -> None:
    """Unrouted paths get a bare 404."""

    response = _raw(server_process, b"GET /unknown HTTP/1.1\r\n\r\n")
    assert response.raw == b"HTTP/1.1 404 Not Found\r\n\r\n"


@pytest.mark.parametrize(
    "payload",
    [
        b"GARBAGE\r\n\r\n",
        b"GET /echo/x\r\n\r\n",
        b"POST /files/a HTTP/1.1\r\nContent-Length: abc\r\n\r\n",
    ],
)
def test_malformed_requests_get_bad_request(
    server_process: "ServerProcessInfo", payload: bytes
) -> None:
    """Unparseable requests are answered with 400."""

    response = _raw(server_process, payload)
    assert response.raw == b"HTTP/1.1 400 Bad Request\r\n\r\n"


def test_repeated_requests_are_identical(server_process: "ServerProcessInfo") -> None:
    """Each connection is independent and answers the same way."""

    payload = b"GET /echo/same HTTP/1.1\r\nAccept-Encoding: gzip\r\n\r\n"
    assert _raw(server_process, payload).raw == _raw(server_process, payload).raw


def test_file_round_trip(server_process: "ServerProcessInfo") -> None:
    """Uploading a file then reading it back returns the same bytes."""

    payload = b"file-body"
    post = _raw(
        server_process,
        b"POST /files/payload.txt HTTP/1.1\r\nContent-Length: 9\r\n\r\n" + payload,
    )
    assert post.raw == b"HTTP/1.1 201 Created\r\n\r\n"

    stored_path = Path(server_process["directory"]) / "payload.txt"
    assert stored_path.read_bytes() == payload

    get = _raw(server_process, b"GET /files/payload.txt HTTP/1.1\r\n\r\n")
    assert get.raw == (
        b"HTTP/1.1 200 OK\r\nContent-Type: application/octet-stream\r\n"
        b"Content-Length: 9\r\n\r\nfile-body"
    )


def test_file_upload_with_requests(base_url: str, server_process: "ServerProcessInfo") -> None:
    """A regular client can upload and download JSON bytes unchanged."""

    document = json.dumps({"key": "value"}).encode()
    post = requests.post(
        f"{base_url}/files/doc.json", data=document, headers=IDENTITY, timeout=5
    )
    assert post.status_code == 201

    get = requests.get(f"{base_url}/files/doc.json", headers=IDENTITY, timeout=5)
    assert get.status_code == 200
    assert get.content == document
    assert get.headers["Content-Type"] == "application/octet-stream"


def test_zero_length_post_creates_empty_file(server_process: "ServerProcessInfo") -> None:
    """POST without a body still creates the file."""

    response = _raw(
        server_process, b"POST /files/empty.txt HTTP/1.1\r\nContent-Length: 0\r\n\r\n"
    )
    assert response.status_line == "HTTP/1.1 201 Created"
    assert (Path(server_process["directory"]) / "empty.txt").read_bytes() == b""

    get = _raw(server_process, b"GET /files/empty.txt HTTP/1.1\r\n\r\n")
    assert get.raw == (
        b"HTTP/1.1 200 OK\r\nContent-Type: application/octet-stream\r\n\r\n"
    )


def test_missing_file_is_not_found(server_process: "ServerProcessInfo") -> None:
    """GET on an absent file yields 404."""

    response = _raw(server_process, b"GET /files/absent.txt HTTP/1.1\r\n\r\n")
    assert response.raw == b"HTTP/1.1 404 Not Found\r\n\r\n"


def test_traversal_is_not_served(server_process: "ServerProcessInfo") -> None:
    """Names escaping the directory are answered like missing files."""

    response = _raw(server_process, b"GET /files/../etc/passwd HTTP/1.1\r\n\r\n")
    assert response.status_line == "HTTP/1.1 404 Not Found"


def test_files_disabled_without_directory(bare_server_process: "ServerProcessInfo") -> None:
    """Without --directory the files route always answers 404."""

    response = _raw(bare_server_process, b"GET /files/a.txt HTTP/1.1\r\n\r\n")
    assert response.raw == b"HTTP/1.1 404 Not Found\r\n\r\n"

    echo = _raw(bare_server_process, b"GET /echo/still-up HTTP/1.1\r\n\r\n")
    assert echo.body == b"still-up"


def test_requests_are_logged_with_correlation_ids(server_process: "ServerProcessInfo") -> None:
    """Every request produces structured JSON log lines."""

    _raw(server_process, b"GET /echo/logged HTTP/1.1\r\n\r\n")

    log_file: Path = server_process["log_file"]
    records = [json.loads(line) for line in log_file.read_text().splitlines() if line]
    received = [r for r in records if r.get("event") == "request_received"]
    assert received
    assert received[-1]["path"] == "/echo/logged"
    assert received[-1]["correlation_id"] != "-"
