"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value is not None else default


DEFAULT_HOST = os.getenv("HTTP_SERVER_HOST", "0.0.0.0")
DEFAULT_PORT = _env_int("HTTP_SERVER_PORT", 4221)
DEFAULT_MAX_CONNECTIONS = _env_int("HTTP_SERVER_MAX_CONNECTIONS", 0)
DEFAULT_BODY_TIMEOUT = _env_float("HTTP_SERVER_BODY_TIMEOUT", 10.0)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("HTTP_SERVER_SHUTDOWN_GRACE_SECONDS", 30)

FILES_ENDPOINT_PREFIX = "/files/"
ECHO_ENDPOINT_PREFIX = "/echo/"


@dataclass
class ServerConfig:
    """Per-process settings shared with the accept loop and workers."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    directory: Optional[str] = None
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    body_timeout: Optional[float] = DEFAULT_BODY_TIMEOUT
    shutdown_grace_seconds: int = DEFAULT_SHUTDOWN_GRACE_SECONDS


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(description="Prefix-routed HTTP/1.1 server")
    parser.add_argument(
        "--directory",
        default=os.getenv("HTTP_SERVER_DIRECTORY"),
        help="Directory served and written by /files/*; omit to disable the route",
    )
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    default_log_level = os.getenv("HTTP_SERVER_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("HTTP_SERVER_LOG_DESTINATION", "stdout")
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=os.getenv("HTTP_SERVER_LOG_FORMAT", "json"),
        choices=["json", "text"],
        type=str.lower,
    )
    parser.add_argument(
        "--max-connections",
        type=int,
        default=DEFAULT_MAX_CONNECTIONS,
        help="Maximum concurrent connections (0 for unlimited)",
    )
    parser.add_argument(
        "--body-timeout",
        type=float,
        default=DEFAULT_BODY_TIMEOUT,
        help="Seconds allowed to receive a declared request body (0 to wait forever)",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for graceful shutdown",
    )
    return parser.parse_args(argv)


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    """Translate parsed CLI arguments into a ServerConfig."""
    return ServerConfig(
        host=args.host,
        port=args.port,
        directory=args.directory or None,
        max_connections=max(0, args.max_connections),
        body_timeout=args.body_timeout if args.body_timeout > 0 else None,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
    )
