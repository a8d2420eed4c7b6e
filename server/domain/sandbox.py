"""Confine file names from request paths to the served directory."""

from pathlib import Path


class ForbiddenPath(Exception):
    """Raised when a requested file name escapes the served directory."""


def resolve_sandbox_path(directory: str, file_name: str) -> Path:
    """Join ``file_name`` onto ``directory`` and refuse anything outside it."""
    if not file_name or "\x00" in file_name:
        raise ForbiddenPath(file_name)

    root = Path(directory).resolve()
    candidate = Path(file_name)
    if candidate.is_absolute() or ".." in candidate.parts:
        raise ForbiddenPath(file_name)

    target = (root / candidate).resolve()
    if root not in target.parents:
        raise ForbiddenPath(file_name)
    return target
