"""Unit tests for served-directory path confinement."""

import os
from pathlib import Path

import pytest

from server.domain.sandbox import ForbiddenPath, resolve_sandbox_path


def test_plain_name_resolves_inside_directory(tmp_path: Path):
    """A simple name joins onto the served directory."""
    assert resolve_sandbox_path(str(tmp_path), "a.txt") == tmp_path.resolve() / "a.txt"


def test_nested_name_is_allowed(tmp_path: Path):
    """Subdirectories below the root are fine even if they do not exist yet."""
    resolved = resolve_sandbox_path(str(tmp_path), "sub/b.txt")
    assert resolved == tmp_path.resolve() / "sub" / "b.txt"


@pytest.mark.parametrize(
    "file_name",
    ["", "../escape.txt", "a/../../escape.txt", "/etc/passwd", "bad\x00name", ".."],
)
def test_escaping_names_are_forbidden(tmp_path: Path, file_name: str):
    """Empty, absolute, parent-relative and NUL names are rejected."""
    with pytest.raises(ForbiddenPath):
        resolve_sandbox_path(str(tmp_path), file_name)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlink_out_of_directory_is_forbidden(tmp_path: Path):
    """Links pointing outside the root are refused after resolution."""
    served = tmp_path / "served"
    served.mkdir()
    (tmp_path / "secret.txt").write_text("secret")
    (served / "link.txt").symlink_to(tmp_path / "secret.txt")

    with pytest.raises(ForbiddenPath):
        resolve_sandbox_path(str(served), "link.txt")
