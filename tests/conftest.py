"""Shared test fixtures."""

from collections.abc import Callable
from pathlib import Path

import pytest

from src.allowlist import AllowList


@pytest.fixture
def write_allowlist(tmp_path: Path) -> Callable[[str], Path]:
    """Return a helper that writes allow-list text to a temp file."""

    def _write(text: str) -> Path:
        path = tmp_path / "allowed_users.txt"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def allow_list(write_allowlist) -> AllowList:
    """AllowList holding 12345 and 67890."""
    return AllowList.load(write_allowlist("# comment\n12345\n\n67890"))
