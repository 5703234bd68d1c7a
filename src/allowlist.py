"""File-based allow-list of Telegram user IDs.

The file holds one numeric user ID per line. Blank lines and lines starting
with ``#`` (after optional whitespace) are ignored. Any other line that does
not parse as an integer makes the whole load fail: a partial allow-list may
grant or deny the wrong people, so callers never get one.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

# ASCII digits only: int() would also take "1_2345" or non-ASCII digits.
_USER_ID_RE = re.compile(r"[+-]?[0-9]+")


class LoadError(Exception):
    """Raised when the allow-list cannot be loaded."""

    kind = "load"

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = path


class AllowListNotFoundError(LoadError):
    """The allow-list file does not exist."""

    kind = "not_found"


class AllowListUnreadableError(LoadError):
    """The allow-list file exists but could not be read or decoded."""

    kind = "unreadable"


class AllowListParseError(LoadError):
    """A non-comment line is not a valid integer user ID."""

    kind = "parse"

    def __init__(self, message: str, path: Path | str | None = None, line_number: int = 0) -> None:
        super().__init__(message, path)
        self.line_number = line_number


def parse_allowed_users(text: str, source: str = "<string>") -> frozenset[int]:
    """Parse allow-list text into a set of user IDs."""
    ids: set[int] = set()
    for line_number, raw in enumerate(text.split("\n"), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if not _USER_ID_RE.fullmatch(line):
            msg = f"{source}:{line_number}: not a valid user ID"
            raise AllowListParseError(msg, source, line_number)
        ids.add(int(line))
    return frozenset(ids)


def load_allowed_users(path: Path | str) -> frozenset[int]:
    """Read and parse the allow-list file at *path*."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise AllowListNotFoundError(f"Allow-list file not found: {path}", path) from None
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Could not read allow-list file {path}: {exc}"
        raise AllowListUnreadableError(msg, path) from exc

    allowed = parse_allowed_users(text, source=str(path))
    logger.info("Loaded %d allowed user IDs from %s", len(allowed), path)
    return allowed


def is_allowed(allowed: frozenset[int] | set[int], user_id: int) -> bool:
    """Check whether *user_id* is in the allow-list."""
    return user_id in allowed


class AllowList:
    """Holds the current allow-list snapshot.

    With ``reload_interval`` > 0 the file is re-read lazily once the snapshot
    is older than the interval. A failed reload keeps the last good snapshot.
    Snapshots are frozensets replaced by a single assignment, so concurrent
    readers always see a complete set.
    """

    def __init__(
        self,
        path: Path | str,
        allowed: frozenset[int],
        *,
        reload_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.path = Path(path)
        self.reload_interval = reload_interval
        self._clock = clock
        self._snapshot = allowed
        self._loaded_at = clock()

    @classmethod
    def load(
        cls,
        path: Path | str,
        *,
        reload_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> AllowList:
        """Load the file once. Raises LoadError on any failure."""
        allowed = load_allowed_users(path)
        return cls(path, allowed, reload_interval=reload_interval, clock=clock)

    def __len__(self) -> int:
        return len(self._snapshot)

    def _is_stale(self) -> bool:
        if self.reload_interval <= 0:
            return False
        return self._clock() - self._loaded_at >= self.reload_interval

    def reload(self) -> bool:
        """Re-read the file. Returns False if the previous snapshot was kept."""
        # Stamp first so a broken file is retried once per interval, not per message.
        self._loaded_at = self._clock()
        try:
            allowed = load_allowed_users(self.path)
        except LoadError as exc:
            logger.error("Allow-list reload failed, keeping %d IDs: %s", len(self._snapshot), exc)
            return False
        self._snapshot = allowed
        return True

    def snapshot(self) -> frozenset[int]:
        """Return the current set of allowed IDs, reloading if stale."""
        if self._is_stale():
            self.reload()
        return self._snapshot

    def contains(self, user_id: int) -> bool:
        return is_allowed(self.snapshot(), user_id)
