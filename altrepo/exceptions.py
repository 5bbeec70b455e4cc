"""Application-level exception types.

Convention:
- ``InternalServerError``: for errors whose details must never reach clients
  (unreadable apps directory, manifest serialization failures, etc.).
  The global handler logs the full message at ERROR and returns a generic
  "Internal server error" (500) to the client.
- ``ValueError``: for per-file problems (unreadable archive metadata,
  unparseable filenames).  These are caught inside the scan and generation
  loops and only ever logged; they never abort a whole manifest.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class InternalServerError(Exception):
    """Raised for internal errors whose details must not be exposed to clients.

    The global exception handler in ``altrepo/main.py`` catches this, logs
    the full message server-side, and returns HTTP 500 with a generic
    ``"Internal server error"`` detail.
    """


class AppsDirectoryError(InternalServerError):
    """The apps root is missing or is not a directory."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class IpaInfoError(ValueError):
    """Info.plist could not be located or parsed inside an IPA archive."""


class VersionParseError(ValueError):
    """A version could not be derived from an IPA filename."""
