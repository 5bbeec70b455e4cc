"""Obfuscated download tokens.

A token is a truncated SHA-256 over ``app|filename[|secret]``. It is
deterministic (no salt) so links survive restarts, and there is no decode:
resolving a token means recomputing it for every file on disk. Without a
secret, tokens can be derived from public filenames; they hide names, they
are not access control.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from typing import TYPE_CHECKING

from altrepo.filesystem.discovery import discover_ipas

if TYPE_CHECKING:
    from pathlib import Path

    from altrepo.filesystem.discovery import IpaEntry

logger = logging.getLogger(__name__)

TOKEN_SEPARATOR = b"|"
TOKEN_BYTES = 16


def generate_download_token(app_name: str, filename: str, secret: str | None = None) -> str:
    """Compute the download token for an IPA (22 URL-safe characters)."""
    hasher = hashlib.sha256()
    hasher.update(app_name.encode("utf-8"))
    hasher.update(TOKEN_SEPARATOR)
    hasher.update(filename.encode("utf-8"))
    if secret is not None:
        hasher.update(TOKEN_SEPARATOR)
        hasher.update(secret.encode("utf-8"))
    digest = hasher.digest()[:TOKEN_BYTES]
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def resolve_download_token(
    token: str, apps_dir: Path, secret: str | None = None
) -> IpaEntry | None:
    """Find the IPA whose token matches, scanning the apps directory afresh.

    Linear in the number of discovered IPAs. Raises AppsDirectoryError if
    the apps directory is unusable.
    """
    index = discover_ipas(apps_dir)
    for app_name, entries in index.items():
        for entry in entries:
            if generate_download_token(app_name, entry.filename, secret) == token:
                logger.debug("Resolved token to %s/%s", app_name, entry.filename)
                return entry
    return None
