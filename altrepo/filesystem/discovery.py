"""Apps directory scanner."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import Path

from altrepo.exceptions import AppsDirectoryError, IpaInfoError
from altrepo.filesystem.ipa_info import extract_ipa_info

logger = logging.getLogger(__name__)

IPA_SUFFIX = ".ipa"

# Top-level directory names that never hold apps.
SKIP_DIRS = frozenset({".git", ".devenv", ".direnv", ".claude", "target", "src", ".github"})


@dataclass(frozen=True)
class IpaEntry:
    """An IPA file found on disk, with whatever metadata could be extracted."""

    app_name: str
    filename: str
    path: Path
    size: int
    modified_date: str  # YYYY-MM-DD, UTC
    bundle_identifier: str | None = None
    bundle_version: str | None = None
    bundle_short_version: str | None = None
    bundle_name: str | None = None


# app directory name -> IPAs in that directory
IpaIndex = dict[str, list[IpaEntry]]


def is_ipa_filename(filename: str) -> bool:
    return filename.lower().endswith(IPA_SUFFIX) and len(filename) > len(IPA_SUFFIX)


def format_modified_date(mtime: float) -> str:
    """Format an mtime as a UTC calendar date, falling back to today."""
    try:
        moment = datetime.fromtimestamp(mtime, tz=UTC)
    except (OverflowError, OSError, ValueError):
        moment = datetime.now(tz=UTC)
    return moment.strftime("%Y-%m-%d")


def _scan_ipa(app_name: str, ipa_path: Path) -> IpaEntry | None:
    """Build an entry for one IPA; returns None if the file cannot be stat'ed."""
    filename = ipa_path.name
    try:
        stat = ipa_path.stat()
    except OSError as exc:
        logger.warning("Failed to get metadata for %s/%s: %s", app_name, filename, exc)
        return None

    entry = IpaEntry(
        app_name=app_name,
        filename=filename,
        path=ipa_path,
        size=stat.st_size,
        modified_date=format_modified_date(stat.st_mtime),
    )

    try:
        info = extract_ipa_info(ipa_path)
    except IpaInfoError as exc:
        logger.warning("Failed to extract Info.plist from %s/%s: %s", app_name, filename, exc)
    else:
        logger.info(
            "Extracted info from %s/%s: version=%s, bundle_id=%s",
            app_name,
            filename,
            info.bundle_version,
            info.bundle_identifier,
        )
        entry = replace(
            entry,
            bundle_identifier=info.bundle_identifier,
            bundle_version=info.bundle_version,
            bundle_short_version=info.bundle_short_version,
            bundle_name=info.bundle_name,
        )

    logger.info("Discovered IPA: %s/%s (%d bytes)", app_name, filename, entry.size)
    return entry


def _scan_app_dir(app_name: str, app_dir: Path) -> list[IpaEntry]:
    entries: list[IpaEntry] = []
    try:
        children = sorted(os.scandir(app_dir), key=lambda e: e.name)
    except OSError as exc:
        logger.warning("Failed to read app directory %s: %s", app_name, exc)
        return entries

    for child in children:
        if not is_ipa_filename(child.name) or not child.is_file():
            continue
        entry = _scan_ipa(app_name, Path(child.path))
        if entry is not None:
            entries.append(entry)
    return entries


def discover_ipas(apps_dir: Path) -> IpaIndex:
    """Scan ``apps_dir`` and index IPA files by app directory name.

    Each non-skipped subdirectory is one app; only IPAs directly inside it
    are considered. Apps with no IPAs are left out of the index.

    Raises AppsDirectoryError if ``apps_dir`` is missing or not a directory.
    """
    logger.info("Scanning for IPAs in: %s", apps_dir)

    if not apps_dir.exists():
        raise AppsDirectoryError(f"Apps directory not found: {apps_dir}", apps_dir)
    if not apps_dir.is_dir():
        raise AppsDirectoryError(f"Apps path is not a directory: {apps_dir}", apps_dir)

    try:
        children = sorted(os.scandir(apps_dir), key=lambda e: e.name)
    except OSError as exc:
        msg = f"Failed to read apps directory {apps_dir}: {exc}"
        raise AppsDirectoryError(msg, apps_dir) from exc

    index: IpaIndex = {}
    for child in children:
        if not child.is_dir():
            continue
        if child.name in SKIP_DIRS:
            logger.debug("Skipping directory: %s", child.name)
            continue

        logger.debug("Scanning app directory: %s", child.name)
        entries = _scan_app_dir(child.name, Path(child.path))
        if entries:
            index[child.name] = entries

    total = sum(len(entries) for entries in index.values())
    logger.info("Discovery complete: %d apps, %d IPAs", len(index), total)
    return index


def find_ipa(index: IpaIndex, app_name: str, filename: str) -> IpaEntry | None:
    """Look up a single IPA by app directory and exact filename."""
    for entry in index.get(app_name, []):
        if entry.filename == filename:
            return entry
    return None
