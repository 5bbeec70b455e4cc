"""Version derivation for discovered IPAs and merging with manual versions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from altrepo.exceptions import VersionParseError
from altrepo.filesystem.discovery import IPA_SUFFIX

if TYPE_CHECKING:
    from altrepo.filesystem.discovery import IpaEntry
    from altrepo.schemas.repository import AppVersion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionInfo:
    version: str
    date: str
    description: str


def parse_version_from_filename(filename: str, file_date: str) -> VersionInfo:
    """Derive version information from an IPA filename.

    Recognised layouts:

    - ``AppName_tweakVersion_appVersion.ipa`` (``YouTubePlus_5.2b1_20.26.7.ipa``
      gives version ``20.26.7`` with tweak ``5.2b1``)
    - ``AppName_version.ipa`` (``MyApp_1.2.3.ipa`` gives ``1.2.3``)

    Anything else uses the whole stem as the version. The date is always
    ``file_date``.
    """
    if not filename.lower().endswith(IPA_SUFFIX):
        raise VersionParseError(f"Filename does not end with {IPA_SUFFIX}: {filename}")
    stem = filename[: -len(IPA_SUFFIX)]

    parts = stem.split("_")
    tweak_version: str | None = None
    if len(parts) == 3:
        tweak_version = parts[1]
        version = parts[2]
    elif len(parts) == 2:
        version = parts[1]
    else:
        version = stem

    if tweak_version is not None:
        description = f"Version {version} (tweak version: {tweak_version})"
    else:
        description = f"Version {version}"

    return VersionInfo(version=version, date=file_date, description=description)


def version_info_for_entry(entry: IpaEntry) -> VersionInfo:
    """Pick the best version information available for a discovered IPA.

    CFBundleShortVersionString (user facing) wins over CFBundleVersion
    (build number); without Info.plist data the filename is parsed.
    """
    if entry.bundle_version is None:
        logger.debug(
            "No version info from Info.plist for %s, trying filename parsing", entry.filename
        )
        return parse_version_from_filename(entry.filename, entry.modified_date)

    short_version = entry.bundle_short_version
    version = short_version if short_version is not None else entry.bundle_version
    if short_version is not None and short_version != entry.bundle_version:
        description = f"Version {short_version} (build {entry.bundle_version})"
    else:
        description = f"Version {version}"
    return VersionInfo(version=version, date=entry.modified_date, description=description)


def merge_versions(
    manual_versions: list[AppVersion],
    discovered_versions: list[AppVersion],
) -> list[AppVersion]:
    """Merge manual versions from config.json with versions found on disk.

    Versions are keyed by their exact version string. When both sides have
    the same version the manual entry keeps its date and description, and
    only ``download_url`` and ``size`` are taken from the discovered file.
    The result is ordered newest date first.
    """
    merged: dict[str, AppVersion] = {}
    for manual in manual_versions:
        merged[manual.version] = manual.model_copy()

    for discovered in discovered_versions:
        existing = merged.get(discovered.version)
        if existing is not None:
            merged[discovered.version] = existing.model_copy(
                update={"download_url": discovered.download_url, "size": discovered.size}
            )
            logger.debug(
                "Merged version %s: kept manual metadata, updated URL and size from IPA",
                discovered.version,
            )
        else:
            merged[discovered.version] = discovered.model_copy()
            logger.debug("Added discovered version %s", discovered.version)

    # ISO dates compare correctly as strings
    return sorted(merged.values(), key=lambda v: v.date, reverse=True)
