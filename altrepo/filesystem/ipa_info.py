"""Info.plist extraction from IPA archives."""

from __future__ import annotations

import logging
import plistlib
import zipfile
import zlib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from xml.parsers.expat import ExpatError

from altrepo.exceptions import IpaInfoError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

PAYLOAD_DIR = "Payload"
APP_BUNDLE_SUFFIX = ".app"
INFO_PLIST = "Info.plist"


@dataclass(frozen=True)
class IpaInfo:
    """Bundle metadata read from an app's Info.plist."""

    bundle_identifier: str
    bundle_version: str
    bundle_short_version: str | None
    bundle_name: str


def is_info_plist_path(name: str) -> bool:
    """Match ``Payload/<Name>.app/Info.plist`` exactly (no deeper nesting)."""
    parts = name.split("/")
    return (
        len(parts) == 3
        and parts[0] == PAYLOAD_DIR
        and parts[1].endswith(APP_BUNDLE_SUFFIX)
        and len(parts[1]) > len(APP_BUNDLE_SUFFIX)
        and parts[2] == INFO_PLIST
    )


def find_info_plist(archive: zipfile.ZipFile) -> str:
    """Return the archive member name of the main bundle's Info.plist."""
    for name in archive.namelist():
        if is_info_plist_path(name):
            return name
    raise IpaInfoError("Info.plist not found in IPA archive")


def _string_field(plist: dict[str, Any], key: str) -> str | None:
    value = plist.get(key)
    return value if isinstance(value, str) else None


def parse_info_plist(data: bytes) -> IpaInfo:
    """Parse raw Info.plist bytes (XML or binary) into :class:`IpaInfo`."""
    try:
        plist = plistlib.loads(data)
    # plistlib reports some malformed values (e.g. a bad <date>) as AttributeError
    except (
        plistlib.InvalidFileException,
        ExpatError,
        ValueError,
        AttributeError,
        TypeError,
        OverflowError,
    ) as exc:
        raise IpaInfoError(f"Failed to parse Info.plist: {exc}") from exc
    if not isinstance(plist, dict):
        raise IpaInfoError("Info.plist root is not a dictionary")

    bundle_identifier = _string_field(plist, "CFBundleIdentifier")
    if bundle_identifier is None:
        raise IpaInfoError("CFBundleIdentifier not found in Info.plist")

    bundle_version = _string_field(plist, "CFBundleVersion")
    if bundle_version is None:
        raise IpaInfoError("CFBundleVersion not found in Info.plist")

    bundle_name = _string_field(plist, "CFBundleDisplayName") or _string_field(
        plist, "CFBundleName"
    )
    if bundle_name is None:
        raise IpaInfoError("CFBundleName or CFBundleDisplayName not found in Info.plist")

    return IpaInfo(
        bundle_identifier=bundle_identifier,
        bundle_version=bundle_version,
        bundle_short_version=_string_field(plist, "CFBundleShortVersionString"),
        bundle_name=bundle_name,
    )


def extract_ipa_info(ipa_path: Path) -> IpaInfo:
    """Read bundle metadata from an IPA without modifying it.

    Raises IpaInfoError if the file is not a readable zip, has no
    ``Payload/*.app/Info.plist``, or the plist lacks required keys.
    """
    try:
        with zipfile.ZipFile(ipa_path) as archive:
            plist_name = find_info_plist(archive)
            try:
                data = archive.read(plist_name)
            except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as exc:
                msg = f"Failed to read {plist_name} from {ipa_path}: {exc}"
                raise IpaInfoError(msg) from exc
    except zipfile.BadZipFile as exc:
        raise IpaInfoError(f"Failed to read IPA as ZIP archive: {ipa_path}") from exc
    except OSError as exc:
        raise IpaInfoError(f"Failed to open IPA file {ipa_path}: {exc}") from exc

    return parse_info_plist(data)
