"""Repository manifest generation from config.json and discovered IPAs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import quote, urlencode

from pydantic_core import PydanticSerializationError

from altrepo.exceptions import InternalServerError, VersionParseError
from altrepo.schemas.repository import AppVersion
from altrepo.services.token_service import generate_download_token
from altrepo.services.version_service import merge_versions, version_info_for_entry

if TYPE_CHECKING:
    from altrepo.filesystem.discovery import IpaEntry, IpaIndex
    from altrepo.schemas.repository import AppConfig, RepositoryConfig

logger = logging.getLogger(__name__)


def get_app_directory_name(app_name: str) -> str:
    """Map a configured app name to its directory under the apps root.

    Currently the identity; a configurable mapping would hook in here.
    """
    return app_name


def build_download_url(
    base_url: str,
    app_dir_name: str,
    filename: str,
    secret: str | None = None,
    request_token: str | None = None,
) -> str:
    """Build the public URL for an IPA.

    With a download secret the URL is ``<base>/download/<token>`` (which the
    access gate exempts); otherwise it is ``<base>/apps/<app>/<filename>``,
    carrying ``request_token`` as a query parameter when one was supplied.
    """
    base = base_url.rstrip("/")
    if secret is not None:
        token = generate_download_token(app_dir_name, filename, secret)
        return f"{base}/download/{token}"

    url = f"{base}/apps/{quote(app_dir_name, safe='')}/{quote(filename, safe='')}"
    if request_token:
        url = f"{url}?{urlencode({'token': request_token})}"
    return url


def _discovered_versions(
    app_dir_name: str,
    entries: list[IpaEntry],
    base_url: str,
    secret: str | None,
    request_token: str | None,
) -> list[AppVersion]:
    versions: list[AppVersion] = []
    for entry in entries:
        try:
            info = version_info_for_entry(entry)
        except VersionParseError as exc:
            logger.warning("Failed to get version info for %s: %s", entry.filename, exc)
            continue
        versions.append(
            AppVersion(
                version=info.version,
                date=info.date,
                localized_description=info.description,
                download_url=build_download_url(
                    base_url, app_dir_name, entry.filename, secret, request_token
                ),
                size=entry.size,
            )
        )
    return versions


def _resolve_app(
    app: AppConfig,
    index: IpaIndex,
    base_url: str,
    secret: str | None,
    request_token: str | None,
) -> None:
    app_dir_name = get_app_directory_name(app.name)
    entries = index.get(app_dir_name)
    if entries:
        logger.debug("Found %d IPAs for app %s", len(entries), app.name)
        discovered = _discovered_versions(app_dir_name, entries, base_url, secret, request_token)
    else:
        logger.warning("No IPAs found for app %s (directory: %s)", app.name, app_dir_name)
        discovered = []
    app.versions = merge_versions(app.versions, discovered)


def generate_repository(
    config: RepositoryConfig,
    index: IpaIndex,
    base_url: str,
    secret: str | None = None,
    request_token: str | None = None,
) -> RepositoryConfig:
    """Produce the repository manifest for ``config`` and a fresh scan ``index``.

    ``config`` is left untouched; the manifest is built on a deep copy.
    Per-IPA failures are logged and skipped, never fatal for the app.
    """
    repo = config.model_copy(deep=True)
    for app in repo.apps:
        _resolve_app(app, index, base_url, secret, request_token)
    return repo


def render_repository_json(repo: RepositoryConfig) -> str:
    """Serialize a manifest as indented JSON with AltStore field names."""
    try:
        return repo.model_dump_json(by_alias=True, indent=2)
    except PydanticSerializationError as exc:
        raise InternalServerError(f"Failed to serialize repository manifest: {exc}") from exc
