"""IPA download endpoints (direct and obfuscated)."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from altrepo.api.deps import get_settings, require_access_token
from altrepo.config import Settings
from altrepo.filesystem.discovery import discover_ipas, find_ipa
from altrepo.filesystem.paths import is_valid_path_component
from altrepo.services.token_service import resolve_download_token

if TYPE_CHECKING:
    from altrepo.filesystem.discovery import IpaEntry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["apps"])

IPA_MEDIA_TYPE = "application/octet-stream"


def _ipa_response(entry: IpaEntry) -> FileResponse:
    logger.info("Serving IPA: %s/%s (%d bytes)", entry.app_name, entry.filename, entry.size)
    return FileResponse(
        path=entry.path,
        media_type=IPA_MEDIA_TYPE,
        filename=entry.filename,
    )


@router.get("/apps/{app_name}/{filename}", dependencies=[Depends(require_access_token)])
async def serve_ipa(
    app_name: str,
    filename: str,
    settings: Annotated[Settings, Depends(get_settings)],
) -> FileResponse:
    """Serve an IPA by its app directory and filename."""
    if not is_valid_path_component(app_name):
        logger.warning("Invalid app_name: %s", app_name)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid app name: {app_name}",
        )
    if not is_valid_path_component(filename):
        logger.warning("Invalid filename: %s", filename)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid filename: {filename}",
        )

    index = await asyncio.to_thread(discover_ipas, settings.resolved_apps_dir)
    if app_name not in index:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"App not found: {app_name}",
        )
    entry = find_ipa(index, app_name, filename)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"IPA file not found: {filename}",
        )
    return _ipa_response(entry)


@router.get("/download/{token}")
async def serve_ipa_obfuscated(
    token: str,
    settings: Annotated[Settings, Depends(get_settings)],
) -> FileResponse:
    """Serve an IPA by its download token.

    Not behind the access gate: the token itself stands in for the path.
    """
    if not is_valid_path_component(token):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Download not found",
        )
    entry = await asyncio.to_thread(
        resolve_download_token, token, settings.resolved_apps_dir, settings.download_secret
    )
    if entry is None:
        logger.debug("No IPA matches download token %s", token)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Download not found",
        )
    return _ipa_response(entry)
