"""Repository manifest endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from altrepo.api.deps import get_repository_config, get_settings, require_access_token
from altrepo.config import Settings
from altrepo.filesystem.discovery import discover_ipas
from altrepo.schemas.repository import RepositoryConfig
from altrepo.services.repository_service import generate_repository, render_repository_json

logger = logging.getLogger(__name__)

router = APIRouter(tags=["repository"])


def build_manifest(
    settings: Settings, config: RepositoryConfig, request_token: str | None
) -> str:
    """Scan the apps directory and render repository.json (blocking)."""
    index = discover_ipas(settings.resolved_apps_dir)
    repo = generate_repository(
        config,
        index,
        settings.base_url,
        secret=settings.download_secret,
        request_token=request_token,
    )
    return render_repository_json(repo)


@router.get("/")
@router.get("/repository.json")
async def serve_repository_json(
    settings: Annotated[Settings, Depends(get_settings)],
    config: Annotated[RepositoryConfig, Depends(get_repository_config)],
    request_token: Annotated[str | None, Depends(require_access_token)],
) -> Response:
    """Generate repository.json from config.json and the current apps directory."""
    logger.debug("Generating repository.json dynamically")
    content = await asyncio.to_thread(build_manifest, settings, config, request_token)
    logger.debug("Generated repository.json (%d bytes)", len(content))
    return Response(content=content, media_type="application/json")
