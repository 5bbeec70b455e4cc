"""Health check endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from altrepo.api.deps import get_settings
from altrepo.config import Settings

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    apps_dir: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Health check endpoint for monitoring and load balancers."""
    apps_ok = settings.resolved_apps_dir.is_dir()
    return HealthResponse(
        status="ok" if apps_ok else "degraded",
        version="0.1.0",
        apps_dir="ok" if apps_ok else "missing",
    )
