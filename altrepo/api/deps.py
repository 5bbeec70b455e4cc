"""Shared API dependencies: settings, repository config, access gate."""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status

from altrepo.config import Settings
from altrepo.schemas.repository import RepositoryConfig

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    """Get application settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


def get_repository_config(request: Request) -> RepositoryConfig:
    """Get the loaded config.json from app state (read-only, never mutated)."""
    config: RepositoryConfig = request.app.state.repository_config
    return config


def require_access_token(
    settings: Annotated[Settings, Depends(get_settings)],
    token: Annotated[str | None, Query()] = None,
) -> str | None:
    """Check the ``?token=`` query parameter when an auth token is configured.

    Returns the accepted token (or None when no gate is configured).
    """
    expected = settings.auth_token
    if expected is None:
        return None
    if token is None:
        logger.warning("Authentication token required but not provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token required",
        )
    if not secrets.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Invalid authentication token provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        )
    return token
