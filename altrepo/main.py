"""FastAPI application entry point."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from altrepo.api.apps import router as apps_router
from altrepo.api.health import router as health_router
from altrepo.api.repository import router as repository_router
from altrepo.config import Settings
from altrepo.exceptions import AppsDirectoryError, InternalServerError
from altrepo.filesystem.config_loader import load_repository_config
from altrepo.filesystem.discovery import discover_ipas

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure application logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.INFO if debug else logging.WARNING)


def _log_settings(settings: Settings) -> None:
    logger.info("Configuration:")
    logger.info("  Listen URL: %s", settings.listen_url)
    logger.info("  Listen Port: %d", settings.listen_port)
    logger.info("  Apps Directory: %s", settings.resolved_apps_dir)
    logger.info("  Config file: %s", settings.config_path)
    if settings.auth_token is not None:
        logger.info("  Authentication: Enabled (token required as query parameter)")
    else:
        logger.info("  Authentication: Disabled")
    if settings.obfuscate_downloads:
        logger.info("  Download URLs: Obfuscated (using secret key)")
    else:
        logger.info("  Download URLs: Standard (non-obfuscated)")
    logger.info("Repository URL: %s/repository.json", settings.base_url.rstrip("/"))


def initialize_state(app: FastAPI) -> None:
    """Load config.json into app state and run a startup scan.

    A broken config aborts startup; an apps directory without IPAs only
    produces a warning, since every request rescans anyway.
    """
    settings: Settings = app.state.settings
    app.state.repository_config = load_repository_config(settings.config_path)

    try:
        index = discover_ipas(settings.resolved_apps_dir)
    except AppsDirectoryError as exc:
        logger.warning("Startup scan failed: %s", exc)
        return
    if not index:
        logger.warning("No IPAs discovered. Server will still run but no apps are available.")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: startup and shutdown."""
    settings: Settings = app.state.settings
    _configure_logging(settings.debug)
    logger.info("Starting AltStore Repository Server (debug=%s)", settings.debug)
    _log_settings(settings)

    try:
        initialize_state(app)
    except (OSError, ValueError) as exc:
        logger.critical("Failed to load repository configuration: %s", exc)
        raise

    yield

    logger.info("AltStore Repository Server stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    docs_enabled = settings.debug or settings.expose_docs

    app = FastAPI(
        title="AltRepo",
        description="AltStore-compatible repository server for a directory of IPAs",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.state.settings = settings

    # AltStore fetches sources cross-origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "HEAD"],
        allow_headers=["Content-Type", "Accept"],
    )

    app.include_router(health_router)
    app.include_router(repository_router)
    app.include_router(apps_router)

    # Global exception handlers: safety net for unhandled exceptions

    @app.exception_handler(InternalServerError)
    async def internal_server_error_handler(
        request: Request, exc: InternalServerError
    ) -> JSONResponse:
        logger.error(
            "InternalServerError in %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    @app.exception_handler(OSError)
    async def os_error_handler(request: Request, exc: OSError) -> JSONResponse:
        if isinstance(exc, (ConnectionError, TimeoutError)):
            raise exc
        logger.error("OSError in %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Storage operation failed"},
        )

    return app


app = create_app()


def cli_entry() -> None:
    """CLI entry point for running the server."""
    import uvicorn

    settings: Settings = app.state.settings
    uvicorn.run(
        "altrepo.main:app",
        host=settings.listen_url,
        port=settings.listen_port,
        reload=settings.debug,
    )
