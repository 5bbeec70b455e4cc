"""Shared test fixtures for AltRepo."""

from __future__ import annotations

import json
import os
import plistlib
import zipfile
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient

from altrepo.config import Settings
from altrepo.main import create_app, initialize_state

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

# 2025-01-13 12:00:00 UTC
FIXED_MTIME = 1736769600


def make_info_plist(
    bundle_id: str = "com.example.myapp",
    version: str = "100",
    short_version: str | None = "1.0.0",
    name: str | None = "MyApp",
    **extra: Any,
) -> dict[str, Any]:
    """Build an Info.plist dictionary; pass None to leave a key out."""
    plist: dict[str, Any] = {"CFBundleIdentifier": bundle_id, "CFBundleVersion": version}
    if short_version is not None:
        plist["CFBundleShortVersionString"] = short_version
    if name is not None:
        plist["CFBundleName"] = name
    plist.update(extra)
    return plist


def write_ipa(
    path: Path,
    plist: dict[str, Any] | None = None,
    *,
    bundle_dir: str = "MyApp.app",
    extra_members: dict[str, bytes] | None = None,
    mtime: int | None = FIXED_MTIME,
) -> Path:
    """Write a minimal IPA (zip) at ``path``.

    With ``plist=None`` the archive has no Info.plist at all.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(f"Payload/{bundle_dir}/", b"")
        if plist is not None:
            archive.writestr(f"Payload/{bundle_dir}/Info.plist", plistlib.dumps(plist))
        archive.writestr(f"Payload/{bundle_dir}/MyApp", b"\x00" * 64)
        for name, data in (extra_members or {}).items():
            archive.writestr(name, data)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def make_app_config(name: str = "MyApp", versions: list[dict[str, Any]] | None = None) -> dict:
    return {
        "name": name,
        "bundleIdentifier": f"com.example.{name.lower()}",
        "developerName": "Example Dev",
        "localizedDescription": f"{name} description",
        "iconURL": f"https://example.com/{name}.png",
        "tintColor": "#3366ff",
        "category": "utilities",
        "screenshotURLs": [],
        "appPermissions": {"entitlements": [], "privacy": {}},
        "versions": versions or [],
    }


def make_repository_config(apps: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {
        "name": "Test Repo",
        "identifier": "com.example.repo",
        "website": "https://example.com",
        "tintColor": "#000000",
        "iconURL": "https://example.com/icon.png",
        "sourceURL": "https://example.com/repository.json",
        "apps": apps if apps is not None else [make_app_config()],
        "userInfo": {"patreonAccessToken": None, "featured": [1, 2]},
    }


@asynccontextmanager
async def create_test_client(settings: Settings) -> AsyncIterator[AsyncClient]:
    """Create an HTTP test client with a fully initialized app.

    ASGITransport does not run the lifespan, so the config load is done here.
    """
    app = create_app(settings)
    initialize_state(app)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def apps_dir(tmp_path: Path) -> Path:
    """Empty apps root directory."""
    apps = tmp_path / "apps"
    apps.mkdir()
    return apps


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """config.json with a single app named MyApp."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps(make_repository_config()), encoding="utf-8")
    return path


@pytest.fixture
def test_settings(apps_dir: Path, config_path: Path) -> Settings:
    """Create test settings with temporary paths."""
    return Settings(
        _env_file=None,
        debug=True,
        apps_dir=apps_dir,
        config_path=config_path,
        external_base_url="https://repo.example.com/",
    )
