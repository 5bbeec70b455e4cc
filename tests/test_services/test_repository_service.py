"""Tests for repository manifest generation."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest

from altrepo.filesystem.discovery import discover_ipas
from altrepo.schemas.repository import RepositoryConfig
from altrepo.services.repository_service import (
    build_download_url,
    generate_repository,
    get_app_directory_name,
    render_repository_json,
)
from altrepo.services.token_service import generate_download_token
from tests.conftest import make_app_config, make_info_plist, make_repository_config, write_ipa

if TYPE_CHECKING:
    from pathlib import Path

BASE_URL = "https://repo.example.com/"


def _config(**app_kwargs: object) -> RepositoryConfig:
    return RepositoryConfig.model_validate(
        make_repository_config([make_app_config(**app_kwargs)])  # type: ignore[arg-type]
    )


class TestAppDirectoryName:
    def test_identity(self) -> None:
        assert get_app_directory_name("YouTubePlus") == "YouTubePlus"


class TestBuildDownloadUrl:
    def test_direct(self) -> None:
        url = build_download_url(BASE_URL, "MyApp", "MyApp_1.0.ipa")
        assert url == "https://repo.example.com/apps/MyApp/MyApp_1.0.ipa"

    def test_direct_quotes_segments(self) -> None:
        url = build_download_url("https://x", "My App", "My App 1.0.ipa")
        assert url == "https://x/apps/My%20App/My%20App%201.0.ipa"

    def test_obfuscated(self) -> None:
        url = build_download_url(BASE_URL, "MyApp", "MyApp_1.0.ipa", secret="s3cret")
        token = generate_download_token("MyApp", "MyApp_1.0.ipa", "s3cret")
        assert url == f"https://repo.example.com/download/{token}"

    def test_request_token_on_direct_links(self) -> None:
        url = build_download_url("https://x", "MyApp", "a.ipa", request_token="abc 123")
        assert url == "https://x/apps/MyApp/a.ipa?token=abc+123"

    def test_request_token_not_on_obfuscated_links(self) -> None:
        url = build_download_url("https://x", "MyApp", "a.ipa", secret="s", request_token="t")
        assert "?" not in url


class TestGenerateRepository:
    def test_filename_fallback_end_to_end(self, apps_dir: Path) -> None:
        write_ipa(apps_dir / "MyApp" / "MyApp_1.2.3.ipa", None)
        repo = generate_repository(_config(), discover_ipas(apps_dir), BASE_URL)
        [version] = repo.apps[0].versions
        assert version.version == "1.2.3"
        assert version.date == "2025-01-13"
        assert version.download_url == "https://repo.example.com/apps/MyApp/MyApp_1.2.3.ipa"
        assert version.size == (apps_dir / "MyApp" / "MyApp_1.2.3.ipa").stat().st_size

    def test_filename_fallback_obfuscated(self, apps_dir: Path) -> None:
        write_ipa(apps_dir / "MyApp" / "MyApp_1.2.3.ipa", None)
        repo = generate_repository(
            _config(), discover_ipas(apps_dir), BASE_URL, secret="s3cret"
        )
        [version] = repo.apps[0].versions
        token = generate_download_token("MyApp", "MyApp_1.2.3.ipa", "s3cret")
        assert version.download_url == f"https://repo.example.com/download/{token}"

    def test_plist_metadata_used(self, apps_dir: Path) -> None:
        write_ipa(
            apps_dir / "MyApp" / "whatever.ipa",
            make_info_plist(version="321", short_version="3.2"),
        )
        repo = generate_repository(_config(), discover_ipas(apps_dir), BASE_URL)
        [version] = repo.apps[0].versions
        assert version.version == "3.2"
        assert version.localized_description == "Version 3.2 (build 321)"

    def test_manual_versions_merged(self, apps_dir: Path) -> None:
        write_ipa(apps_dir / "MyApp" / "MyApp_1.0.0.ipa", None)
        write_ipa(apps_dir / "MyApp" / "MyApp_2.0.0.ipa", None)
        manual = {
            "version": "1.0.0",
            "date": "2024-06-01",
            "localizedDescription": "Hand-written notes",
            "downloadURL": "https://old.example.com/v1.ipa",
            "size": 1,
        }
        repo = generate_repository(
            _config(versions=[manual]), discover_ipas(apps_dir), BASE_URL
        )
        versions = repo.apps[0].versions
        assert [v.version for v in versions] == ["2.0.0", "1.0.0"]
        v1 = versions[1]
        assert v1.date == "2024-06-01"
        assert v1.localized_description == "Hand-written notes"
        assert v1.download_url == "https://repo.example.com/apps/MyApp/MyApp_1.0.0.ipa"
        assert v1.size > 1

    def test_app_without_ipas_keeps_manual(
        self, apps_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        manual = {
            "version": "1.0",
            "date": "2024-01-01",
            "localizedDescription": "Manual",
            "downloadURL": "https://cdn.example.com/a.ipa",
            "size": 10,
        }
        with caplog.at_level(logging.WARNING):
            repo = generate_repository(
                _config(versions=[manual]), discover_ipas(apps_dir), BASE_URL
            )
        [version] = repo.apps[0].versions
        assert version.download_url == "https://cdn.example.com/a.ipa"
        assert "No IPAs found for app MyApp" in caplog.text

    def test_unrelated_directories_ignored(self, apps_dir: Path) -> None:
        write_ipa(apps_dir / "Unconfigured" / "X_1.0.ipa", None)
        repo = generate_repository(_config(), discover_ipas(apps_dir), BASE_URL)
        assert repo.apps[0].versions == []

    def test_config_not_mutated(self, apps_dir: Path) -> None:
        write_ipa(apps_dir / "MyApp" / "MyApp_1.0.ipa", None)
        config = _config()
        generate_repository(config, discover_ipas(apps_dir), BASE_URL)
        assert config.apps[0].versions == []

    def test_repeat_generation_is_stable(self, apps_dir: Path) -> None:
        write_ipa(apps_dir / "MyApp" / "MyApp_1.0.ipa", None)
        config = _config()
        first = render_repository_json(
            generate_repository(config, discover_ipas(apps_dir), BASE_URL)
        )
        second = render_repository_json(
            generate_repository(config, discover_ipas(apps_dir), BASE_URL)
        )
        assert first == second


class TestRenderRepositoryJson:
    def test_camel_case_fields(self, apps_dir: Path) -> None:
        write_ipa(apps_dir / "MyApp" / "MyApp_1.0.ipa", None)
        repo = generate_repository(_config(), discover_ipas(apps_dir), BASE_URL)
        content = render_repository_json(repo)
        data = json.loads(content)
        assert data["sourceURL"] == "https://example.com/repository.json"
        assert data["tintColor"] == "#000000"
        assert data["userInfo"] == {"patreonAccessToken": None, "featured": [1, 2]}
        app = data["apps"][0]
        assert app["bundleIdentifier"] == "com.example.myapp"
        assert app["localizedDescription"] == "MyApp description"
        assert app["screenshotURLs"] == []
        assert app["appPermissions"] == {"entitlements": [], "privacy": {}}
        version = app["versions"][0]
        assert set(version) == {"version", "date", "localizedDescription", "downloadURL", "size"}

    def test_indented(self) -> None:
        content = render_repository_json(_config())
        assert content.startswith("{\n  ")
