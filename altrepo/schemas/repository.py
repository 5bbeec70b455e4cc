"""Repository manifest schemas (config.json in, repository.json out)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _AltStoreModel(BaseModel):
    """Base for models whose JSON form uses AltStore's camelCase names."""

    model_config = ConfigDict(populate_by_name=True)


class AppVersion(_AltStoreModel):
    """One downloadable version of an app."""

    version: str
    date: str
    localized_description: str = Field(alias="localizedDescription")
    download_url: str = Field(alias="downloadURL")
    size: int = Field(ge=0)


class AppPermissions(_AltStoreModel):
    entitlements: list[str] = Field(default_factory=list)
    privacy: dict[str, str] = Field(default_factory=dict)


class AppConfig(_AltStoreModel):
    """Static per-app metadata; ``versions`` holds the manual entries."""

    beta: bool | None = None
    name: str
    bundle_identifier: str = Field(alias="bundleIdentifier")
    developer_name: str = Field(alias="developerName")
    subtitle: str | None = None
    localized_description: str = Field(alias="localizedDescription")
    icon_url: str = Field(alias="iconURL")
    tint_color: str = Field(alias="tintColor")
    category: str
    screenshot_urls: list[str] = Field(alias="screenshotURLs")
    app_permissions: AppPermissions = Field(alias="appPermissions")
    versions: list[AppVersion] = Field(default_factory=list)


class NewsItem(_AltStoreModel):
    app_id: str = Field(alias="appID")
    caption: str
    date: str
    identifier: str
    notify: bool
    tint_color: str = Field(alias="tintColor")
    title: str


class RepositoryConfig(_AltStoreModel):
    """Root of config.json.

    The generated repository.json has the same shape, with each app's
    ``versions`` replaced by the resolved list.
    """

    name: str
    identifier: str
    website: str
    subtitle: str | None = None
    description: str | None = None
    tint_color: str = Field(alias="tintColor")
    icon_url: str = Field(alias="iconURL")
    apps: list[AppConfig]
    source_url: str = Field(alias="sourceURL")
    news: list[NewsItem] = Field(default_factory=list)
    user_info: dict[str, Any] = Field(default_factory=dict, alias="userInfo")
