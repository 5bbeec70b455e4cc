"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """AltStore repository server settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    debug: bool = False
    expose_docs: bool = False

    # Server
    listen_url: str = "0.0.0.0"
    listen_port: int = Field(default=8080, ge=1, le=65535)
    external_base_url: str | None = None

    # Paths
    apps_dir: Path = Path("apps")
    config_path: Path = Path("config.json")

    # Access
    auth_token: str | None = None
    download_secret: str | None = None

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @field_validator("external_base_url", "auth_token", "download_secret", mode="before")
    @classmethod
    def blank_as_unset(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def base_url(self) -> str:
        """External URL used to build absolute download links."""
        if self.external_base_url:
            return self.external_base_url
        return f"http://{self.listen_url}:{self.listen_port}"

    @property
    def resolved_apps_dir(self) -> Path:
        """Apps directory, absolute (relative paths resolve against the CWD)."""
        if self.apps_dir.is_absolute():
            return self.apps_dir
        return Path.cwd() / self.apps_dir

    @property
    def obfuscate_downloads(self) -> bool:
        return self.download_secret is not None
