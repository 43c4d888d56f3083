"""Configuration settings for the TGClips API."""

import os
from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

CONFIG_PATH_ENV = "TGCLIPS_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and config.yaml.

    Priority: environment / .env > YAML overlay > defaults. ``supabase_url``
    and ``supabase_key`` have no default, so building settings without them
    fails with a validation error at startup.
    """

    model_config = SettingsConfigDict(  # type: ignore[assignment]
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Allow extra env vars not defined in model
    )

    # Record / object store
    supabase_url: str
    supabase_key: str
    videos_table: str = "publicVideos"
    channels_table: str = "users"
    storage_bucket: str = "videos"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = "*"  # comma-separated
    http_timeout_seconds: float = 30.0

    # Videos
    max_upload_mb: int = 100
    public_videos_limit: int | None = None
    download_mode: Literal["redirect", "signed", "stream"] = "redirect"
    signed_url_ttl: int = 60

    # Channels
    strict_channel_links: bool = True

    # Moderation (Sightengine)
    moderation_enabled: bool = False
    sightengine_api_user: str | None = None
    sightengine_api_secret: str | None = None
    sightengine_url: str = "https://api.sightengine.com/1.0/video/check-sync.json"
    moderation_threshold: float = 0.5
    moderation_timeout_seconds: float = 120.0

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_default: str = "120/minute"
    rate_limit_storage_uri: str = "memory://"

    # Prometheus
    prometheus_enabled: bool = True
    prometheus_path: str = "/metrics"

    @model_validator(mode="after")
    def _check_moderation_credentials(self) -> "Settings":
        if self.moderation_enabled and not (
            self.sightengine_api_user and self.sightengine_api_secret
        ):
            raise ValueError(
                "MODERATION_ENABLED requires SIGHTENGINE_API_USER and SIGHTENGINE_API_SECRET"
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the YAML overlay below env and .env, above defaults."""
        yaml_settings = YamlConfigSettingsSource(
            settings_cls,
            yaml_file=os.getenv(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH),
        )
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    # Convenience properties
    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins.

        Supports:
        - Comma-separated list: "https://a.app,http://localhost:3000"
        - Wildcard: "*"

        Returns:
            List of allowed origins
        """
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def max_upload_bytes(self) -> int:
        """Get upload size cap in bytes."""
        return self.max_upload_mb * 1024 * 1024

    @property
    def rest_url(self) -> str:
        """Base URL of the PostgREST record API."""
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    @property
    def storage_url(self) -> str:
        """Base URL of the storage API."""
        return f"{self.supabase_url.rstrip('/')}/storage/v1"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]
