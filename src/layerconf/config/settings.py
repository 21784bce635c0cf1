"""
Engine settings using Pydantic.

Provides environment-based configuration loading with LAYERCONF_ prefix.
These settings configure layerconf itself (API, CLI, default stores), not the
configuration it serves.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LAYERCONF_",
        extra="ignore",
    )

    # Row store database
    database_url: str = "sqlite+aiosqlite:///config.db"

    # Debug
    debug: bool = False

    # Logging
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api"

    # Periodic reload for database/remote sources, disabled when unset
    reload_interval_seconds: float | None = None

    # Remote row store (HttpRowStore)
    remote_url: str | None = None
    remote_token: str | None = None
    http_timeout: float = 30.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
