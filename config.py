"""
Configuration settings for learnsync.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LEARNSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Backend API
    # ========================================
    api_base_url: str = Field(
        default="https://api.beblocky.com",
        description="Base URL shared by the content, identity and progress services",
    )
    api_key: str | None = Field(
        default=None,
        description="Optional API key sent as X-API-Key",
    )
    http_timeout_seconds: float | None = Field(
        default=None,
        description="Request timeout; unset keeps the httpx transport default",
    )

    # ========================================
    # Time tracking
    # ========================================
    tick_interval_seconds: float = Field(
        default=60.0,
        description="Seconds between tracker ticks (one tick = one minute of study)",
    )
    flush_every_ticks: int = Field(
        default=60,
        ge=1,
        description="Ticks between remote time-spent flushes",
    )

    # ========================================
    # Local mirror
    # ========================================
    local_store_path: Path = Field(
        default=Path.home() / ".learnsync" / "mirror.db",
        description="SQLite file backing the local code mirror",
    )

    # ========================================
    # Identity
    # ========================================
    identity_salt: str = Field(
        default="beblocky_2024",
        description="Salt mixed into encoded email route tokens",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="INFO",
        description="Log level for the CLI stderr sink",
    )

    def get_client_options(self) -> dict[str, object]:
        """Keyword arguments shared by every service client."""
        return {
            "base_url": self.api_base_url,
            "api_key": self.api_key,
            "timeout": self.http_timeout_seconds,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
