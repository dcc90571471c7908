"""
Configuration settings for the basecamp LMS backend.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Remote Store (PostgREST / Supabase)
    # ========================================
    supabase_url: str = Field(
        default="",
        description="Base URL of the Supabase project (REST lives under /rest/v1)",
    )
    supabase_anon_key: str = Field(
        default="",
        description="Project API key sent as the apikey header",
    )
    supabase_access_token: str | None = Field(
        default=None,
        description="Bearer token for row-level security (defaults to the API key)",
    )
    store_timeout_seconds: float = Field(
        default=30.0,
        description="Transport timeout for store requests",
    )

    # ========================================
    # Accountability Partners
    # ========================================
    pairing_timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for one auto-pairing run",
    )

    # ========================================
    # Enrollment Defaults
    # ========================================
    default_total_tasks: int = Field(
        default=20,
        description="total_tasks written on self-registered enrollments",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8100,
        description="API server port",
    )

    @property
    def rest_url(self) -> str:
        """PostgREST endpoint root."""
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        """GoTrue endpoint root."""
        return f"{self.supabase_url.rstrip('/')}/auth/v1"

    def has_store_configured(self) -> bool:
        """Check if both the store URL and API key are present."""
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
