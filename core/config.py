"""
Application configuration using Pydantic Settings.

This module provides typed and validated settings for the VAT services,
with support for environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ViesSettings(BaseSettings):
    """VIES VAT number registry settings."""

    model_config = SettingsConfigDict(env_prefix="VIES_")

    enabled: bool = Field(
        default=False,
        description="Validate tax numbers against VIES instead of by format only",
    )
    base_url: str = Field(
        default="https://ec.europa.eu/taxation_customs/vies/rest-api",
        description="VIES REST API base URL",
    )
    timeout: float = Field(default=10.0, gt=0, description="Request timeout in seconds")
    retries: int = Field(default=1, ge=0, le=1, description="Retries after a retryable failure")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove the trailing slash of the base URL."""
        return v.rstrip("/")


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )
    log_json: bool = Field(default=False, description="Render logs as JSON")

    # Sub-settings
    vies: ViesSettings = Field(default_factory=ViesSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper()
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Configured Settings instance.
    """
    return Settings()
