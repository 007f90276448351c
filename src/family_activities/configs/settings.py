"""Centralized settings management for the activity extraction core."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Extraction settings powered by pydantic-settings.

    Loads configuration from ``ACTIVITY_``-prefixed environment variables and
    an optional .env file at the project root.
    """

    # -------------------------------------------------------------------------
    # ENVIRONMENT
    # -------------------------------------------------------------------------
    ENV: str = "development"
    DEBUG: bool = False

    # -------------------------------------------------------------------------
    # LOGGING
    # -------------------------------------------------------------------------
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # -------------------------------------------------------------------------
    # EXTRACTION
    # -------------------------------------------------------------------------
    MAX_EVENT_BLOCKS: int = Field(default=15, ge=1)

    # -------------------------------------------------------------------------
    # NORMALIZATION DEFAULTS
    # -------------------------------------------------------------------------
    DEFAULT_CITY: str = "Seattle"
    DEFAULT_STATE: str = "WA"
    DEFAULT_REGION: str = "Seattle Metro"
    DEFAULT_TIMEZONE: str = "America/Los_Angeles"
    DEFAULT_CURRENCY: str = "USD"

    # -------------------------------------------------------------------------
    # PATHS
    # -------------------------------------------------------------------------
    # BASE_DIR points to src/family_activities
    BASE_DIR: Path = Path(__file__).resolve().parents[1]
    EXTRACTION_CONFIG_PATH: Path = BASE_DIR / "configs" / "extraction.yaml"

    model_config = SettingsConfigDict(
        env_prefix="ACTIVITY_",
        env_file=str(Path(__file__).resolve().parents[3] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings.

    Returns
    -------
    Settings
        The singleton settings instance.
    """
    return Settings()
