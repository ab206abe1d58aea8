"""
Application settings using Pydantic.

Provides environment-based configuration loading with SUBJECTLENS_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SUBJECTLENS_",
    )

    # Logging
    log_level: str = "WARNING"

    # Discovery catalogue (YAML) used when --catalog is not given
    catalog_path: str | None = None

    # CLI defaults
    default_dsar_type: str = "ACCESS"
    output_format: str = "table"  # table, json


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
