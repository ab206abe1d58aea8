"""Configuration for subjectlens."""

from subjectlens.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
