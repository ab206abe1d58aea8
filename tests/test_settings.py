"""Tests for settings."""

from subjectlens.config import Settings, get_settings


def test_defaults(monkeypatch):
    """Test default settings."""
    for name in ("LOG_LEVEL", "CATALOG_PATH", "DEFAULT_DSAR_TYPE", "OUTPUT_FORMAT"):
        monkeypatch.delenv(f"SUBJECTLENS_{name}", raising=False)

    settings = Settings(_env_file=None)

    assert settings.log_level == "WARNING"
    assert settings.catalog_path is None
    assert settings.default_dsar_type == "ACCESS"
    assert settings.output_format == "table"


def test_env_prefix(monkeypatch):
    """Test settings are read from SUBJECTLENS_ variables."""
    monkeypatch.setenv("SUBJECTLENS_CATALOG_PATH", "/etc/subjectlens/catalog.yaml")
    monkeypatch.setenv("SUBJECTLENS_DEFAULT_DSAR_TYPE", "ERASURE")

    settings = Settings(_env_file=None)

    assert settings.catalog_path == "/etc/subjectlens/catalog.yaml"
    assert settings.default_dsar_type == "ERASURE"


def test_get_settings_cached():
    """Test get_settings returns the same instance."""
    assert get_settings() is get_settings()
