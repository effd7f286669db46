"""Tests for configuration loading."""

from taskapi.core.config import Settings


def test_defaults() -> None:
    """Test settings defaults when no environment is set."""
    settings = Settings(_env_file=None)

    assert settings.default_page_size == 10
    assert settings.max_page_size == 100
    assert settings.is_production is False


def test_environment_overrides(monkeypatch) -> None:
    """Test values are read case-insensitively from the environment."""
    monkeypatch.setenv("SQLITE_DB_PATH", "/tmp/other.db")
    monkeypatch.setenv("ENVIRONMENT", "Production")

    settings = Settings(_env_file=None)

    assert settings.sqlite_db_path == "/tmp/other.db"
    assert settings.is_production is True
