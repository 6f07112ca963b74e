"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from stocklens.core.config import Settings, get_settings


def test_settings_has_defaults():
    """Settings should have sensible defaults."""
    settings = Settings()

    assert settings.app_name == "StockLens"
    assert settings.app_env == "development"
    assert settings.debug is False
    assert settings.log_level == "INFO"
    assert settings.log_format == "json"
    assert settings.api_port == 8123
    assert settings.analytics_round_digits == 2
    assert settings.analytics_max_page_size == 1000
    assert settings.analytics_csv_path is None


def test_settings_is_development_property():
    """Only the development environment serves API docs."""
    assert Settings(app_env="development").is_development is True
    assert Settings(app_env="production").is_development is False


def test_get_settings_returns_singleton():
    """get_settings should return cached singleton."""
    settings1 = get_settings()
    settings2 = get_settings()

    assert settings1 is settings2


def test_settings_from_environment(monkeypatch):
    """Settings should load from environment variables."""
    monkeypatch.setenv("APP_NAME", "TestApp")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("ANALYTICS_ROUND_DIGITS", "4")
    monkeypatch.setenv("ANALYTICS_CSV_PATH", "/data/inventory.csv")

    # Create new settings instance (not cached)
    settings = Settings()

    assert settings.app_name == "TestApp"
    assert settings.debug is True
    assert settings.log_level == "DEBUG"
    assert settings.analytics_round_digits == 4
    assert settings.analytics_csv_path == "/data/inventory.csv"


@pytest.mark.parametrize("digits", [-1, 7])
def test_round_digits_out_of_range_rejected(digits):
    """Rounding precision must stay within 0-6."""
    with pytest.raises(ValidationError, match="analytics_round_digits"):
        Settings(analytics_round_digits=digits)


def test_cors_origins_from_environment(monkeypatch):
    """List settings are read as JSON from the environment."""
    monkeypatch.setenv("CORS_ORIGINS", '["https://reports.example.com"]')

    assert Settings().cors_origins == ["https://reports.example.com"]


def test_batch_size_must_be_positive():
    with pytest.raises(ValidationError, match="ingest_batch_size"):
        Settings(ingest_batch_size=0)
