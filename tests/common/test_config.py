"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

from fosmis.common.config import Settings, get_settings


class TestSettings:
    """Test Settings loading from environment variables."""

    def test_settings_loads(self):
        assert get_settings() is not None

    def test_environment_from_env(self):
        """conftest.py sets FOSMIS_ENVIRONMENT=testing."""
        assert get_settings().environment == "testing"

    def test_settings_singleton(self):
        assert get_settings() is get_settings()

    def test_market_data_defaults(self, monkeypatch):
        monkeypatch.delenv("FOSMIS_DATA_DIR", raising=False)
        settings = Settings()
        assert settings.data_dir == Path("data")
        assert settings.csv_date_column == "Date"
        assert settings.csv_price_column == "Close/Last"
        assert settings.sp500_csv_path == Path("data") / "s&p500.csv"

    def test_default_principal(self):
        assert Settings().default_principal == 100_000.0

    def test_prefixed_env_override(self, monkeypatch):
        monkeypatch.setenv("FOSMIS_DATA_DIR", "/tmp/prices")
        monkeypatch.setenv("FOSMIS_DEFAULT_PRINCIPAL", "2500")
        settings = Settings()
        assert settings.data_dir == Path("/tmp/prices")
        assert settings.default_principal == 2500.0

    def test_unprefixed_env_ignored(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "CRITICAL")
        monkeypatch.delenv("FOSMIS_LOG_LEVEL", raising=False)
        assert Settings().log_level == "INFO"
