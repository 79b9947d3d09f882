"""Application configuration via environment variables.

Uses pydantic-settings to load from .env file and environment variables
prefixed with ``FOSMIS_``. All config is centralized here; modules
should import `get_settings()`.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="FOSMIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ─── App ───
    environment: str = "development"
    log_level: str = "INFO"

    # ─── Market Data ───
    data_dir: Path = Path("data")
    sp500_csv_filename: str = "s&p500.csv"
    csv_date_column: str = "Date"
    csv_price_column: str = "Close/Last"

    # ─── Simulation Defaults ───
    default_principal: float = 100_000.0

    @property
    def sp500_csv_path(self) -> Path:
        """Full path of the bundled S&P 500 history CSV."""
        return self.data_dir / self.sp500_csv_filename


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton.

    Uses lru_cache so Settings is only instantiated once.
    In tests, call `get_settings.cache_clear()` to reset.
    """
    return Settings()
