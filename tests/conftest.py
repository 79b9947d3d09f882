"""Root test configuration — shared fixtures for all test modules.

IMPORTANT: Environment variables are set BEFORE any fosmis imports
so that config.py loads predictable Settings without a .env file.
"""

from __future__ import annotations

import os

os.environ.setdefault("FOSMIS_ENVIRONMENT", "testing")
os.environ.setdefault("FOSMIS_LOG_LEVEL", "DEBUG")

# Now safe to import fosmis modules
from datetime import date

import pytest

from fosmis.backtesting.schemas import Scenario
from fosmis.backtesting.series import PriceSeries
from fosmis.common.config import Settings, get_settings
from tests.factories import make_series_from_pairs

# ─── Clear cached settings so test env vars are used ───
get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings as seen by the code under test."""
    return get_settings()


# ─── Sample Data Fixtures ───


@pytest.fixture
def dip_series() -> PriceSeries:
    """Three points: a 20% dip, then a recovery a year later."""
    return make_series_from_pairs(
        [
            (date(2020, 1, 1), 100.0),
            (date(2020, 1, 2), 80.0),
            (date(2021, 1, 2), 120.0),
        ]
    )


@pytest.fixture
def dip_scenario(dip_series: PriceSeries) -> Scenario:
    """The dip series over its full range with a 10,000 principal."""
    return Scenario(
        start_date=date(2020, 1, 1),
        end_date=date(2021, 1, 2),
        principal=10_000,
        series=dip_series,
    )
