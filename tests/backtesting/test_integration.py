"""Integration tests — end-to-end backtest from a CSV file through every strategy."""

from __future__ import annotations

import math
from datetime import date, timedelta

import pytest

from fosmis.backtesting.data_loader import MarketIndex, SeriesCatalog
from fosmis.backtesting.engine import run_backtest
from fosmis.backtesting.schemas import (
    AllUpfrontConfig,
    DollarCostAveragingConfig,
    DownturnFixedConfig,
    DownturnProportionalOfInitialPrincipalConfig,
    DownturnProportionalOfRemainingPrincipalConfig,
    Scenario,
)
from fosmis.common.config import Settings
from tests.factories import write_price_csv

ALL_CONFIGS = [
    AllUpfrontConfig(),
    DollarCostAveragingConfig(fixed_amount=1000, interval=14),
    DownturnFixedConfig(fixed_amount=10_000, drop_percentage=2),
    DownturnProportionalOfInitialPrincipalConfig(
        fraction_of_principal_to_spend=0.5, drop_percentage=2
    ),
    DownturnProportionalOfRemainingPrincipalConfig(drop_percentage=2, drop_spend_multiplier=10),
]


@pytest.fixture
def wavy_catalog(tmp_path) -> SeriesCatalog:
    """Two years of weekday prices: an upward drift with a 10% swing every ~6 weeks."""
    rows = []
    day = date(2019, 1, 1)
    i = 0
    while day <= date(2020, 12, 31):
        if day.weekday() < 5:
            price = 100 * (1 + 0.0005 * i) * (1 + 0.1 * math.sin(i / 5))
            rows.append((day.strftime("%m/%d/%Y"), f"{price:,.2f}"))
            i += 1
        day += timedelta(days=1)
    write_price_csv(tmp_path / "s&p500.csv", rows)
    return SeriesCatalog(Settings(data_dir=tmp_path))


class TestEndToEnd:
    """Full pipeline: CSV → PriceSeries → strategy → report."""

    @pytest.mark.parametrize("config", ALL_CONFIGS, ids=lambda c: c.kind)
    def test_every_strategy_conserves_principal(self, wavy_catalog, config):
        series = wavy_catalog.get(MarketIndex.S_AND_P_500)
        scenario = Scenario(
            start_date=date(2019, 1, 1),
            end_date=date(2020, 6, 30),
            principal=100_000,
            series=series,
        )
        result = run_backtest(scenario, config)

        spent = sum(e.amount for e in result.events)
        assert spent + result.report.cash_left == pytest.approx(100_000)
        assert result.report.cash_left >= 0
        assert result.report.event_count == len(result.events)
        assert result.report.event_count > 0
        assert result.report.annualized_return is not None
        for event in result.events:
            assert scenario.start_date <= event.point.date <= scenario.end_date
            assert event.point.is_tradable

    def test_all_upfront_matches_buy_and_hold(self, wavy_catalog):
        series = wavy_catalog.get(MarketIndex.S_AND_P_500)
        scenario = Scenario(
            start_date=date(2019, 1, 1),
            end_date=date(2020, 12, 31),
            principal=100_000,
            series=series,
        )
        result = run_backtest(scenario, AllUpfrontConfig())

        first = result.events[0].point
        expected = round((series.last_point.price / first.price - 1) * 100, 2)
        assert result.report.percentage_gain == pytest.approx(expected, abs=0.01)
        assert result.report.cash_left == 0

    def test_shared_series_across_runs(self, wavy_catalog):
        series = wavy_catalog.get(MarketIndex.S_AND_P_500)
        scenario = Scenario(
            start_date=date(2019, 6, 1),
            end_date=date(2020, 6, 1),
            principal=50_000,
            series=series,
        )
        results = [run_backtest(scenario, c) for c in ALL_CONFIGS]
        assert len({id(r.events) for r in results}) == len(ALL_CONFIGS)
        assert len(series) == len(wavy_catalog.get(MarketIndex.S_AND_P_500))
