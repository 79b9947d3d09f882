"""Command-line runner for Fosmis simulations.

With no ``--strategy`` it runs the default batch: every default strategy
over the default S&P 500 scenarios. With ``--strategy`` it runs one
strategy over one scenario.

Run with:
    python -m fosmis.main
    python -m fosmis.main --strategy downturn_fixed --fixed-amount 1000 \\
        --drop-percentage 10 --start 2020-01-01 --end 2021-01-01
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from datetime import date
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from fosmis.backtesting.data_loader import (
    MarketIndex,
    SeriesCatalog,
    load_price_series_from_csv,
)
from fosmis.backtesting.engine import run_backtest
from fosmis.backtesting.schemas import (
    AllUpfrontConfig,
    BacktestResult,
    DollarCostAveragingConfig,
    DownturnFixedConfig,
    DownturnProportionalOfRemainingPrincipalConfig,
    Scenario,
    StrategyConfig,
)
from fosmis.backtesting.series import PriceSeries
from fosmis.common.config import get_settings
from fosmis.common.exceptions import FosmisBaseException
from fosmis.common.logging import get_logger, set_log_level

logger = get_logger("CLI")

DEFAULT_STRATEGY_CONFIGS: list[StrategyConfig] = [
    AllUpfrontConfig(),
    DollarCostAveragingConfig(fixed_amount=1000, interval=14),
    DownturnFixedConfig(fixed_amount=10_000, drop_percentage=2),
    DownturnProportionalOfRemainingPrincipalConfig(drop_percentage=2, drop_spend_multiplier=10),
]

STRATEGY_KINDS = [
    "all_upfront",
    "dollar_cost_averaging",
    "downturn_fixed",
    "downturn_proportional_initial",
    "downturn_proportional_remaining",
]

_strategy_adapter: TypeAdapter[StrategyConfig] = TypeAdapter(StrategyConfig)


def default_scenarios(series: PriceSeries, principal: float) -> list[Scenario]:
    """The two standard windows: 2020 to the latest data, and 2015-2020."""
    return [
        Scenario(
            start_date=date(2020, 1, 1),
            end_date=series.last_point.date,
            principal=principal,
            series=series,
        ),
        Scenario(
            start_date=date(2015, 1, 1),
            end_date=date(2020, 1, 1),
            principal=principal,
            series=series,
        ),
    ]


def strategy_config_from_args(args: argparse.Namespace) -> StrategyConfig:
    """Build a strategy config from CLI options.

    Raises:
        ValidationError: If the chosen strategy is missing a parameter.
    """
    raw = {
        "kind": args.strategy,
        "fixed_amount": args.fixed_amount,
        "interval": args.interval,
        "drop_percentage": args.drop_percentage,
        "fraction_of_principal_to_spend": args.fraction,
        "drop_spend_multiplier": args.multiplier,
    }
    return _strategy_adapter.validate_python({k: v for k, v in raw.items() if v is not None})


def format_result(result: BacktestResult) -> str:
    """Render one run as the block printed to the console."""
    report = result.report
    annualized = (
        f"{report.annualized_return:.2f}%" if report.annualized_return is not None else "n/a"
    )
    return "\n".join(
        [
            f"Strategy: {result.strategy.label()}",
            "<Results>",
            f"* Percentage return: {report.percentage_gain:.2f}%",
            f"* Annualized return: {annualized}",
            f"* Number of transactions: {report.event_count}",
            f"* Cash left: ${report.cash_left:,.2f}",
            "</Results>",
        ]
    )


def run_all(
    scenarios: Sequence[Scenario],
    configs: Sequence[StrategyConfig],
) -> list[BacktestResult]:
    """Run every config over every scenario, printing each result."""
    results: list[BacktestResult] = []
    for scenario in scenarios:
        print(f"**** Scenario: {scenario.start_date} to {scenario.end_date} ****")
        for config in configs:
            result = run_backtest(scenario, config)
            results.append(result)
            print(format_result(result))
        print()
    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fosmis",
        description="Backtest investment spending strategies against historical prices.",
    )
    parser.add_argument("--csv", type=Path, help="Price CSV (default: bundled S&P 500)")
    parser.add_argument("--start", type=date.fromisoformat, help="Scenario start (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, help="Scenario end (YYYY-MM-DD)")
    parser.add_argument("--principal", type=float, help="Starting budget")
    parser.add_argument("--strategy", choices=STRATEGY_KINDS, help="Run a single strategy")
    parser.add_argument("--fixed-amount", type=float)
    parser.add_argument("--interval", type=int)
    parser.add_argument("--drop-percentage", type=float)
    parser.add_argument("--fraction", type=float, help="Fraction of initial principal")
    parser.add_argument("--multiplier", type=float, help="Drop spend multiplier")
    parser.add_argument("--log-level", help="Override FOSMIS_LOG_LEVEL")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    try:
        set_log_level(args.log_level or settings.log_level)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    principal = args.principal if args.principal is not None else settings.default_principal

    try:
        if args.csv is not None:
            series = load_price_series_from_csv(args.csv)
        else:
            series = SeriesCatalog(settings).get(MarketIndex.S_AND_P_500)

        if args.start is not None or args.end is not None:
            scenarios = [
                Scenario(
                    start_date=args.start or series.first_point.date,
                    end_date=args.end or series.last_point.date,
                    principal=principal,
                    series=series,
                )
            ]
        else:
            scenarios = default_scenarios(series, principal)

        if args.strategy is not None:
            configs = [strategy_config_from_args(args)]
        else:
            configs = DEFAULT_STRATEGY_CONFIGS

        print("****** Fosmis Simulations ******")
        run_all(scenarios, configs)
    except (FosmisBaseException, ValidationError) as exc:
        logger.error("Simulation failed", extra={"data": {"error": str(exc)}})
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
