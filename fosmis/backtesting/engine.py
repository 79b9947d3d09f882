"""Backtesting engine — synchronous day-by-day simulation.

Feeds every tradable point of a scenario's date range through a spending
strategy, collecting the purchases it makes. Stops as soon as the
strategy has no budget left; later points are never visited.

The engine is entirely synchronous: the series is pre-loaded in memory,
no I/O occurs during simulation.

Usage:
    from fosmis.backtesting.engine import run_backtest

    result = run_backtest(scenario, DollarCostAveragingConfig(fixed_amount=1000, interval=14))
"""

from __future__ import annotations

import time

from fosmis.backtesting.schemas import (
    BacktestResult,
    ReturnReport,
    Scenario,
    SpendEvent,
    StrategyConfig,
)
from fosmis.backtesting.strategies import Strategy, build_strategy
from fosmis.backtesting.summarizer import summarize_returns
from fosmis.common.exceptions import InsufficientDataError
from fosmis.common.logging import get_logger

logger = get_logger("SIMULATION")


def run_simulation(scenario: Scenario, strategy: Strategy) -> list[SpendEvent]:
    """Drive ``strategy`` over the scenario's date range.

    Points without a usable price are skipped; the strategy never sees them.

    Args:
        scenario: Date range, principal and series to simulate over.
        strategy: A freshly constructed strategy, owned by this run.

    Returns:
        Spend events in date order.
    """
    points = scenario.series.points_between(scenario.start_date, scenario.end_date)
    events: list[SpendEvent] = []

    for point in points:
        if not point.is_tradable:
            continue
        if not strategy.can_act():
            logger.info(
                "Strategy finished acting",
                extra={"data": {"strategy": strategy.name, "day": str(point.date)}},
            )
            break
        event = strategy.act(point)
        if event is not None:
            events.append(event)

    return events


def run_backtest(scenario: Scenario, config: StrategyConfig) -> BacktestResult:
    """Build a strategy from config, simulate it and summarize the outcome.

    A run that made no purchases (or made them only on the final day) has
    no defined annualized return; its report carries ``annualized_return=None``.

    Args:
        scenario: The backtest window and budget.
        config: Strategy configuration.

    Returns:
        BacktestResult with the events and their ReturnReport.

    Raises:
        InvalidInputError: If the scenario's principal is not positive.
    """
    start_time = time.monotonic()

    strategy = build_strategy(config, scenario.principal)
    events = run_simulation(scenario, strategy)

    try:
        report = summarize_returns(scenario.principal, events, scenario.series)
    except InsufficientDataError as exc:
        logger.warning(
            "Annualized return undefined",
            extra={"data": {"strategy": config.label(), "reason": exc.message}},
        )
        report = ReturnReport(
            percentage_gain=exc.context.get("percentage_gain", 0.0),
            annualized_return=None,
            event_count=len(events),
            cash_left=exc.context.get("cash_left", strategy.principal),
        )

    duration = time.monotonic() - start_time

    return BacktestResult(
        strategy=config,
        scenario_start=scenario.start_date,
        scenario_end=scenario.end_date,
        principal=scenario.principal,
        events=events,
        report=report,
        duration_seconds=round(duration, 4),
    )
