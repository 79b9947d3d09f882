"""Return summarizer — turns spend events into percentage and annualized returns.

Every purchase is valued at the series' final tradable price:
    shares   = amount / purchase price
    realized = shares * final price
    profit   = realized - amount

Aggregates:
    percentage_gain   = total profit / principal * 100
    annualized_return = ((total profit + principal) / principal) ** (1 / years) - 1, in %
    where years = days from the first purchase to the final price / 365.25

Usage:
    from fosmis.backtesting.summarizer import summarize_returns

    report = summarize_returns(scenario.principal, events, scenario.series)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from fosmis.backtesting.schemas import CapitalGain, ReturnReport, SpendEvent
from fosmis.backtesting.series import PriceSeries
from fosmis.common.exceptions import (
    DivisionByZeroError,
    InsufficientDataError,
    InvalidInputError,
)
from fosmis.common.logging import get_logger

logger = get_logger("SUMMARY")

DAYS_PER_YEAR = 365.25


def compute_capital_gain(event: SpendEvent, final_price: float) -> CapitalGain:
    """Value one purchase at ``final_price``.

    Raises:
        DivisionByZeroError: If the purchase point has no usable price.
    """
    purchase_price = event.point.price
    if not purchase_price:
        raise DivisionByZeroError(
            "Spend event has a zero purchase price",
            context={"date": str(event.point.date), "amount": event.amount},
        )
    shares = event.amount / purchase_price
    return CapitalGain(basis=event.amount, realized=shares * final_price)


def compute_cash_left(principal: float, events: Sequence[SpendEvent]) -> float:
    """Principal not spent by any event."""
    return principal - sum(e.amount for e in events)


def compute_percentage_gain(total_profit: float, principal: float) -> float:
    """Total profit as a percentage of the original principal, to 2 decimals.

    Raises:
        InvalidInputError: If principal is not positive.
    """
    if principal <= 0:
        raise InvalidInputError("Principal must be > 0", context={"principal": principal})
    return round((total_profit / principal) * 100, 2)


def compute_annualized_return(
    total_profit: float,
    principal: float,
    start_date: date,
    end_date: date,
) -> float:
    """Constant yearly growth rate giving the same total return, in %, to 2 decimals.

    Args:
        total_profit: Sum of profit over all purchases.
        principal: Original principal.
        start_date: Date of the first purchase.
        end_date: Date of the final valuation price.

    Raises:
        InvalidInputError: If principal is not positive.
        InsufficientDataError: If no time elapsed between start and end, or
            the period is so short that the yearly rate overflows.
    """
    if principal <= 0:
        raise InvalidInputError("Principal must be > 0", context={"principal": principal})

    years = (end_date - start_date).days / DAYS_PER_YEAR
    if years == 0:
        raise InsufficientDataError(
            "Cannot annualize a return over zero elapsed time",
            context={"start_date": str(start_date), "end_date": str(end_date)},
        )

    total_return = (total_profit + principal) / principal
    try:
        growth = total_return ** (1 / years)
    except OverflowError as exc:
        raise InsufficientDataError(
            "Annualized return is out of range for such a short holding period",
            context={
                "start_date": str(start_date),
                "end_date": str(end_date),
                "total_return": total_return,
            },
        ) from exc
    return round((growth - 1) * 100, 2)


def summarize_returns(
    principal: float,
    events: Sequence[SpendEvent],
    series: PriceSeries,
) -> ReturnReport:
    """Compute the full return report for a finished simulation.

    Args:
        principal: Original (not remaining) principal.
        events: Spend events in the order they were produced (ascending date).
        series: The series the simulation ran on; supplies the final price.

    Returns:
        ReturnReport with percentage gain, annualized return, event count
        and cash left.

    Raises:
        InvalidInputError: If principal is not positive.
        DivisionByZeroError: If an event was recorded on a zero price.
        InsufficientDataError: If there are no events or no elapsed time.
            The error context carries ``percentage_gain`` and ``cash_left``.
    """
    if principal <= 0:
        raise InvalidInputError("Principal must be > 0", context={"principal": principal})

    cash_left = compute_cash_left(principal, events)
    if cash_left < 0:
        logger.warning(
            "Events spent more than the principal",
            extra={"data": {"principal": principal, "cash_left": cash_left}},
        )

    if not events:
        raise InsufficientDataError(
            "Cannot annualize a run with no spend events",
            context={"percentage_gain": 0.0, "cash_left": cash_left, "event_count": 0},
        )

    final_point = series.last_tradable_point
    if final_point is None:
        raise InsufficientDataError("Series has no tradable point to value purchases at")

    gains = [compute_capital_gain(e, final_point.price) for e in events]
    total_profit = sum(g.profit for g in gains)
    percentage_gain = compute_percentage_gain(total_profit, principal)

    try:
        annualized = compute_annualized_return(
            total_profit, principal, events[0].point.date, final_point.date
        )
    except InsufficientDataError as exc:
        exc.context.update(
            {
                "percentage_gain": percentage_gain,
                "cash_left": cash_left,
                "event_count": len(events),
            }
        )
        raise

    report = ReturnReport(
        percentage_gain=percentage_gain,
        annualized_return=annualized,
        event_count=len(events),
        cash_left=cash_left,
    )
    logger.info(
        "Returns summarized",
        extra={
            "data": {
                "events": report.event_count,
                "percentage_gain": report.percentage_gain,
                "annualized_return": report.annualized_return,
                "cash_left": report.cash_left,
            }
        },
    )
    return report
