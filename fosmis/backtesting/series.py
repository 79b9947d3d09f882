"""Immutable, date-ordered price series.

A PriceSeries is built once at load time and only ever read afterwards,
so a single instance can back any number of simulation runs.

Usage:
    from fosmis.backtesting.series import PriceSeries

    series = PriceSeries(points)
    window = series.points_between(date(2020, 1, 1), date(2020, 12, 31))
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Iterable, Iterator
from datetime import date, datetime
from typing import TYPE_CHECKING

from fosmis.common.exceptions import EmptyInputError, InvalidInputError, NotFoundError
from fosmis.common.logging import get_logger

if TYPE_CHECKING:
    from fosmis.backtesting.schemas import PricePoint

logger = get_logger("SERIES")


def _as_date(value: date | datetime) -> date:
    """Calendar date of a date or datetime (time-of-day ignored)."""
    if isinstance(value, datetime):
        return value.date()
    return value


class PriceSeries:
    """Date-sorted collection of PricePoints with range and lookup queries.

    Attributes:
        first_point: Earliest point in the series.
        last_point: Latest point in the series.
    """

    __slots__ = ("_points", "_dates", "first_point", "last_point")

    def __init__(self, points: Iterable[PricePoint]) -> None:
        ordered = tuple(sorted(points, key=lambda p: p.date))
        if not ordered:
            raise EmptyInputError("Cannot build a price series from zero points")

        dates = tuple(p.date for p in ordered)
        for previous, current in zip(dates, dates[1:]):
            if previous == current:
                raise InvalidInputError(
                    "Duplicate date in price series",
                    context={"date": str(current)},
                )

        self._points = ordered
        self._dates = dates
        self.first_point = ordered[0]
        self.last_point = ordered[-1]

        logger.debug(
            "Price series built",
            extra={
                "data": {
                    "points": len(ordered),
                    "first_date": str(self.first_point.date),
                    "last_date": str(self.last_point.date),
                }
            },
        )

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[PricePoint]:
        return iter(self._points)

    def __repr__(self) -> str:
        return (
            f"PriceSeries({len(self)} points, "
            f"{self.first_point.date} to {self.last_point.date})"
        )

    @property
    def points(self) -> tuple[PricePoint, ...]:
        """All points, ascending by date."""
        return self._points

    @property
    def tradable_points(self) -> Iterator[PricePoint]:
        """Lazily yield points whose price is present and non-zero."""
        return (p for p in self._points if p.is_tradable)

    @property
    def last_tradable_point(self) -> PricePoint | None:
        """Latest point with a usable price, or None if the market never traded."""
        for point in reversed(self._points):
            if point.is_tradable:
                return point
        return None

    def point_at_date(self, day: date | datetime) -> PricePoint:
        """Look up the point recorded on exactly ``day``.

        Raises:
            NotFoundError: If no point has that date.
        """
        target = _as_date(day)
        idx = bisect_left(self._dates, target)
        if idx < len(self._dates) and self._dates[idx] == target:
            return self._points[idx]
        raise NotFoundError(f"Day not found for date {target}", context={"date": str(target)})

    def points_between(
        self, start: date | datetime, end: date | datetime
    ) -> tuple[PricePoint, ...]:
        """Points whose date lies in [start, end], comparing calendar dates only.

        Returns an empty tuple when nothing falls in range.

        Raises:
            InvalidInputError: If start is after end.
        """
        start_day = _as_date(start)
        end_day = _as_date(end)
        if start_day > end_day:
            raise InvalidInputError(
                "Range start must not be after range end",
                context={"start": str(start_day), "end": str(end_day)},
            )
        lo = bisect_left(self._dates, start_day)
        hi = bisect_right(self._dates, end_day)
        return self._points[lo:hi]
