"""Backtesting-specific exceptions."""

from __future__ import annotations

from fosmis.common.exceptions import FosmisBaseException


class BacktestError(FosmisBaseException):
    """General backtesting error (unreadable data file, unknown strategy, etc.)."""
