"""Custom exceptions for Fosmis.

All modules should raise these exceptions instead of generic ones.
Each carries an optional ``context`` dict of structured data that is
appended to the message, so a caught error logs everything needed to
reproduce it.
"""

from __future__ import annotations


class FosmisBaseException(Exception):
    """Base exception for all Fosmis errors.

    Args:
        message: Human-readable error description.
        context: Optional dict of structured data for logging/debugging.
    """

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


class EmptyInputError(FosmisBaseException):
    """No usable input was supplied (e.g. a price series with zero points)."""


class NotFoundError(FosmisBaseException, LookupError):
    """A lookup (e.g. a price point by exact date) found nothing."""


class InvalidInputError(FosmisBaseException):
    """Input violates a precondition (negative principal, inverted date range, etc.)."""


class DivisionByZeroError(FosmisBaseException, ZeroDivisionError):
    """A zero price was used where a purchase or reference price is required."""


class InsufficientDataError(FosmisBaseException):
    """Not enough data to compute the requested metric (e.g. annualized return)."""
