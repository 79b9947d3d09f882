"""Spending strategies — stateful policies that decide when and how much to buy.

Every strategy owns a remaining budget (``principal``). It is Active while
that budget is positive and Exhausted once it reaches zero; an exhausted
strategy never becomes active again. The only way the budget changes is
``spend()``, which clamps the request to what is left.

Variants:
    AllUpfront:                               everything on the first day.
    DollarCostAveraging:                      fixed amount every N market days.
    DownturnFixed:                            fixed amount on each qualifying drop.
    DownturnProportionalOfInitialPrincipal:   drop% x initial budget x fraction.
    DownturnProportionalOfRemainingPrincipal: drop% x remaining budget x multiplier.

The downturn variants are one DownturnStrategy with a different sizing
function. Its drop detector keeps a ratchet reference price: set on the
first observation and moved only when a drop triggers a purchase.

Usage:
    from fosmis.backtesting.strategies import build_strategy

    strategy = build_strategy(DownturnFixedConfig(fixed_amount=1000, drop_percentage=10), 10_000)
    if strategy.can_act():
        event = strategy.act(point)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from fosmis.backtesting.exceptions import BacktestError
from fosmis.backtesting.schemas import (
    AllUpfrontConfig,
    DollarCostAveragingConfig,
    DownturnFixedConfig,
    DownturnProportionalOfInitialPrincipalConfig,
    DownturnProportionalOfRemainingPrincipalConfig,
    PricePoint,
    SpendEvent,
    StrategyConfig,
)
from fosmis.common.exceptions import DivisionByZeroError, InvalidInputError
from fosmis.common.logging import get_logger

logger = get_logger("STRATEGY")


def percentage_drop(reference_price: float, current_price: float) -> float:
    """Relative decrease from reference_price to current_price, in percent.

    Negative when the price went up.

    Raises:
        DivisionByZeroError: If the reference price is zero.
    """
    if reference_price == 0:
        raise DivisionByZeroError(
            "Reference price is zero",
            context={"current_price": current_price},
        )
    return (reference_price - current_price) / reference_price * 100


def _require_non_negative(**values: float) -> None:
    for name, value in values.items():
        if value < 0:
            raise InvalidInputError(f"{name} must be >= 0", context={name: value})


class Strategy(ABC):
    """Base for all spending strategies.

    Attributes:
        principal: Remaining budget. Decreases only through spend().
    """

    def __init__(self, principal: float) -> None:
        _require_non_negative(principal=principal)
        self.principal = principal

    @property
    def name(self) -> str:
        return type(self).__name__

    def can_act(self) -> bool:
        """True while there is budget left to spend."""
        return self.principal > 0

    def spend(self, amount: float) -> float:
        """Spend up to ``amount`` from the remaining budget.

        Args:
            amount: Requested spend. Negative requests spend nothing.

        Returns:
            The amount actually spent: min(amount, remaining principal).
        """
        spent = min(max(amount, 0.0), self.principal)
        self.principal -= spent
        logger.debug(
            "Spent",
            extra={
                "data": {
                    "strategy": self.name,
                    "requested": amount,
                    "spent": spent,
                    "remaining": self.principal,
                }
            },
        )
        return spent

    @abstractmethod
    def act(self, point: PricePoint) -> SpendEvent | None:
        """Decide whether to buy on ``point``; None means no action today."""


class AllUpfront(Strategy):
    """Spend the entire principal on the first day acted on."""

    def act(self, point: PricePoint) -> SpendEvent:
        spent = self.spend(self.principal)
        return SpendEvent(point=point, amount=spent)


class DollarCostAveraging(Strategy):
    """Spend ``fixed_amount`` on every ``interval``-th day acted on."""

    def __init__(self, principal: float, fixed_amount: float, interval: int) -> None:
        super().__init__(principal)
        _require_non_negative(fixed_amount=fixed_amount)
        if interval < 1:
            raise InvalidInputError("interval must be >= 1", context={"interval": interval})
        self.fixed_amount = fixed_amount
        self.interval = interval
        self.counter = 0

    def act(self, point: PricePoint) -> SpendEvent | None:
        self.counter += 1
        if self.counter != self.interval:
            return None
        self.counter = 0
        spent = self.spend(self.fixed_amount)
        return SpendEvent(point=point, amount=spent)


# (drop percent, remaining principal) -> amount to request
SpendSizer = Callable[[float, float], float]


def fixed_size(fixed_amount: float) -> SpendSizer:
    """Sizer that always requests ``fixed_amount``."""
    return lambda drop, remaining: fixed_amount


def initial_principal_size(initial_principal: float, fraction: float) -> SpendSizer:
    """Sizer requesting drop% of the initial principal, scaled by ``fraction``."""
    return lambda drop, remaining: (drop / 100) * initial_principal * fraction


def remaining_principal_size(multiplier: float) -> SpendSizer:
    """Sizer requesting drop% of the remaining principal, scaled by ``multiplier``."""
    return lambda drop, remaining: (drop / 100) * remaining * multiplier


class DownturnStrategy(Strategy):
    """Buy when the price has fallen at least ``drop_percentage`` from a reference.

    The reference price is recorded on the first call and replaced only when
    a drop triggers a purchase; non-triggering days leave it untouched.
    ``size_spend`` decides how much a triggered drop requests.
    """

    def __init__(
        self,
        principal: float,
        drop_percentage: float,
        size_spend: SpendSizer,
    ) -> None:
        super().__init__(principal)
        _require_non_negative(drop_percentage=drop_percentage)
        self.drop_percentage = drop_percentage
        self.size_spend = size_spend
        self.last_price: float | None = None

    def act(self, point: PricePoint) -> SpendEvent | None:
        current_price = point.price

        if self.last_price is None:
            self.last_price = current_price
            return None

        drop = percentage_drop(self.last_price, current_price)
        if drop < self.drop_percentage:
            return None

        spent = self.spend(self.size_spend(drop, self.principal))
        self.last_price = current_price
        return SpendEvent(point=point, amount=spent)


class DownturnFixed(DownturnStrategy):
    """Spend ``fixed_amount`` on each qualifying drop."""

    def __init__(self, principal: float, fixed_amount: float, drop_percentage: float) -> None:
        _require_non_negative(fixed_amount=fixed_amount)
        super().__init__(principal, drop_percentage, fixed_size(fixed_amount))
        self.fixed_amount = fixed_amount


class DownturnProportionalOfInitialPrincipal(DownturnStrategy):
    """Spend drop% of the initial principal, scaled by a fraction."""

    def __init__(
        self,
        principal: float,
        fraction_of_principal_to_spend: float,
        drop_percentage: float,
    ) -> None:
        _require_non_negative(fraction_of_principal_to_spend=fraction_of_principal_to_spend)
        super().__init__(
            principal,
            drop_percentage,
            initial_principal_size(principal, fraction_of_principal_to_spend),
        )
        self.fraction_of_principal_to_spend = fraction_of_principal_to_spend
        self.initial_principal = principal


class DownturnProportionalOfRemainingPrincipal(DownturnStrategy):
    """Spend drop% of whatever principal is left, scaled by a multiplier.

    Each purchase shrinks the base of the next, so spending tapers off
    rather than running out on a fixed schedule.
    """

    def __init__(
        self,
        principal: float,
        drop_percentage: float,
        drop_spend_multiplier: float,
    ) -> None:
        _require_non_negative(drop_spend_multiplier=drop_spend_multiplier)
        super().__init__(
            principal, drop_percentage, remaining_principal_size(drop_spend_multiplier)
        )
        self.drop_spend_multiplier = drop_spend_multiplier


def build_strategy(config: StrategyConfig, principal: float) -> Strategy:
    """Construct a fresh strategy instance from its configuration.

    Args:
        config: One of the strategy config models.
        principal: Starting budget for the run.

    Returns:
        A new Strategy; instances must not be shared between runs.

    Raises:
        BacktestError: If the config type is not recognized.
    """
    if isinstance(config, AllUpfrontConfig):
        return AllUpfront(principal)
    if isinstance(config, DollarCostAveragingConfig):
        return DollarCostAveraging(principal, config.fixed_amount, config.interval)
    if isinstance(config, DownturnFixedConfig):
        return DownturnFixed(principal, config.fixed_amount, config.drop_percentage)
    if isinstance(config, DownturnProportionalOfInitialPrincipalConfig):
        return DownturnProportionalOfInitialPrincipal(
            principal, config.fraction_of_principal_to_spend, config.drop_percentage
        )
    if isinstance(config, DownturnProportionalOfRemainingPrincipalConfig):
        return DownturnProportionalOfRemainingPrincipal(
            principal, config.drop_percentage, config.drop_spend_multiplier
        )
    raise BacktestError(
        "Unknown strategy config",
        context={"config_type": type(config).__name__},
    )
