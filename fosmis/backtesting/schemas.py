"""Pydantic schemas for backtesting data, configuration and results.

All monetary values are plain floats in the series' currency; no
formatting (currency symbols, separators) happens here.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fosmis.backtesting.series import PriceSeries
from fosmis.common.exceptions import InvalidInputError


def _to_date(value: Any) -> Any:
    """Drop the time-of-day component of datetimes; leave everything else to pydantic."""
    if isinstance(value, datetime):
        return value.date()
    return value


# ─── Market Data ───


class PricePoint(BaseModel):
    """A single (date, price) observation.

    A missing or zero price means the market was closed that day.
    """

    model_config = ConfigDict(frozen=True)

    date: date
    price: float | None = Field(default=None, ge=0)

    @field_validator("date", mode="before")
    @classmethod
    def strip_time(cls, v: Any) -> Any:
        """Keep day granularity only."""
        return _to_date(v)

    @property
    def is_tradable(self) -> bool:
        """True if the point has a present, non-zero price."""
        return self.price is not None and self.price != 0


# ─── Simulation Output ───


class SpendEvent(BaseModel):
    """A purchase made by a strategy on a given day."""

    model_config = ConfigDict(frozen=True)

    point: PricePoint
    amount: float = Field(ge=0)


class CapitalGain(BaseModel):
    """Cost basis vs. value realized at the end of the series for one purchase."""

    model_config = ConfigDict(frozen=True)

    basis: float
    realized: float

    @property
    def profit(self) -> float:
        return self.realized - self.basis


class ReturnReport(BaseModel):
    """Summary of a finished simulation.

    ``annualized_return`` is None only when a caller chose to record a run
    whose annualization was undefined (no purchases, or zero elapsed time).
    """

    model_config = ConfigDict(frozen=True)

    percentage_gain: float
    annualized_return: float | None
    event_count: int = Field(ge=0)
    cash_left: float


# ─── Scenario ───


class Scenario(BaseModel):
    """A backtest window and budget over a price series.

    The start and end dates need not exist in the series.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    start_date: date
    end_date: date
    principal: float = Field(ge=0)
    series: PriceSeries

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def strip_time(cls, v: Any) -> Any:
        return _to_date(v)

    @model_validator(mode="after")
    def validate_date_range(self) -> Scenario:
        """Ensure end_date >= start_date."""
        if self.end_date < self.start_date:
            raise InvalidInputError(
                f"end_date ({self.end_date}) must be >= start_date ({self.start_date})",
                context={"start_date": str(self.start_date), "end_date": str(self.end_date)},
            )
        return self


# ─── Strategy Configuration ───


class AllUpfrontConfig(BaseModel):
    """Spend the whole principal on the first day."""

    kind: Literal["all_upfront"] = "all_upfront"

    def label(self) -> str:
        return "AllUpfront"


class DollarCostAveragingConfig(BaseModel):
    """Spend a fixed amount every ``interval`` market days."""

    kind: Literal["dollar_cost_averaging"] = "dollar_cost_averaging"
    fixed_amount: float = Field(gt=0)
    interval: int = Field(ge=1)

    def label(self) -> str:
        return f"DollarCostAveraging({self.fixed_amount:g}, every {self.interval} days)"


class DownturnFixedConfig(BaseModel):
    """Spend a fixed amount whenever the price drops at least ``drop_percentage``."""

    kind: Literal["downturn_fixed"] = "downturn_fixed"
    fixed_amount: float = Field(gt=0)
    drop_percentage: float = Field(ge=0)

    def label(self) -> str:
        return f"DownturnFixed({self.fixed_amount:g} on >= {self.drop_percentage:g}% drop)"


class DownturnProportionalOfInitialPrincipalConfig(BaseModel):
    """On a drop, spend drop% x initial principal x fraction."""

    kind: Literal["downturn_proportional_initial"] = "downturn_proportional_initial"
    fraction_of_principal_to_spend: float = Field(gt=0)
    drop_percentage: float = Field(ge=0)

    def label(self) -> str:
        return (
            f"DownturnProportionalOfInitialPrincipal("
            f"x{self.fraction_of_principal_to_spend:g} on >= {self.drop_percentage:g}% drop)"
        )


class DownturnProportionalOfRemainingPrincipalConfig(BaseModel):
    """On a drop, spend drop% x remaining principal x multiplier."""

    kind: Literal["downturn_proportional_remaining"] = "downturn_proportional_remaining"
    drop_percentage: float = Field(ge=0)
    drop_spend_multiplier: float = Field(gt=0)

    def label(self) -> str:
        return (
            f"DownturnProportionalOfRemainingPrincipal("
            f"x{self.drop_spend_multiplier:g} on >= {self.drop_percentage:g}% drop)"
        )


StrategyConfig = Annotated[
    AllUpfrontConfig
    | DollarCostAveragingConfig
    | DownturnFixedConfig
    | DownturnProportionalOfInitialPrincipalConfig
    | DownturnProportionalOfRemainingPrincipalConfig,
    Field(discriminator="kind"),
]


# ─── Full Backtest Result ───


class BacktestResult(BaseModel):
    """Complete result of one strategy run over one scenario."""

    strategy: StrategyConfig
    scenario_start: date
    scenario_end: date
    principal: float
    events: list[SpendEvent] = []
    report: ReturnReport
    duration_seconds: float = 0.0
