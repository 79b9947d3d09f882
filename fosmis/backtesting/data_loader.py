"""Data loader for backtesting — reads historical index prices from CSV.

Provides:
1. ``load_price_series_from_csv``: parse a price export into a PriceSeries
2. ``MarketIndex``: the indexes with bundled history files
3. ``SeriesCatalog``: an explicit, per-caller handle that loads each
   index at most once; pass it to whatever runs simulations instead of
   keeping loaded series in module globals

Expected CSV shape (Nasdaq historical export):
    Date,Close/Last,Open,High,Low
    03/01/2024,"5,137.08",5098.51,5140.33,5094.16

Usage:
    from fosmis.backtesting.data_loader import MarketIndex, SeriesCatalog

    catalog = SeriesCatalog()
    series = catalog.get(MarketIndex.S_AND_P_500)
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

import pandas as pd

from fosmis.backtesting.exceptions import BacktestError
from fosmis.backtesting.schemas import PricePoint
from fosmis.backtesting.series import PriceSeries
from fosmis.common.config import Settings, get_settings
from fosmis.common.exceptions import EmptyInputError
from fosmis.common.logging import get_logger

logger = get_logger("LOADER")

# Thousands separators, currency symbols and stray whitespace in price cells
_PRICE_NOISE_PATTERN = r"[,$\s]"


class MarketIndex(StrEnum):
    """Indexes with a history file under ``Settings.data_dir``."""

    S_AND_P_500 = "s&p500"


def load_price_series_from_csv(
    path: str | Path,
    date_column: str | None = None,
    price_column: str | None = None,
    date_format: str | None = None,
) -> PriceSeries:
    """Load a PriceSeries from a CSV file.

    Rows with an unparseable date are dropped. Blank, unparseable or
    negative prices are kept as points without a price (market closed).
    Repeated dates keep their first row.

    Args:
        path: CSV file to read.
        date_column: Column holding the date. Defaults to settings.csv_date_column.
        price_column: Column holding the price. Defaults to settings.csv_price_column.
        date_format: Explicit strptime format; inferred when None.

    Returns:
        PriceSeries sorted ascending by date.

    Raises:
        BacktestError: If the file is missing, unreadable, or lacks a column.
        EmptyInputError: If no row has both a valid date and a usable price.
    """
    settings = get_settings()
    date_column = date_column or settings.csv_date_column
    price_column = price_column or settings.csv_price_column
    path = Path(path)

    if not path.is_file():
        raise BacktestError("Price file not found", context={"path": str(path)})

    try:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.EmptyDataError as exc:
        raise EmptyInputError("Price file is empty", context={"path": str(path)}) from exc
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise BacktestError(
            "Could not parse price file",
            context={"path": str(path), "error": str(exc)},
        ) from exc

    missing = [c for c in (date_column, price_column) if c not in frame.columns]
    if missing:
        raise BacktestError(
            "Price file is missing required columns",
            context={"path": str(path), "missing": missing, "columns": list(frame.columns)},
        )

    dates = pd.to_datetime(frame[date_column], format=date_format, errors="coerce")
    prices = pd.to_numeric(
        frame[price_column].str.replace(_PRICE_NOISE_PATTERN, "", regex=True),
        errors="coerce",
    )
    prices = prices.where(prices >= 0)

    cleaned = pd.DataFrame({"date": dates, "price": prices}).dropna(subset=["date"])
    cleaned["date"] = cleaned["date"].dt.date
    bad_dates = len(frame) - len(cleaned)
    duplicates = int(cleaned["date"].duplicated().sum())
    cleaned = cleaned.drop_duplicates(subset="date", keep="first")

    if bad_dates or duplicates:
        logger.warning(
            "Dropped price rows",
            extra={
                "data": {
                    "path": str(path),
                    "unparseable_dates": bad_dates,
                    "duplicate_dates": duplicates,
                }
            },
        )

    points = [
        PricePoint(date=day, price=None if pd.isna(price) else float(price))
        for day, price in zip(cleaned["date"], cleaned["price"], strict=True)
    ]
    if not any(p.is_tradable for p in points):
        raise EmptyInputError(
            "No usable price points in file",
            context={"path": str(path), "rows": len(frame)},
        )

    logger.info(
        "Price file loaded",
        extra={"data": {"path": str(path), "rows": len(frame), "points": len(points)}},
    )
    return PriceSeries(points)


class SeriesCatalog:
    """Loads index price series on demand and keeps them for reuse.

    Each catalog has its own cache, so separate runs (or tests) never see
    each other's data. The series handed out are immutable and can be
    shared across runs.

    Args:
        settings: Settings supplying data_dir and CSV column names.
        paths: Optional per-index file overrides.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        paths: dict[MarketIndex, Path] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._paths = dict(paths or {})
        self._loaded: dict[MarketIndex, PriceSeries] = {}

    def path_for(self, index: MarketIndex) -> Path:
        """File the given index is loaded from."""
        if index in self._paths:
            return self._paths[index]
        if index is MarketIndex.S_AND_P_500:
            return self._settings.sp500_csv_path
        raise BacktestError(f"Index {index} not found", context={"index": str(index)})

    def get(self, index: MarketIndex) -> PriceSeries:
        """Return the series for ``index``, loading it on first use."""
        if index not in self._loaded:
            self._loaded[index] = load_price_series_from_csv(
                self.path_for(index),
                date_column=self._settings.csv_date_column,
                price_column=self._settings.csv_price_column,
            )
        return self._loaded[index]

    def __contains__(self, index: object) -> bool:
        return index in self._loaded
