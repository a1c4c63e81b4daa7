"""Trailing-window analytics: SMA, EMA, and price volatility.

Every function takes a series (any iterable of bars, typically an
``InstrumentSeries``) and a calendar day-count, windows it with
``select_window``, and returns a float, or ``None`` when the window holds
no bars. ``None`` means "no data" and is never conflated with a computed
zero.
"""

from __future__ import annotations

import math
import sqlite3
from collections.abc import Callable, Iterable, Sequence
from datetime import date
from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict

from stockdb.analytics.window import select_window
from stockdb.core.errors import StockDBError
from stockdb.data.query import Bar, get_series

logger = structlog.get_logger(__name__)


# ── Enums ─────────────────────────────────────────────────────────────


class Analysis(str, Enum):
    SMA = "sma"
    EMA = "ema"
    VOLATILITY = "volatility"

    @property
    def label(self) -> str:
        return {"sma": "SMA", "ema": "EMA", "volatility": "Volatility"}[self.value]


# ── Single computations ───────────────────────────────────────────────


def sma(series: Iterable[Bar], days: int) -> float | None:
    """Arithmetic mean of the window's closes."""
    window = select_window(series, days)
    if not window:
        return None
    return sum(b.close for b in window) / len(window)


def fold_ema(closes: Sequence[float], days: int) -> float:
    """Left fold of the EMA recurrence over *closes*, oldest first.

    Seeded with ``closes[0]``; each later close contributes
    ``close * alpha + previous * (1 - alpha)`` with ``alpha = 2 / (days + 1)``.
    """
    if not closes:
        raise ValueError("fold_ema needs at least one close")
    alpha = 2 / (days + 1)
    value = closes[0]
    for close in closes[1:]:
        value = close * alpha + value * (1 - alpha)
    return value


def ema(series: Iterable[Bar], days: int) -> float | None:
    """Exponential moving average at the window's latest date.

    The earliest in-window close is the seed, so a short window
    under-weights the averaging effect at its start.
    """
    window = select_window(series, days)
    if not window:
        return None
    return fold_ema([b.close for b in window], days)


def volatility(series: Iterable[Bar], days: int) -> float | None:
    """Population standard deviation of the window's closes around its SMA."""
    bars = list(series)
    mean = sma(bars, days)
    closes = [b.close for b in select_window(bars, days)]
    if mean is None or not closes:
        return None
    return math.sqrt(sum((c - mean) ** 2 for c in closes) / len(closes))


_DISPATCH: dict[Analysis, Callable[[Iterable[Bar], int], float | None]] = {
    Analysis.SMA: sma,
    Analysis.EMA: ema,
    Analysis.VOLATILITY: volatility,
}


def compute(analysis: Analysis, series: Iterable[Bar], days: int) -> float | None:
    return _DISPATCH[Analysis(analysis)](series, days)


def compute_many(
    analysis: Analysis,
    series: Iterable[Bar],
    days_list: Sequence[int],
) -> list[float | None]:
    """One result per day-count, in order.

    A day-count that fails, including one that is not an ``int``, is logged
    and reported as ``None``; the others are still computed.
    """
    bars = list(series)
    results: list[float | None] = []
    for days in days_list:
        try:
            results.append(compute(analysis, bars, days))
        except (StockDBError, TypeError) as exc:
            logger.warning(
                "analysis_failed",
                analysis=Analysis(analysis).value,
                days=days,
                error=str(exc),
            )
            results.append(None)
    return results


# ── Symbol-level API ──────────────────────────────────────────────────


class AnalysisResult(BaseModel):
    """One analysis value for one symbol and day-count."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    analysis: Analysis
    days: int
    value: float | None
    as_of: date | None = None

    @property
    def no_data(self) -> bool:
        return self.value is None


def analyze_symbol(
    conn: sqlite3.Connection,
    symbol: str,
    analysis: Analysis,
    days_list: Sequence[int],
) -> list[AnalysisResult]:
    """Fetch *symbol*'s series and run *analysis* for every day-count."""
    series = get_series(conn, symbol)
    if not series:
        logger.info("analysis_no_series", symbol=series.symbol)

    values = compute_many(analysis, series, days_list)
    return [
        AnalysisResult(
            symbol=series.symbol,
            analysis=analysis,
            days=days,
            value=value,
            as_of=series.latest_date,
        )
        for days, value in zip(days_list, values)
    ]
