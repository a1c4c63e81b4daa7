"""Trailing windows anchored at a series' own most recent date."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from stockdb.core.errors import SeriesOrderError
from stockdb.data.query import Bar


def ascending(bars: Iterable[Bar]) -> list[Bar]:
    """Return *bars* strictly ascending by date.

    Already-ordered input is returned as a list unchanged; anything else is
    sorted. Raises ``SeriesOrderError`` on duplicate dates.
    """
    ordered = list(bars)
    if all(a.date < b.date for a, b in zip(ordered, ordered[1:])):
        return ordered

    ordered.sort(key=lambda b: b.date)
    for a, b in zip(ordered, ordered[1:]):
        if a.date == b.date:
            raise SeriesOrderError(f"duplicate bar date {a.date.isoformat()}")
    return ordered


def select_window(series: Iterable[Bar], days: int) -> list[Bar]:
    """Bars with ``date > max_date - days``, ascending.

    ``max_date`` is the latest date in *series*, not today. An empty series
    or a non-positive *days* gives an empty window; a *days* wider than the
    series gives the whole series.
    """
    if isinstance(days, bool) or not isinstance(days, int):
        raise TypeError(f"days must be an int, got {type(days).__name__}")

    bars = ascending(series)
    if not bars or days <= 0:
        return []

    cutoff = bars[-1].date - timedelta(days=days)
    return [b for b in bars if b.date > cutoff]
