"""Shared test fixtures: an in-memory repository and synthetic bars."""

from __future__ import annotations

import sqlite3
from datetime import date, timedelta

import pytest

from stockdb.data.db import init_schema
from stockdb.data.query import Bar


@pytest.fixture
def conn() -> sqlite3.Connection:
    """In-memory SQLite with full schema applied."""
    c = sqlite3.connect(":memory:")
    c.row_factory = sqlite3.Row
    init_schema(c)
    c.commit()
    return c


def make_bars(
    closes: list[float],
    *,
    start: date = date(2024, 1, 1),
    interval: timedelta = timedelta(days=1),
) -> list[Bar]:
    """Synthetic daily bars, one per close, ascending from *start*.

    Open/high/low derived from close for simplicity.
    """
    return [
        Bar(
            date=start + interval * i,
            open=close * 0.999,
            high=close * 1.005,
            low=close * 0.995,
            close=close,
            volume=1000.0,
        )
        for i, close in enumerate(closes)
    ]


def insert_bars(
    conn: sqlite3.Connection,
    symbol: str,
    closes: list[float],
    *,
    start: date = date(2024, 1, 1),
    interval: timedelta = timedelta(days=1),
) -> list[Bar]:
    """Insert synthetic bars straight into the tables, bypassing ingestion.

    Ensures the symbol exists in the symbols table.
    Returns the list of Bar objects inserted.
    """
    bars = make_bars(closes, start=start, interval=interval)

    conn.execute(
        "INSERT OR IGNORE INTO symbols (symbol, bar_count) VALUES (?, ?)",
        (symbol, len(bars)),
    )
    conn.executemany(
        "INSERT INTO bars (symbol, date, open, high, low, close, volume) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        [
            (symbol, b.date.isoformat(), b.open, b.high, b.low, b.close, b.volume)
            for b in bars
        ],
    )
    conn.commit()
    return bars
