"""Read-only data access layer: the only way analytics should read bars."""

from __future__ import annotations

import dataclasses
import sqlite3
from collections.abc import Iterator
from datetime import date

from stockdb.core.errors import UnknownSymbolError


# ── Value types ───────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, slots=True)
class Bar:
    """Immutable representation of one trading day's OHLCV bar."""

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclasses.dataclass(frozen=True, slots=True)
class InstrumentSeries:
    """A symbol and its bars, ascending by date.

    Iterating a series yields its bars, so it can be handed to anything
    that accepts a sequence of bars.
    """

    symbol: str
    bars: tuple[Bar, ...] = ()

    def __iter__(self) -> Iterator[Bar]:
        return iter(self.bars)

    def __len__(self) -> int:
        return len(self.bars)

    @property
    def latest_date(self) -> date | None:
        return self.bars[-1].date if self.bars else None


# ── Helpers ───────────────────────────────────────────────────────────


def normalise_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def _row_to_bar(row: sqlite3.Row) -> Bar:
    return Bar(
        date=date.fromisoformat(row["date"]),
        open=row["open"],
        high=row["high"],
        low=row["low"],
        close=row["close"],
        volume=row["volume"],
    )


def _normalise_date(d: date | str) -> str:
    """Accept a date or ISO-8601 string; return the ISO-8601 string."""
    if isinstance(d, date):
        return d.isoformat()
    return d


# ── Query functions ───────────────────────────────────────────────────


def list_symbols(conn: sqlite3.Connection) -> set[str]:
    """Return every symbol that currently has a series."""
    rows = conn.execute("SELECT symbol FROM symbols").fetchall()
    return {r["symbol"] for r in rows}


def get_series(conn: sqlite3.Connection, symbol: str) -> InstrumentSeries:
    """Return the full series for *symbol*, ascending by date.

    An unknown symbol yields an empty series rather than an error.
    """
    sym = normalise_symbol(symbol)
    rows = conn.execute(
        "SELECT * FROM bars WHERE symbol = ? ORDER BY date",
        (sym,),
    ).fetchall()
    return InstrumentSeries(symbol=sym, bars=tuple(_row_to_bar(r) for r in rows))


def get_latest(conn: sqlite3.Connection, symbol: str) -> Bar:
    """Return the most recent bar for *symbol*.

    Raises ``UnknownSymbolError`` if no bars exist.
    """
    sym = normalise_symbol(symbol)
    row = conn.execute(
        "SELECT * FROM bars WHERE symbol = ? ORDER BY date DESC LIMIT 1",
        (sym,),
    ).fetchone()

    if row is None:
        raise UnknownSymbolError(sym)
    return _row_to_bar(row)


def get_range(
    conn: sqlite3.Connection,
    symbol: str,
    start: date | str,
    end: date | str,
) -> list[Bar]:
    """Return bars for *symbol* with ``start <= date <= end``, ascending."""
    rows = conn.execute(
        "SELECT * FROM bars "
        "WHERE symbol = ? AND date >= ? AND date <= ? "
        "ORDER BY date",
        (normalise_symbol(symbol), _normalise_date(start), _normalise_date(end)),
    ).fetchall()

    return [_row_to_bar(r) for r in rows]
