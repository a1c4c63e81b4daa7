"""Data integrity: monotonic checks, gap detection, and bar sanity."""

from __future__ import annotations

import dataclasses
import sqlite3
from datetime import date

import structlog

from stockdb.data.query import normalise_symbol

logger = structlog.get_logger(__name__)

# Flag when consecutive daily bars are more than 4 calendar days apart
# (weekends = 3 days, so this catches holidays > 1 extra day).
_MAX_GAP_DAILY_DAYS = 4


@dataclasses.dataclass(frozen=True, slots=True)
class Gap:
    symbol: str
    gap_start: date
    gap_end: date

    @property
    def calendar_days(self) -> int:
        return (self.gap_end - self.gap_start).days


# ── Monotonic check ──────────────────────────────────────────────────


def check_monotonic(conn: sqlite3.Connection, symbol: str) -> list[tuple[str, str]]:
    """Verify bar dates are strictly increasing in storage order.

    Returns a list of ``(date_a, date_b)`` pairs where ``date_b <= date_a``.
    Should always be empty given the primary key, but serves as a sanity
    check on data written outside ``replace_series``.
    """
    rows = conn.execute(
        "SELECT date FROM bars WHERE symbol = ? ORDER BY date",
        (normalise_symbol(symbol),),
    ).fetchall()

    violations: list[tuple[str, str]] = []
    for i in range(1, len(rows)):
        if rows[i]["date"] <= rows[i - 1]["date"]:
            violations.append((rows[i - 1]["date"], rows[i]["date"]))

    return violations


# ── Gap detection ────────────────────────────────────────────────────


def detect_gaps(
    conn: sqlite3.Connection,
    symbols: list[str],
    *,
    max_gap_days: int = _MAX_GAP_DAILY_DAYS,
) -> list[Gap]:
    """Return adjacent bar pairs more than *max_gap_days* calendar days apart."""
    log = logger.bind(job="detect_gaps")
    gaps: list[Gap] = []

    for symbol in symbols:
        sym = normalise_symbol(symbol)
        rows = conn.execute(
            "SELECT date FROM bars WHERE symbol = ? ORDER BY date",
            (sym,),
        ).fetchall()
        dates = [date.fromisoformat(r["date"]) for r in rows]

        for prev, curr in zip(dates, dates[1:]):
            if (curr - prev).days > max_gap_days:
                gap = Gap(symbol=sym, gap_start=prev, gap_end=curr)
                gaps.append(gap)
                log.info(
                    "gap_detected",
                    symbol=sym,
                    gap_start=prev.isoformat(),
                    gap_end=curr.isoformat(),
                    calendar_days=gap.calendar_days,
                )

    log.info("gap_detection_complete", symbols=len(symbols), gaps=len(gaps))
    return gaps


# ── Bar sanity ───────────────────────────────────────────────────────


def check_bar_sanity(conn: sqlite3.Connection, symbol: str) -> list[str]:
    """Return dates of bars with ``low > high`` or a close outside ``[low, high]``."""
    rows = conn.execute(
        "SELECT date FROM bars "
        "WHERE symbol = ? AND (low > high OR close < low OR close > high) "
        "ORDER BY date",
        (normalise_symbol(symbol),),
    ).fetchall()
    return [r["date"] for r in rows]
