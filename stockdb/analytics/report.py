"""Report assembly: turn analysis results into printable text."""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping, Sequence

from stockdb.analytics.engine import Analysis, AnalysisResult, analyze_symbol


def format_results(
    analysis: Analysis,
    symbol: str,
    results: Sequence[AnalysisResult],
) -> str:
    """Render one analysis block.

    ``SMA:`` followed by ``30 days: 123.45`` lines; a missing value prints
    as ``n/a``. When no day-count has data the whole block collapses to a
    single "no data" line.
    """
    if all(r.no_data for r in results):
        return f"No data found for given stock: {symbol}"

    lines = [f"{Analysis(analysis).label}:"]
    for r in results:
        shown = "n/a" if r.value is None else f"{r.value:.2f}"
        lines.append(f"{r.days} days: {shown}")
    return "\n".join(lines)


def build_report(
    conn: sqlite3.Connection,
    symbol: str,
    schedule: Mapping[Analysis, Sequence[int]],
) -> str:
    """Run every analysis in *schedule* for *symbol*, one block each."""
    blocks: list[str] = []
    for analysis, days_list in schedule.items():
        if not days_list:
            continue
        results = analyze_symbol(conn, symbol, analysis, days_list)
        blocks.append(format_results(analysis, results[0].symbol, results))
    return "\n\n".join(blocks)
