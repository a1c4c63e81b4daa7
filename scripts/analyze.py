"""Print SMA / EMA / volatility for one symbol.

Usage:
    python -m scripts.analyze                       # prompt for a symbol
    python -m scripts.analyze AAPL                  # configured schedules
    python -m scripts.analyze AAPL --analysis ema --days 10 20 50
"""

from __future__ import annotations

import argparse
import sys

import structlog

from stockdb.analytics import Analysis, build_report
from stockdb.core import load_settings, setup_logging
from stockdb.core.config import AnalysisConfig
from stockdb.data import get_connection, list_symbols, normalise_symbol


def _prompt_symbol(available: set[str]) -> str | None:
    """Ask until a known symbol is entered. Returns None on EOF."""
    choices = ", ".join(sorted(available))
    while True:
        try:
            raw = input(f"Please enter stock ticker ({choices}): ")
        except EOFError:
            return None
        symbol = normalise_symbol(raw)
        if symbol in available:
            return symbol


def _schedule(
    cfg: AnalysisConfig,
    analysis: Analysis | None,
    days: list[int] | None,
) -> dict[Analysis, list[int]]:
    configured = {
        Analysis.SMA: cfg.sma,
        Analysis.EMA: cfg.ema,
        Analysis.VOLATILITY: cfg.volatility,
    }
    selected = [analysis] if analysis else list(configured)
    return {a: days or configured[a] for a in selected}


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"day-count must be positive, got {value}")
    return value


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("symbol", nargs="?", help="ticker; prompted for when omitted")
    parser.add_argument(
        "--analysis",
        type=Analysis,
        choices=list(Analysis),
        help="run only this analysis",
    )
    parser.add_argument("--days", type=_positive_int, nargs="+", help="day-counts")
    args = parser.parse_args(argv)

    cfg = load_settings()
    setup_logging(level=cfg.logging.level, json=cfg.logging.json_output)
    log = structlog.get_logger()
    conn = get_connection(cfg.storage.db_path)

    try:
        available = list_symbols(conn)
        if not available:
            print("Sorry! No data found!")
            return 1

        symbol = args.symbol
        if symbol is None:
            if not sys.stdin.isatty():
                parser.error("symbol is required when stdin is not a terminal")
            symbol = _prompt_symbol(available)
            if symbol is None:
                return 1

        schedule = _schedule(cfg.analysis, args.analysis, args.days)
        log.info("analyze_start", symbol=normalise_symbol(symbol),
                 analyses=[a.value for a in schedule])
        print(build_report(conn, symbol, schedule))
    finally:
        conn.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
