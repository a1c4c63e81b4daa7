"""Run integrity checks and gap detection on the bars database."""

from __future__ import annotations

import sys

from stockdb.core import load_settings, setup_logging
from stockdb.data import (
    check_bar_sanity,
    check_monotonic,
    detect_gaps,
    get_connection,
    list_symbols,
)


def main() -> int:
    cfg = load_settings()
    setup_logging(level=cfg.logging.level, json=cfg.logging.json_output)
    conn = get_connection(cfg.storage.db_path)

    symbols = sorted(list_symbols(conn))
    if not symbols:
        print("No symbols ingested.")
        conn.close()
        return 0

    problems = 0
    for symbol in symbols:
        violations = check_monotonic(conn, symbol)
        insane = check_bar_sanity(conn, symbol)
        problems += len(violations) + len(insane)
        if violations:
            print(f"  {symbol:8s} non-monotonic dates: {violations[:3]}")
        if insane:
            print(f"  {symbol:8s} bars outside [low, high]: {insane[:3]}")

    gaps = detect_gaps(conn, symbols)
    conn.close()

    print(f"\nSymbols checked: {len(symbols)}")
    print(f"Bad bars:        {problems}")
    print(f"Gaps detected:   {len(gaps)}")

    if gaps:
        print("\nGaps:")
        for g in gaps:
            print(f"  {g.symbol:8s} {g.gap_start}  ->  {g.gap_end}  "
                  f"({g.calendar_days} calendar days)")

    return 0 if problems == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
