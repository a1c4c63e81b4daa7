"""Ingest every <symbol>.csv in a directory, replacing each symbol's series.

Usage:
    python -m scripts.ingest_csv              # directory from config.toml
    python -m scripts.ingest_csv path/to/csvs
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from stockdb.core import IngestError, load_settings, setup_logging
from stockdb.data import get_connection, ingest_directory


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("directory", nargs="?", type=Path, help="CSV source directory")
    parser.add_argument("--date-format", help="strptime format of the Date column")
    args = parser.parse_args(argv)

    cfg = load_settings()
    setup_logging(level=cfg.logging.level, json=cfg.logging.json_output)
    directory = args.directory or cfg.ingest.data_dir
    date_format = args.date_format or cfg.ingest.date_format

    conn = get_connection(cfg.storage.db_path)
    try:
        summary = ingest_directory(conn, directory, date_format=date_format)
    except IngestError as exc:
        print(f"Ingest failed: {exc}")
        return 1
    finally:
        conn.close()

    for outcome in summary.ingested:
        print(f"  {outcome.symbol:8s} {outcome.bars_written:6d} bars  "
              f"{outcome.first_date} -> {outcome.last_date}")
    for path, error in summary.failed.items():
        print(f"  FAILED {path}: {error}")

    print(f"\nSymbols ingested: {len(summary.ingested)}")
    print(f"Bars written:     {summary.bars_written}")
    return 0 if not summary.failed else 2


if __name__ == "__main__":
    sys.exit(main())
