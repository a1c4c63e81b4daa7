"""Data: the SQLite bar repository, CSV ingestion, and integrity checks."""

from stockdb.data.db import DB_PATH, get_connection, init_schema
from stockdb.data.ingest import (
    IngestOutcome,
    IngestRunSummary,
    drop_all,
    ingest_csv,
    ingest_directory,
    read_csv_bars,
    remove_series,
    replace_series,
)
from stockdb.data.integrity import Gap, check_bar_sanity, check_monotonic, detect_gaps
from stockdb.data.query import (
    Bar,
    InstrumentSeries,
    get_latest,
    get_range,
    get_series,
    list_symbols,
    normalise_symbol,
)

__all__ = [
    "Bar",
    "DB_PATH",
    "Gap",
    "IngestOutcome",
    "IngestRunSummary",
    "InstrumentSeries",
    "check_bar_sanity",
    "check_monotonic",
    "detect_gaps",
    "drop_all",
    "get_connection",
    "get_latest",
    "get_range",
    "get_series",
    "ingest_csv",
    "ingest_directory",
    "init_schema",
    "list_symbols",
    "normalise_symbol",
    "read_csv_bars",
    "remove_series",
    "replace_series",
]
