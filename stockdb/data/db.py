"""SQLite database initialisation and connection management."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
DB_PATH = _PROJECT_ROOT / "db" / "stocks.db"

# ── PRAGMAs ───────────────────────────────────────────────────────────

_PRAGMAS = """
PRAGMA journal_mode = WAL;
PRAGMA synchronous = NORMAL;
PRAGMA foreign_keys = ON;
PRAGMA temp_store = MEMORY;
"""

# ── Schema ────────────────────────────────────────────────────────────
#
# One row per (symbol, trading day).  Dates are ISO yyyy-MM-dd text so
# lexical order equals chronological order.

_SCHEMA = """
CREATE TABLE IF NOT EXISTS symbols (
  symbol       TEXT PRIMARY KEY,
  source       TEXT,
  bar_count    INTEGER NOT NULL DEFAULT 0,
  first_date   TEXT,
  last_date    TEXT,
  ingested_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
) WITHOUT ROWID;

CREATE TABLE IF NOT EXISTS bars (
  symbol  TEXT NOT NULL,
  date    TEXT NOT NULL,
  open    REAL NOT NULL,
  high    REAL NOT NULL,
  low     REAL NOT NULL,
  close   REAL NOT NULL,
  volume  REAL NOT NULL,
  PRIMARY KEY (symbol, date),
  FOREIGN KEY (symbol) REFERENCES symbols(symbol) ON DELETE CASCADE
) WITHOUT ROWID;

CREATE TABLE IF NOT EXISTS ingest_runs (
  run_id       TEXT PRIMARY KEY,
  started_at   TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
  finished_at  TEXT,
  status       TEXT NOT NULL DEFAULT 'running',
  source_dir   TEXT,
  symbols      TEXT,
  bars_written INTEGER DEFAULT 0,
  failed_files INTEGER DEFAULT 0,
  error        TEXT
) WITHOUT ROWID;
"""

# ── Public API ────────────────────────────────────────────────────────


def init_schema(conn: sqlite3.Connection) -> None:
    """Apply PRAGMAs and create tables. Idempotent."""
    conn.executescript(_PRAGMAS)
    conn.executescript(_SCHEMA)


def get_connection(db_path: Path | None = None) -> sqlite3.Connection:
    """Open a connection with PRAGMAs applied and schema ensured."""
    path = Path(db_path) if db_path is not None else DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    init_schema(conn)

    logger.debug("db_connected", path=str(path))
    return conn
