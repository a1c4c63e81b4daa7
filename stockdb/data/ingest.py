"""Ingestion pipeline: CSV parsing and full-replace writes per symbol."""

from __future__ import annotations

import math
import sqlite3
import uuid
from datetime import date, datetime, timezone
from pathlib import Path

import pandas as pd
import structlog
from pydantic import BaseModel, ConfigDict, Field

from stockdb.core.errors import IngestError
from stockdb.data.query import Bar, normalise_symbol

logger = structlog.get_logger(__name__)

DEFAULT_DATE_FORMAT = "%m/%d/%Y"

# Canonical column → accepted header spellings (compared lower-cased).
_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("date",),
    "open": ("open",),
    "high": ("high",),
    "low": ("low",),
    "close": ("close", "close/last"),
    "volume": ("volume",),
}

_PRICE_COLUMNS = ("open", "high", "low", "close", "volume")

_INSERT_BAR_SQL = """
    INSERT INTO bars (symbol, date, open, high, low, close, volume)
    VALUES (?, ?, ?, ?, ?, ?, ?)
"""


# ── Result models ─────────────────────────────────────────────────────


class IngestOutcome(BaseModel):
    """What one successful file ingestion wrote."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    path: Path | None = None
    bars_written: int
    first_date: date
    last_date: date


class IngestRunSummary(BaseModel):
    """Aggregate result of ingesting a directory."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    ingested: list[IngestOutcome] = Field(default_factory=list)
    failed: dict[str, str] = Field(
        default_factory=dict, description="File path → error message",
    )

    @property
    def bars_written(self) -> int:
        return sum(o.bars_written for o in self.ingested)


# ── Helpers ───────────────────────────────────────────────────────────


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def symbol_from_path(path: Path) -> str:
    """``data/AAPL.csv`` → ``AAPL``."""
    symbol = normalise_symbol(path.stem)
    if not symbol:
        raise IngestError("cannot derive a symbol from the file name", path=path)
    return symbol


def _resolve_columns(df: pd.DataFrame, path: Path) -> dict[str, str]:
    """Map canonical names onto the file's actual headers."""
    by_lower = {str(c).strip().lower(): c for c in df.columns}
    resolved: dict[str, str] = {}
    missing: list[str] = []
    for canonical, aliases in _COLUMN_ALIASES.items():
        match = next((by_lower[a] for a in aliases if a in by_lower), None)
        if match is None:
            missing.append(canonical)
        else:
            resolved[canonical] = match
    if missing:
        raise IngestError(f"missing columns {missing}", path=path)
    return resolved


def _to_number(col: pd.Series) -> pd.Series:
    """Parse numbers, tolerating ``$`` prefixes and thousands separators."""
    cleaned = col.astype(str).str.strip().str.replace(r"[$,]", "", regex=True)
    return pd.to_numeric(cleaned, errors="coerce")


def _frame_to_bars(df: pd.DataFrame, path: Path, date_format: str) -> list[Bar]:
    cols = _resolve_columns(df, path)

    dates = pd.to_datetime(
        df[cols["date"]].astype(str).str.strip(), format=date_format, errors="coerce",
    )
    bad_dates = df.index[dates.isna()].tolist()
    if bad_dates:
        raise IngestError(
            f"unparseable dates (format {date_format!r}) on rows {bad_dates[:5]}",
            path=path,
        )

    values = {name: _to_number(df[cols[name]]) for name in _PRICE_COLUMNS}
    for name, series in values.items():
        bad = df.index[series.isna()].tolist()
        if bad:
            raise IngestError(f"non-numeric {name} on rows {bad[:5]}", path=path)

    bars = [
        Bar(
            date=ts.date(),
            open=float(o),
            high=float(h),
            low=float(lo),
            close=float(c),
            volume=float(v),
        )
        for ts, o, h, lo, c, v in zip(
            dates,
            values["open"],
            values["high"],
            values["low"],
            values["close"],
            values["volume"],
        )
    ]

    for name in _PRICE_COLUMNS:
        non_finite = [
            b.date.isoformat() for b in bars if not math.isfinite(getattr(b, name))
        ]
        if non_finite:
            raise IngestError(f"non-finite {name} on {non_finite[:5]}", path=path)

    bars.sort(key=lambda b: b.date)
    dupes = sorted({
        bars[i].date.isoformat()
        for i in range(1, len(bars))
        if bars[i].date == bars[i - 1].date
    })
    if dupes:
        raise IngestError(f"duplicate dates {dupes[:5]}", path=path)

    return bars


# ── Parsing ───────────────────────────────────────────────────────────


def read_csv_bars(path: Path, *, date_format: str = DEFAULT_DATE_FORMAT) -> list[Bar]:
    """Parse a ``Date,Open,High,Low,Close,Volume`` CSV into ascending bars.

    Raises ``IngestError`` on unreadable files, missing columns, bad dates,
    non-numeric or non-finite prices, or duplicate dates.
    """
    path = Path(path)
    try:
        df = pd.read_csv(path, dtype=str, skipinitialspace=True)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise IngestError(str(exc), path=path) from exc

    if df.empty:
        raise IngestError("no data rows", path=path)

    return _frame_to_bars(df, path, date_format)


# ── Writes ────────────────────────────────────────────────────────────


def replace_series(
    conn: sqlite3.Connection,
    symbol: str,
    bars: list[Bar],
    *,
    source: str | None = None,
) -> int:
    """Drop and rebuild the whole series for *symbol* in one transaction.

    Readers see either the old series or the new one. Returns bars written.
    """
    sym = normalise_symbol(symbol)
    if not bars:
        raise IngestError(f"refusing to replace {sym} with an empty series")

    ordered = sorted(bars, key=lambda b: b.date)
    rows = [
        (sym, b.date.isoformat(), b.open, b.high, b.low, b.close, b.volume)
        for b in ordered
    ]

    try:
        with conn:
            conn.execute("DELETE FROM bars WHERE symbol = ?", (sym,))
            conn.execute("DELETE FROM symbols WHERE symbol = ?", (sym,))
            conn.execute(
                "INSERT INTO symbols "
                "(symbol, source, bar_count, first_date, last_date, ingested_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (sym, source, len(rows), rows[0][1], rows[-1][1], _utcnow_iso()),
            )
            conn.executemany(_INSERT_BAR_SQL, rows)
    except sqlite3.IntegrityError as exc:
        raise IngestError(f"cannot write {sym}: {exc}") from exc

    logger.info(
        "series_replaced",
        symbol=sym,
        bars=len(rows),
        first_date=rows[0][1],
        last_date=rows[-1][1],
    )
    return len(rows)


def remove_series(conn: sqlite3.Connection, symbol: str) -> bool:
    """Delete *symbol* and its bars. Returns False if it was not present."""
    sym = normalise_symbol(symbol)
    with conn:
        conn.execute("DELETE FROM bars WHERE symbol = ?", (sym,))
        deleted = conn.execute("DELETE FROM symbols WHERE symbol = ?", (sym,)).rowcount
    if deleted:
        logger.info("series_removed", symbol=sym)
    return bool(deleted)


def drop_all(conn: sqlite3.Connection) -> None:
    """Remove every series from the repository."""
    with conn:
        conn.execute("DELETE FROM bars")
        conn.execute("DELETE FROM symbols")
    logger.warning("repository_dropped")


# ── Jobs ──────────────────────────────────────────────────────────────


def ingest_csv(
    conn: sqlite3.Connection,
    path: Path,
    *,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> IngestOutcome:
    """Replace the series named by *path*'s stem with the file's bars."""
    path = Path(path)
    symbol = symbol_from_path(path)
    bars = read_csv_bars(path, date_format=date_format)
    written = replace_series(conn, symbol, bars, source=str(path))
    return IngestOutcome(
        symbol=symbol,
        path=path,
        bars_written=written,
        first_date=bars[0].date,
        last_date=bars[-1].date,
    )


def ingest_directory(
    conn: sqlite3.Connection,
    directory: Path,
    *,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> IngestRunSummary:
    """Ingest every ``*.csv`` in *directory*, one full replace per file.

    A file that fails to parse is logged and recorded in the summary; the
    remaining files are still ingested. Any other error marks the run
    ``failed`` in ``ingest_runs`` and propagates.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise IngestError("not a directory", path=directory)

    log = logger.bind(job="ingest_directory", source_dir=str(directory))
    run_id = str(uuid.uuid4())
    files = sorted(
        p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".csv"
    )

    conn.execute(
        "INSERT INTO ingest_runs (run_id, started_at, status, source_dir) "
        "VALUES (?, ?, 'running', ?)",
        (run_id, _utcnow_iso(), str(directory)),
    )
    conn.commit()
    log.info("ingest_start", run_id=run_id, files=len(files))

    ingested: list[IngestOutcome] = []
    failed: dict[str, str] = {}

    try:
        for path in files:
            try:
                ingested.append(ingest_csv(conn, path, date_format=date_format))
            except IngestError as exc:
                log.error("ingest_file_failed", path=str(path), error=str(exc))
                failed[str(path)] = str(exc)

        summary = IngestRunSummary(run_id=run_id, ingested=ingested, failed=failed)
        status = "done" if not failed else ("failed" if not ingested else "partial")

        conn.execute(
            "UPDATE ingest_runs SET status = ?, finished_at = ?, symbols = ?, "
            "bars_written = ?, failed_files = ?, error = ? WHERE run_id = ?",
            (
                status,
                _utcnow_iso(),
                ",".join(o.symbol for o in ingested),
                summary.bars_written,
                len(failed),
                "; ".join(failed.values()) or None,
                run_id,
            ),
        )
        conn.commit()

    except Exception as exc:
        conn.execute(
            "UPDATE ingest_runs SET status = 'failed', finished_at = ?, symbols = ?, "
            "failed_files = ?, error = ? WHERE run_id = ?",
            (
                _utcnow_iso(),
                ",".join(o.symbol for o in ingested),
                len(failed),
                str(exc),
                run_id,
            ),
        )
        conn.commit()
        log.error("ingest_aborted", run_id=run_id, error=str(exc))
        raise

    log.info(
        "ingest_complete",
        run_id=run_id,
        status=status,
        symbols=len(ingested),
        failed=len(failed),
        bars_written=summary.bars_written,
    )
    return summary
