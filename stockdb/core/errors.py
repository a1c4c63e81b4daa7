"""Exception hierarchy: every error in the system has a typed home."""

from __future__ import annotations

from pathlib import Path


class StockDBError(Exception):
    """Base for all application errors."""


class ConfigError(StockDBError):
    """Bad config, missing keys, invalid values."""


# ── Repository errors ──────────────────────────────────────────────────


class IngestError(StockDBError):
    """A source file could not be turned into bars. Other files are unaffected."""

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(f"{path}: {message}" if path is not None else message)
        self.path = Path(path) if path is not None else None


class UnknownSymbolError(StockDBError, LookupError):
    """Symbol has no bars in the repository."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"No bars for {symbol}")
        self.symbol = symbol


# ── Analytics errors ───────────────────────────────────────────────────


class SeriesOrderError(StockDBError):
    """Series holds duplicate dates and has no well-defined ascending order."""
