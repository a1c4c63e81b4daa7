"""Core: config loading, error types, and logging setup."""

from stockdb.core.config import (
    AnalysisConfig,
    IngestConfig,
    LoggingConfig,
    Settings,
    StorageConfig,
    load_settings,
)
from stockdb.core.errors import (
    ConfigError,
    IngestError,
    SeriesOrderError,
    StockDBError,
    UnknownSymbolError,
)
from stockdb.core.logging import setup_logging

__all__ = [
    "AnalysisConfig",
    "ConfigError",
    "IngestConfig",
    "IngestError",
    "LoggingConfig",
    "SeriesOrderError",
    "Settings",
    "StockDBError",
    "StorageConfig",
    "UnknownSymbolError",
    "load_settings",
    "setup_logging",
]
