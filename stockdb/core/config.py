"""Config loading: config.toml for tuning, env vars for local paths."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from stockdb.core.errors import ConfigError

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_CONFIG_PATH = _PROJECT_ROOT / "config.toml"

# ── Models ─────────────────────────────────────────────────────────────


class StorageConfig(BaseModel):
    db_path: Path = Field(
        default=_PROJECT_ROOT / "db" / "stocks.db",
        description="SQLite file holding the bar repository",
    )


class IngestConfig(BaseModel):
    data_dir: Path = Field(
        default=_PROJECT_ROOT / "data",
        description="Directory scanned for <symbol>.csv files",
    )
    date_format: str = Field(
        default="%m/%d/%Y",
        description="strptime format of the Date column in source CSVs",
    )


class AnalysisConfig(BaseModel):
    """Default day-count schedules, one list per analysis."""

    sma: list[int] = Field(default_factory=lambda: [30, 180, 360])
    ema: list[int] = Field(default_factory=lambda: [30, 60, 90])
    volatility: list[int] = Field(default_factory=lambda: [30, 90])

    @field_validator("sma", "ema", "volatility")
    @classmethod
    def _positive_days(cls, value: list[int]) -> list[int]:
        bad = [d for d in value if d <= 0]
        if bad:
            raise ValueError(f"day-counts must be positive, got {bad}")
        return value


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Root log level name")
    json_output: bool | None = Field(
        default=None,
        alias="json",
        description="Force JSON lines (true) or console output (false)",
    )

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        name = value.strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"unknown log level {value!r}")
        return name


class Settings(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# ── Loading ────────────────────────────────────────────────────────────


def _load_dotenv(dotenv_path: Path) -> None:
    """Minimal .env loader: no extra dependencies."""
    if not dotenv_path.exists():
        return
    for line in dotenv_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        key, value = key.strip(), value.strip()
        if not key:
            continue
        os.environ.setdefault(key, value)


def load_settings(config_path: Path | None = None) -> Settings:
    """Build Settings from config.toml, with STOCKDB_* env vars taking precedence.

    Relative paths in config.toml resolve against the config file's
    directory; relative paths from env vars resolve against the cwd.
    """
    _load_dotenv(_PROJECT_ROOT / ".env")

    path = config_path or _DEFAULT_CONFIG_PATH
    file_cfg: dict = {}
    if path.exists():
        try:
            file_cfg = tomllib.loads(path.read_text())
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Cannot parse {path}: {exc}") from exc

    log_cfg = dict(file_cfg.get("logging", {}))
    if os.environ.get("STOCKDB_LOG_LEVEL"):
        log_cfg["level"] = os.environ["STOCKDB_LOG_LEVEL"]

    try:
        settings = Settings(
            storage=StorageConfig(**file_cfg.get("storage", {})),
            ingest=IngestConfig(**file_cfg.get("ingest", {})),
            analysis=AnalysisConfig(**file_cfg.get("analysis", {})),
            logging=LoggingConfig(**log_cfg),
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {path}: {exc}") from exc

    base = path.resolve().parent
    settings.storage.db_path = base / settings.storage.db_path
    settings.ingest.data_dir = base / settings.ingest.data_dir

    if os.environ.get("STOCKDB_DB_PATH"):
        settings.storage.db_path = Path.cwd() / os.environ["STOCKDB_DB_PATH"]
    if os.environ.get("STOCKDB_DATA_DIR"):
        settings.ingest.data_dir = Path.cwd() / os.environ["STOCKDB_DATA_DIR"]
    return settings
