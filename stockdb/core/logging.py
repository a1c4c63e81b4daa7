"""Structured logging via structlog.

Library modules only ever call ``structlog.get_logger(__name__)``; the
scripts call ``setup_logging`` once with the ``[logging]`` settings. Logs
go to stderr so that reports printed on stdout stay clean.
"""

from __future__ import annotations

import logging
import sys

import structlog


def _level_number(level: int | str) -> int:
    if isinstance(level, int):
        return level
    number = logging.getLevelName(level.strip().upper())
    if not isinstance(number, int):
        raise ValueError(f"unknown log level {level!r}")
    return number


def _uppercase_symbol(
    logger: object, method_name: str, event_dict: dict,
) -> dict:
    """Log ``symbol=`` fields the way the repository stores them."""
    symbol = event_dict.get("symbol")
    if isinstance(symbol, str):
        event_dict["symbol"] = symbol.strip().upper()
    return event_dict


def setup_logging(*, level: int | str = logging.INFO, json: bool | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    *level* takes a number or a name such as ``"debug"``. *json* forces the
    renderer; left as ``None`` it is JSON lines unless stderr is a terminal.
    Python warnings (pandas date-parsing warnings, for one) are captured and
    rendered like any other record.
    """
    level_no = _level_number(level)
    if json is None:
        json = not sys.stderr.isatty()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _uppercase_symbol,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer()
            if json
            else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level_no)

    logging.captureWarnings(True)
