"""Analytics: trailing windows and the SMA / EMA / volatility engine."""

from stockdb.analytics.engine import (
    Analysis,
    AnalysisResult,
    analyze_symbol,
    compute,
    compute_many,
    ema,
    fold_ema,
    sma,
    volatility,
)
from stockdb.analytics.report import build_report, format_results
from stockdb.analytics.window import ascending, select_window

__all__ = [
    "Analysis",
    "AnalysisResult",
    "analyze_symbol",
    "ascending",
    "build_report",
    "compute",
    "compute_many",
    "ema",
    "fold_ema",
    "format_results",
    "select_window",
    "sma",
    "volatility",
]
