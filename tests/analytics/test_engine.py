"""Tests for SMA, EMA, and volatility."""

from __future__ import annotations

import math
from datetime import date

import pytest
from pydantic import ValidationError

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
from stockdb.data.query import InstrumentSeries
from tests.conftest import insert_bars, make_bars

CLOSES = [10.0, 20.0, 30.0]


# ── SMA ──────────────────────────────────────────────────────────────


class TestSMA:
    def test_mean_of_window(self):
        assert sma(make_bars(CLOSES), 3) == 20.0

    def test_only_window_bars_count(self):
        """days=2 averages the last two closes only."""
        assert sma(make_bars(CLOSES), 2) == 25.0

    def test_accepts_instrument_series(self):
        series = InstrumentSeries(symbol="AAPL", bars=tuple(make_bars(CLOSES)))
        assert sma(series, 3) == 20.0

    def test_empty_is_no_data(self):
        assert sma([], 30) is None

    def test_zero_prices_are_a_real_average(self):
        assert sma(make_bars([0.0, 0.0]), 5) == 0.0

    def test_long_series(self):
        closes = [100.0 + (i % 7) * 0.25 for i in range(400)]
        bars = make_bars(closes)

        expected = sum(closes[-30:]) / 30

        assert sma(bars, 30) == pytest.approx(expected)


# ── EMA ──────────────────────────────────────────────────────────────


class TestEMA:
    @pytest.mark.parametrize("days", [1, 2, 30, 365])
    def test_single_bar_is_its_close(self, days):
        assert ema(make_bars([42.5]), days) == 42.5

    def test_recurrence_trace(self):
        """alpha = 2/3: 10 → 16.667 → 25.556."""
        assert fold_ema(CLOSES, 2) == pytest.approx(25.556, abs=1e-3)

    def test_window_seeded_from_first_in_window_close(self):
        """days=3 keeps all three bars, alpha = 0.5: 10 → 15 → 22.5."""
        assert ema(make_bars(CLOSES), 3) == pytest.approx(22.5)

    def test_seed_moves_with_window(self):
        """days=2 drops the 10; seed is 20, then 30 * 2/3 + 20 / 3."""
        assert ema(make_bars(CLOSES), 2) == pytest.approx(30 * 2 / 3 + 20 / 3)

    def test_result_is_latest_value_not_average(self):
        bars = make_bars([10.0, 10.0, 10.0, 100.0])
        result = ema(bars, 10)
        assert result == pytest.approx(100 * (2 / 11) + 10 * (9 / 11))

    def test_order_of_input_does_not_matter(self):
        bars = make_bars([5.0, 9.0, 2.0, 7.0, 11.0])
        assert ema(list(reversed(bars)), 10) == ema(bars, 10)

    def test_matches_manual_fold(self):
        closes = [float(c) for c in (3, 1, 4, 1, 5, 9, 2, 6, 5, 3)]
        alpha = 2 / 21
        expected = closes[0]
        for c in closes[1:]:
            expected = c * alpha + expected * (1 - alpha)

        assert ema(make_bars(closes), 20) == pytest.approx(expected)

    def test_empty_is_no_data(self):
        assert ema([], 10) is None

    def test_fold_rejects_empty(self):
        with pytest.raises(ValueError):
            fold_ema([], 10)


# ── Volatility ───────────────────────────────────────────────────────


class TestVolatility:
    def test_constant_series_is_zero(self):
        assert volatility(make_bars([50.0] * 10), 30) == 0.0

    def test_population_stdev(self):
        assert volatility(make_bars(CLOSES), 3) == pytest.approx(math.sqrt(200 / 3))

    def test_matches_sma_of_same_window(self):
        bars = make_bars([12.0, 15.0, 11.0, 18.0, 14.0])
        mean = sma(bars, 3)
        closes = [11.0, 18.0, 14.0]
        expected = math.sqrt(sum((c - mean) ** 2 for c in closes) / 3)

        assert volatility(bars, 3) == pytest.approx(expected)

    def test_all_zero_closes_are_zero_not_no_data(self):
        assert volatility(make_bars([0.0, 0.0, 0.0]), 5) == 0.0

    def test_leading_zero_close_is_not_treated_as_missing(self):
        """[0, 10, 20] around mean 10 → sqrt(200/3)."""
        result = volatility(make_bars([0.0, 10.0, 20.0]), 5)
        assert result == pytest.approx(math.sqrt(200 / 3))

    def test_accepts_one_shot_iterable(self):
        result = volatility(iter(make_bars(CLOSES)), 3)
        assert result == pytest.approx(math.sqrt(200 / 3))

    def test_empty_is_no_data(self):
        assert volatility([], 30) is None


# ── No data ──────────────────────────────────────────────────────────


class TestNoData:
    @pytest.mark.parametrize("fn", [sma, ema, volatility])
    def test_repeated_calls_agree(self, fn):
        empty = InstrumentSeries(symbol="NONE")
        assert fn(empty, 30) is None
        assert fn(empty, 30) is None

    @pytest.mark.parametrize("fn", [sma, ema, volatility])
    def test_zero_days_is_no_data(self, fn):
        assert fn(make_bars(CLOSES), 0) is None


# ── Dispatch and batches ─────────────────────────────────────────────


class TestCompute:
    @pytest.mark.parametrize(
        "analysis, fn",
        [(Analysis.SMA, sma), (Analysis.EMA, ema), (Analysis.VOLATILITY, volatility)],
    )
    def test_dispatch(self, analysis, fn):
        bars = make_bars([5.0, 9.0, 2.0, 7.0])
        assert compute(analysis, bars, 3) == fn(bars, 3)

    def test_dispatch_by_value(self):
        assert compute("sma", make_bars(CLOSES), 3) == 20.0

    def test_labels(self):
        assert [a.label for a in Analysis] == ["SMA", "EMA", "Volatility"]


class TestComputeMany:
    def test_one_result_per_day_count_in_order(self):
        bars = make_bars(CLOSES)

        results = compute_many(Analysis.SMA, bars, [3, 1, 2])

        assert results == [20.0, 30.0, 25.0]

    def test_no_data_entry_does_not_affect_others(self):
        bars = make_bars(CLOSES)

        results = compute_many(Analysis.EMA, bars, [0, 3])

        assert results[0] is None
        assert results[1] == pytest.approx(22.5)

    def test_failure_is_local(self):
        """Duplicate dates fail every window but never raise."""
        bars = make_bars(CLOSES)
        broken = [bars[0], bars[0], bars[1]]

        results = compute_many(Analysis.VOLATILITY, broken, [1, 5])

        assert results == [None, None]

    def test_bad_day_count_is_local(self):
        results = compute_many(Analysis.SMA, make_bars(CLOSES), [3, 2.5, 1])

        assert results == [20.0, None, 30.0]

    def test_single_compute_still_rejects_bad_day_count(self):
        with pytest.raises(TypeError):
            compute(Analysis.SMA, make_bars(CLOSES), 2.5)

    def test_empty_day_list(self):
        assert compute_many(Analysis.SMA, make_bars(CLOSES), []) == []


# ── analyze_symbol ───────────────────────────────────────────────────


class TestAnalyzeSymbol:
    def test_results_carry_context(self, conn):
        insert_bars(conn, "AAPL", CLOSES)

        results = analyze_symbol(conn, "aapl", Analysis.SMA, [3, 2])

        assert [r.days for r in results] == [3, 2]
        assert [r.value for r in results] == [20.0, 25.0]
        assert all(r.symbol == "AAPL" for r in results)
        assert all(r.as_of == date(2024, 1, 3) for r in results)
        assert not any(r.no_data for r in results)

    def test_unknown_symbol_is_no_data(self, conn):
        results = analyze_symbol(conn, "NOPE", Analysis.EMA, [30, 60])

        assert len(results) == 2
        assert all(r.no_data for r in results)
        assert all(r.as_of is None for r in results)

    def test_other_symbols_ignored(self, conn):
        insert_bars(conn, "AAPL", CLOSES)
        insert_bars(conn, "MSFT", [500.0, 600.0, 700.0])

        results = analyze_symbol(conn, "MSFT", Analysis.SMA, [3])

        assert results[0].value == 600.0

    def test_result_is_frozen(self):
        r = AnalysisResult(symbol="AAPL", analysis=Analysis.SMA, days=3, value=1.0)
        with pytest.raises(ValidationError):
            r.value = 2.0  # type: ignore[misc]
