"""
Unit tests for composite indicators.

Tests:
- Combined lookbacks of chained engines
- Inner errors propagate unchanged
- Outputs do not depend on the requested start index
- Stochastic RSI matches a hand-wired RSI -> STOCHF chain
"""

import numpy as np
import pytest

from ta_engine.indicators.composition import align, compose
from ta_engine.indicators.momentum import (
    rsi,
    stoch,
    stoch_rsi,
    stoch_rsi_lookback,
    stochf,
    stochf_lookback,
)
from ta_engine.indicators.moving_averages import sma
from ta_engine.shared.models.result import MAType, Result, RetCode
from ta_engine.tests.fixtures.market_data import random_walk_arrays


class TestCompose:
    """Generic composition helper."""

    def test_indices_mapped_back(self):
        close = np.arange(1.0, 21.0)
        inner = sma(0, 19, close, 5)
        outer = compose(inner, lambda s, e, v: sma(s, e, v, 3), 0)

        assert outer.begin_index == 4 + 2
        assert outer.element_count == 14
        # SMA3 of SMA5 on a ramp is the ramp shifted by 3
        np.testing.assert_allclose(outer.values, close[6:] - 3.0)

    def test_clipped_to_start(self):
        close = np.arange(1.0, 21.0)
        inner = sma(0, 19, close, 5)
        outer = compose(inner, lambda s, e, v: sma(s, e, v, 3), 10)
        assert outer.begin_index == 10
        assert outer.element_count == 10

    def test_inner_error_returned_unchanged(self):
        failure = Result.failure(RetCode.OUT_OF_RANGE_END_INDEX, "end index out of range")
        assert compose(failure, lambda s, e, v: sma(s, e, v, 3), 0) is failure

    def test_outer_error_returned(self):
        inner = sma(0, 19, np.arange(1.0, 21.0), 5)
        result = compose(inner, lambda s, e, v: sma(s, e, v, 0), 0)
        assert result.ret_code == RetCode.INVALID_PARAMETER

    def test_empty_inner_gives_empty_result(self):
        inner = sma(0, 2, [1.0, 2.0, 3.0], 5)
        result = compose(inner, lambda s, e, v: sma(s, e, v, 3), 0)
        assert result.ok
        assert result.element_count == 0

    def test_align(self):
        inner = sma(0, 19, np.arange(1.0, 21.0), 5)
        np.testing.assert_allclose(align(inner, 10, 3), [9.0, 10.0, 11.0])


class TestCombinedLookbacks:
    """Warm-ups of chained stages add up."""

    def test_stochf_lookback(self):
        assert stochf_lookback(5, 3) == 6
        assert stochf_lookback(5, 3, MAType.TEMA) == 4 + 6

    def test_stoch_rsi_lookback(self):
        assert stoch_rsi_lookback(14, 14, 3) == 14 + 13 + 2
        close = random_walk_arrays(120)['close']
        result = stoch_rsi(0, 119, close, 14, 14, 3)

        assert result.begin_index == 29
        assert result.element_count == 91
        assert len(result['fast_d']) == 91

    def test_stoch_rsi_too_short_is_empty(self):
        close = random_walk_arrays(29)['close']
        result = stoch_rsi(0, 28, close, 14, 14, 3)
        assert result.ok
        assert result.element_count == 0


class TestErrorPropagation:
    """Inner stage errors surface from the composite."""

    def test_stoch_rsi_bad_rsi_period(self):
        close = random_walk_arrays(60)['close']
        result = stoch_rsi(0, 59, close, 0, 14, 3)
        assert result.ret_code == RetCode.INVALID_PARAMETER
        assert result.reason == "invalid time period"

    def test_stoch_rsi_bad_range(self):
        close = random_walk_arrays(60)['close']
        assert stoch_rsi(0, 60, close, 14, 14, 3).ret_code == RetCode.OUT_OF_RANGE_END_INDEX

    def test_stoch_rsi_empty_input(self):
        result = stoch_rsi(0, 0, [], 14, 14, 3)
        assert result.reason == "empty input data"


class TestStartIndexIndependence:
    """A later start index only trims output; values are unchanged."""

    @pytest.mark.parametrize("start", [0, 35, 60])
    def test_stoch_rsi(self, start):
        close = random_walk_arrays(120)['close']
        full = stoch_rsi(0, 119, close, 14, 14, 3)
        partial = stoch_rsi(start, 119, close, 14, 14, 3)

        assert partial.begin_index == max(start, full.begin_index)
        offset = partial.begin_index - full.begin_index
        np.testing.assert_allclose(partial.values, full.values[offset:])
        np.testing.assert_allclose(partial['fast_d'], full['fast_d'][offset:])

    def test_stoch(self):
        data = random_walk_arrays(120)
        full = stoch(0, 119, data['high'], data['low'], data['close'])
        partial = stoch(50, 119, data['high'], data['low'], data['close'])
        np.testing.assert_allclose(partial.values, full.values[50 - full.begin_index:])


class TestStochRSIChain:
    """Stochastic RSI equals STOCHF applied to RSI output."""

    def test_matches_manual_chain(self):
        close = random_walk_arrays(120)['close']
        rsi_result = rsi(0, 119, close, 14)
        values = rsi_result.values
        manual = stochf(0, len(values) - 1, values, values, values, 14, 3)

        result = stoch_rsi(0, 119, close, 14, 14, 3)

        assert result.begin_index == rsi_result.begin_index + manual.begin_index
        np.testing.assert_allclose(result.values, manual.values)
        np.testing.assert_allclose(result['fast_d'], manual['fast_d'])

    def test_bounds(self):
        close = random_walk_arrays(200)['close']
        result = stoch_rsi(0, 199, close, 14, 14, 3)
        assert np.all(result.values >= 0.0)
        assert np.all(result.values <= 100.0)
