"""
Unit tests for volatility and volume indicators.

Tests:
- True range and ATR warm-up / Wilder smoothing
- Variance / standard deviation / Bollinger Bands
- Rolling extrema and price channel
- OBV seed, accumulation and determinism
"""

import numpy as np
import pandas as pd
import pytest

from ta_engine.indicators.volatility import (
    atr,
    bbands,
    max_value,
    min_value,
    minmax,
    price_channel,
    stddev,
    trange,
    var,
)
from ta_engine.indicators.volume import obv, obv_lookback
from ta_engine.shared.models.result import MAType, RetCode
from ta_engine.tests.fixtures.market_data import random_walk_arrays


class TestTrueRange:
    """TRANGE and ATR."""

    def test_trange_starts_at_one(self):
        high = [10.0, 12.0, 11.0]
        low = [9.0, 10.0, 8.0]
        close = [9.5, 11.0, 9.0]
        result = trange(0, 2, high, low, close)

        assert result.begin_index == 1
        # max(2, |12-9.5|, |10-9.5|) = 2.5 ; max(3, |11-11|, |8-11|) = 3
        np.testing.assert_allclose(result.values, [2.5, 3.0])

    def test_atr_seed_is_mean_true_range(self):
        data = random_walk_arrays(50)
        tr = trange(0, 49, data['high'], data['low'], data['close'])
        result = atr(0, 49, data['high'], data['low'], data['close'], 14)

        assert result.begin_index == 14
        assert result.values[0] == pytest.approx(np.mean(tr.values[:14]))
        expected_next = (result.values[0] * 13 + tr.values[14]) / 14
        assert result.values[1] == pytest.approx(expected_next)

    def test_atr_non_negative(self):
        data = random_walk_arrays(200)
        result = atr(0, 199, data['high'], data['low'], data['close'], 14)
        assert np.all(result.values >= 0.0)


class TestDispersion:
    """VAR, STDDEV and Bollinger Bands."""

    def test_population_stddev(self):
        data = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
        result = stddev(0, 7, data, 8)
        assert result.begin_index == 7
        assert result.values[0] == pytest.approx(2.0)

    def test_variance_matches_pandas(self):
        close = pd.Series(random_walk_arrays(100)['close'])
        result = var(0, 99, close.values, 10)
        expected = close.rolling(10).var(ddof=0).iloc[9:].values
        np.testing.assert_allclose(result.values, expected, rtol=1e-7)

    def test_constant_series_has_zero_width(self):
        result = bbands(0, 39, [5.0] * 40, 20, 2.0, 2.0)
        np.testing.assert_allclose(result.values, 5.0)
        np.testing.assert_allclose(result['upper_band'], 5.0)
        np.testing.assert_allclose(result['lower_band'], 5.0)

    def test_band_ordering(self):
        close = random_walk_arrays(150)['close']
        result = bbands(0, 149, close, 20, 2.0, 1.0)

        assert result.begin_index == 19
        assert np.all(result['upper_band'] >= result.values)
        assert np.all(result.values >= result['lower_band'])

    def test_asymmetric_multipliers(self):
        close = random_walk_arrays(150)['close']
        result = bbands(0, 149, close, 20, 2.0, 1.0)
        upper_width = result['upper_band'] - result.values
        lower_width = result.values - result['lower_band']
        np.testing.assert_allclose(upper_width, 2.0 * lower_width)

    def test_bbands_with_ema_middle(self):
        close = random_walk_arrays(150)['close']
        result = bbands(0, 149, close, 20, 2.0, 2.0, MAType.EMA)
        assert result.ok
        assert result.begin_index == 19

    def test_bbands_rejects_mama(self):
        result = bbands(0, 39, [5.0] * 40, 20, 2.0, 2.0, MAType.MAMA)
        assert result.ret_code == RetCode.INVALID_PARAMETER


class TestExtrema:
    """Rolling max / min and price channel."""

    def test_max_min(self):
        data = [3.0, 1.0, 4.0, 1.0, 5.0, 9.0, 2.0, 6.0]
        assert list(max_value(0, 7, data, 3).values) == [4.0, 4.0, 5.0, 9.0, 9.0, 9.0]
        assert list(min_value(0, 7, data, 3).values) == [1.0, 1.0, 1.0, 1.0, 2.0, 2.0]

    def test_minmax_extras(self):
        data = [3.0, 1.0, 4.0, 1.0, 5.0]
        result = minmax(0, 4, data, 2)
        np.testing.assert_allclose(result['max'], [3.0, 4.0, 4.0, 5.0])
        np.testing.assert_allclose(result['min'], [1.0, 1.0, 1.0, 1.0])
        np.testing.assert_allclose(result.values, result['max'])

    def test_price_channel(self):
        data = random_walk_arrays(60)
        result = price_channel(0, 59, data['high'], data['low'], 20)

        assert result.begin_index == 19
        np.testing.assert_allclose(result['upper_band'][-1], data['high'][-20:].max())
        np.testing.assert_allclose(result['lower_band'][-1], data['low'][-20:].min())
        np.testing.assert_allclose(result.values, (result['upper_band'] + result['lower_band']) / 2)


class TestOBV:
    """On-Balance Volume."""

    def test_accumulation(self):
        close = [10.0, 11.0, 10.5, 10.5, 12.0]
        volume = [100.0, 200.0, 50.0, 70.0, 30.0]
        result = obv(0, 4, close, volume)

        assert result.begin_index == obv_lookback()
        np.testing.assert_allclose(result.values, [100.0, 300.0, 250.0, 250.0, 280.0])

    def test_seed_is_volume_at_start(self):
        close = [10.0, 11.0, 10.5, 10.5, 12.0]
        volume = [100.0, 200.0, 50.0, 70.0, 30.0]
        result = obv(2, 4, close, volume)

        assert result.begin_index == 2
        np.testing.assert_allclose(result.values, [50.0, 50.0, 80.0])

    def test_deterministic(self):
        data = random_walk_arrays(100)
        first = obv(0, 99, data['close'], data['volume'])
        second = obv(0, 99, data['close'], data['volume'])
        np.testing.assert_array_equal(first.values, second.values)

    def test_mismatched_lengths(self):
        result = obv(0, 2, [1.0, 2.0, 3.0], [1.0, 2.0])
        assert result.ret_code == RetCode.INVALID_PARAMETER
        assert result.reason == "mismatched input lengths"

    def test_inputs_not_mutated(self):
        close = np.array([10.0, 11.0, 12.0])
        volume = np.array([1.0, 2.0, 3.0])
        obv(0, 2, close, volume)
        np.testing.assert_array_equal(close, [10.0, 11.0, 12.0])
        np.testing.assert_array_equal(volume, [1.0, 2.0, 3.0])
