"""
Integration tests running every registered indicator through the registry.

Tests:
- Result invariants (count, extras alignment, range) for every indicator
- Monotonic warm-up: output begins at the same index for any longer input
- Later start index never changes values
- Input validation is uniform across indicators
"""

import numpy as np
import pytest

from ta_engine.indicators.registry import INDICATORS, compute, get_indicator
from ta_engine.indicators.validation_utils import check_result
from ta_engine.shared.models.result import RetCode
from ta_engine.tests.fixtures.market_data import (
    generate_bullish_trend_ohlcv,
    generate_flat_ohlcv,
    ohlcv_arrays,
    random_walk_arrays,
)

NAMES = sorted(INDICATORS)


def truncated(data, n):
    return {field: values[:n] for field, values in data.items()}


class TestRegistry:
    """Name lookup and dispatch."""

    def test_lookup_is_case_insensitive(self):
        assert get_indicator('RSI').name == 'rsi'

    def test_unknown_indicator(self):
        with pytest.raises(KeyError, match="Unknown indicator"):
            get_indicator('mama')

    def test_missing_input_field(self):
        result = compute('mfi', {'close': np.arange(30.0)})
        assert result.ret_code == RetCode.INVALID_PARAMETER

    def test_parameters_forwarded(self):
        data = random_walk_arrays(60)
        assert compute('sma', data, period=7).begin_index == 6


class TestResultInvariants:
    """Every indicator honours the Result contract."""

    @pytest.mark.parametrize("name", NAMES)
    def test_full_range(self, name):
        data = random_walk_arrays(250)
        result = compute(name, data)

        assert result.ok, result.reason
        assert result.element_count > 0
        assert check_result(result, 0, 249) is None
        assert result.end_index == 249
        assert set(result.extras) == set(INDICATORS[name].extras)
        assert np.all(np.isfinite(result.values))
        for seq in result.extras.values():
            assert np.all(np.isfinite(seq))

    @pytest.mark.parametrize("name", NAMES)
    def test_sub_range(self, name):
        data = random_walk_arrays(250)
        result = compute(name, data, start_idx=120, end_idx=200)

        assert result.ok
        assert result.begin_index == 120
        assert result.element_count == 81

    @pytest.mark.parametrize("name", NAMES)
    def test_flat_market_has_no_nan(self, name):
        data = ohlcv_arrays(generate_flat_ohlcv(120))
        result = compute(name, data)

        assert result.ok
        assert np.all(np.isfinite(result.values))


class TestWarmup:
    """The first output index depends only on parameters, not data length."""

    @pytest.mark.parametrize("name", NAMES)
    def test_monotonic_warmup(self, name):
        data = random_walk_arrays(250)
        begins = {compute(name, truncated(data, n)).begin_index for n in (120, 180, 250)}
        assert len(begins) == 1

    @pytest.mark.parametrize("name", NAMES)
    def test_prefix_values_stable(self, name):
        """Values at an index do not change when more data is appended."""
        data = random_walk_arrays(250)
        short = compute(name, truncated(data, 150))
        full = compute(name, data)

        np.testing.assert_allclose(
            short.values,
            full.values[:short.element_count],
            rtol=1e-9,
        )

    @pytest.mark.parametrize("name", [
        'sma', 'ema', 'wma', 'kama', 'rsi', 'roc', 'mom', 'willr',
        'cci', 'mfi', 'dx', 'atr', 'var', 'stddev', 'max', 'min',
    ])
    def test_longer_period_shifts_begin(self, name):
        """Raising the period by k moves the first output index by k."""
        data = random_walk_arrays(250)
        short = compute(name, data, period=10)
        long = compute(name, data, period=13)
        assert long.begin_index - short.begin_index == 3

    def test_adx_shifts_twice(self):
        data = random_walk_arrays(250)
        assert compute('adx', data, period=13).begin_index - compute('adx', data, period=10).begin_index == 6


class TestStartIndependence:
    """A later start index trims output without changing values."""

    @pytest.mark.parametrize("name", [n for n in NAMES if n != 'obv'])
    def test_values_unchanged(self, name):
        data = random_walk_arrays(250)
        full = compute(name, data)
        late = compute(name, data, start_idx=150)

        offset = late.begin_index - full.begin_index
        np.testing.assert_allclose(late.values, full.values[offset:], rtol=1e-12)
        for extra in late.extras:
            np.testing.assert_allclose(late[extra], full[extra][offset:], rtol=1e-12)

    def test_obv_reseeds_at_start(self):
        data = random_walk_arrays(100)
        late = compute('obv', data, start_idx=40)
        assert late.values[0] == data['volume'][40]


class TestUniformValidation:
    """All indicators reject malformed requests the same way."""

    @pytest.mark.parametrize("name", NAMES)
    def test_end_out_of_range(self, name):
        data = random_walk_arrays(50)
        assert compute(name, data, end_idx=50).ret_code == RetCode.OUT_OF_RANGE_END_INDEX

    @pytest.mark.parametrize("name", NAMES)
    def test_negative_start(self, name):
        data = random_walk_arrays(50)
        assert compute(name, data, start_idx=-1).ret_code == RetCode.OUT_OF_RANGE_START_INDEX

    @pytest.mark.parametrize("name", NAMES)
    def test_empty_input(self, name):
        data = {field: np.array([]) for field in ('open', 'high', 'low', 'close', 'volume')}
        result = compute(name, data, end_idx=0)
        assert result.ret_code == RetCode.INVALID_PARAMETER
        assert result.reason == "empty input data"

    @pytest.mark.parametrize("name", [n for n in NAMES if len(INDICATORS[n].inputs) > 1])
    def test_mismatched_lengths(self, name):
        data = random_walk_arrays(50)
        data[INDICATORS[name].inputs[-1]] = data[INDICATORS[name].inputs[-1]][:40]
        result = compute(name, data, end_idx=39)
        assert result.reason == "mismatched input lengths"

    @pytest.mark.parametrize("name", [n for n in NAMES if n not in ('obv', 'trange')])
    def test_zero_period(self, name):
        data = random_walk_arrays(50)
        params = {'fast_period': 0} if name in ('macd', 'apo', 'ppo') else {'period': 0}
        if name in ('stoch', 'stochf'):
            params = {'fastk_period': 0}
        assert compute(name, data, **params).ret_code == RetCode.INVALID_PARAMETER


    @pytest.mark.parametrize("name", [n for n in NAMES if n not in ('obv', 'trange')])
    def test_fractional_period(self, name):
        data = random_walk_arrays(50)
        params = {'fast_period': 2.5} if name in ('macd', 'apo', 'ppo') else {'period': 2.5}
        if name in ('stoch', 'stochf'):
            params = {'fastk_period': 2.5}
        result = compute(name, data, **params)
        assert result.ret_code == RetCode.INVALID_PARAMETER
        assert result.element_count == 0

    @pytest.mark.parametrize("name, params", [
        ('macd', {'signal_period': 9.5}),
        ('stoch', {'slowk_period': 3.5}),
        ('stochrsi', {'fastd_period': 1.5}),
    ])
    def test_fractional_secondary_period(self, name, params):
        result = compute(name, random_walk_arrays(80), **params)
        assert result.ret_code == RetCode.INVALID_PARAMETER


class TestTrendingData:
    """Sanity checks on realistic candles."""

    def test_rsi_elevated_in_uptrend(self):
        data = ohlcv_arrays(generate_bullish_trend_ohlcv(200))
        result = compute('rsi', data, period=14)
        assert np.mean(result.values) > 50.0
