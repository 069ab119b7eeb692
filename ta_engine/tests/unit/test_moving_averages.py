"""
Unit tests for the moving average family.

Tests:
- Worked SMA / EMA scenarios
- Constant input gives a constant average for every MA type
- Lookbacks and warm-up positions
- MA dispatch (period 1, MAMA, unknown selectors)
"""

import numpy as np
import pytest

from ta_engine.indicators.moving_averages import (
    dema,
    dema_lookback,
    ema,
    kama,
    ma,
    ma_lookback,
    sma,
    tema,
    tema_lookback,
    trima,
    wma,
)
from ta_engine.shared.models.result import MAType, RetCode
from ta_engine.tests.fixtures.market_data import random_walk_arrays


class TestSMA:
    """Simple moving average."""

    def test_sma_worked_example(self):
        """[1..5] with period 3 gives [2, 3, 4] from index 2."""
        result = sma(0, 4, [1.0, 2.0, 3.0, 4.0, 5.0], 3)

        assert result.ok
        assert result.begin_index == 2
        assert result.element_count == 3
        np.testing.assert_allclose(result.values, [2.0, 3.0, 4.0])

    def test_sma_start_after_warmup(self):
        result = sma(3, 4, [1.0, 2.0, 3.0, 4.0, 5.0], 3)
        assert result.begin_index == 3
        np.testing.assert_allclose(result.values, [3.0, 4.0])

    def test_sma_warmup_exceeds_data(self):
        result = sma(0, 4, [1.0, 2.0, 3.0, 4.0, 5.0], 10)
        assert result.ok
        assert result.element_count == 0

    def test_sma_single_point_window(self):
        result = sma(0, 2, [4.0, 5.0, 6.0], 1)
        assert result.begin_index == 0
        np.testing.assert_allclose(result.values, [4.0, 5.0, 6.0])

    def test_sma_rejects_zero_period(self):
        assert sma(0, 4, [1.0] * 5, 0).ret_code == RetCode.INVALID_PARAMETER


class TestEMA:
    """Exponential moving average."""

    def test_ema_worked_example(self):
        """Seeded with mean of the first 3 points, then k = 0.5."""
        data = [44.0, 44.5, 44.0, 43.5, 44.25, 43.75]
        result = ema(0, 5, data, 3)

        assert result.begin_index == 2
        assert result.element_count == 4
        assert result.values[0] == pytest.approx(44.1666667, abs=1e-6)
        assert result.values[1] == pytest.approx(43.8333333, abs=1e-6)
        assert result.values[2] == pytest.approx(44.0416667, abs=1e-6)
        assert result.values[3] == pytest.approx(43.8958333, abs=1e-6)

    def test_ema_independent_of_start_index(self):
        close = random_walk_arrays(120)['close']
        full = ema(0, 119, close, 10)
        late = ema(50, 119, close, 10)

        assert late.begin_index == 50
        np.testing.assert_allclose(late.values, full.values[50 - full.begin_index:])


class TestConstantInput:
    """Every MA of a constant series equals that constant."""

    @pytest.mark.parametrize("func", [sma, ema, wma, dema, tema, trima, kama])
    def test_constant_series(self, func):
        data = [7.5] * 60
        result = func(0, 59, data, 5)

        assert result.ok
        assert result.element_count > 0
        np.testing.assert_allclose(result.values, 7.5)

    @pytest.mark.parametrize("ma_type", [t for t in MAType if t != MAType.MAMA])
    def test_constant_series_by_selector(self, ma_type):
        result = ma(0, 59, [3.0] * 60, 4, ma_type)
        np.testing.assert_allclose(result.values, 3.0)


class TestLookbacks:
    """First output index matches the documented warm-up."""

    @pytest.mark.parametrize("func,expected", [
        (sma, 9), (ema, 9), (wma, 9), (trima, 9), (kama, 10),
        (dema, 18), (tema, 27),
    ])
    def test_begin_index(self, func, expected):
        close = random_walk_arrays(100)['close']
        assert func(0, 99, close, 10).begin_index == expected

    def test_chained_lookbacks(self):
        assert dema_lookback(10) == 18
        assert tema_lookback(10) == 27
        assert ma_lookback(1, MAType.TEMA) == 0
        assert ma_lookback(10, MAType.KAMA) == 10


class TestWeightedAverages:
    """WMA and TRIMA arithmetic."""

    def test_wma_weights_newest_heaviest(self):
        result = wma(0, 2, [1.0, 2.0, 3.0], 3)
        # (1*1 + 2*2 + 3*3) / 6
        assert result.values[0] == pytest.approx(14.0 / 6.0)

    def test_trima_odd_period(self):
        data = [1.0, 2.0, 3.0, 4.0, 5.0]
        result = trima(0, 4, data, 5)
        # SMA3 of SMA3: mean(2, 3, 4)
        assert result.begin_index == 4
        assert result.values[0] == pytest.approx(3.0)


class TestMADispatch:
    """Moving average selected by MAType."""

    def test_ma_matches_direct_call(self):
        close = random_walk_arrays(80)['close']
        np.testing.assert_allclose(ma(0, 79, close, 8, MAType.WMA).values, wma(0, 79, close, 8).values)
        np.testing.assert_allclose(ma(0, 79, close, 8, MAType.EMA).values, ema(0, 79, close, 8).values)

    def test_period_one_returns_input(self):
        result = ma(1, 3, [5.0, 6.0, 7.0, 8.0], 1, MAType.TEMA)
        assert result.begin_index == 1
        np.testing.assert_allclose(result.values, [6.0, 7.0, 8.0])

    def test_mama_rejected(self):
        result = ma(0, 59, [1.0] * 60, 5, MAType.MAMA)
        assert result.ret_code == RetCode.INVALID_PARAMETER

    def test_unknown_selector_rejected(self):
        result = ma(0, 59, [1.0] * 60, 5, 42)
        assert result.ret_code == RetCode.INVALID_PARAMETER
