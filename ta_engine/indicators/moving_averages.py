"""
Moving Averages Module

Implements the moving average family:
- SMA (Simple), WMA (Weighted), TRIMA (Triangular) - windowed
- EMA (Exponential), DEMA, TEMA, KAMA (Kaufman Adaptive) - recursive
- MA - dispatch on an MAType selector

All functions take ``(start_idx, end_idx, in_real, period)`` and return a
Result whose values start at the first index with a full warm-up.
"""

import logging

import numpy as np

from ta_engine.indicators.recurrences import (
    ema_series,
    emit,
    padded,
    sma_series,
    wma_series,
)
from ta_engine.indicators.validation_utils import (
    as_array,
    guarded,
    output_range,
    validate_ma_type,
    validate_params,
)
from ta_engine.shared.config.defaults import DEFAULT_WINDOWS, EPSILON
from ta_engine.shared.models.result import MAType, Result, RetCode

logger = logging.getLogger(__name__)

KAMA_FAST_PERIOD = 2
KAMA_SLOW_PERIOD = 30


# ---------------------------------------------------------------------------
# Lookbacks
# ---------------------------------------------------------------------------

def sma_lookback(period: int) -> int:
    return period - 1


def wma_lookback(period: int) -> int:
    return period - 1


def ema_lookback(period: int) -> int:
    return period - 1


def dema_lookback(period: int) -> int:
    return 2 * ema_lookback(period)


def tema_lookback(period: int) -> int:
    return 3 * ema_lookback(period)


def trima_lookback(period: int) -> int:
    return period - 1


def kama_lookback(period: int) -> int:
    return period


def ma_lookback(period: int, ma_type: MAType = MAType.SMA) -> int:
    """Lookback of ``ma()`` for the given period and type."""
    if period == 1:
        return 0
    return {
        MAType.SMA: sma_lookback,
        MAType.EMA: ema_lookback,
        MAType.WMA: wma_lookback,
        MAType.DEMA: dema_lookback,
        MAType.TEMA: tema_lookback,
        MAType.TRIMA: trima_lookback,
        MAType.KAMA: kama_lookback,
    }[MAType(ma_type)](period)


# ---------------------------------------------------------------------------
# Series kernels (full-length, NaN warm-up)
# ---------------------------------------------------------------------------

def _chain_ema(x: np.ndarray, period: int, offset: int) -> np.ndarray:
    """EMA of the valid tail ``x[offset:]``, re-padded to full length."""
    out = padded(len(x))
    if len(x) > offset:
        out[offset:] = ema_series(x[offset:], period)
    return out


def dema_series(x: np.ndarray, period: int) -> np.ndarray:
    e1 = ema_series(x, period)
    e2 = _chain_ema(e1, period, ema_lookback(period))
    return 2.0 * e1 - e2


def tema_series(x: np.ndarray, period: int) -> np.ndarray:
    e1 = ema_series(x, period)
    e2 = _chain_ema(e1, period, ema_lookback(period))
    e3 = _chain_ema(e2, period, dema_lookback(period))
    return 3.0 * e1 - 3.0 * e2 + e3


def trima_series(x: np.ndarray, period: int) -> np.ndarray:
    """SMA of an SMA; the two window lengths add up to period + 1."""
    if period % 2:
        first = second = (period + 1) // 2
    else:
        first = period // 2
        second = first + 1

    inner = sma_series(x, first)
    out = padded(len(x))
    offset = first - 1
    if len(x) > offset:
        out[offset:] = sma_series(inner[offset:], second)
    return out


def kama_series(x: np.ndarray, period: int) -> np.ndarray:
    """Kaufman adaptive moving average seeded with x[period-1]."""
    n = len(x)
    out = padded(n)
    if n <= period:
        return out

    fastest = 2.0 / (KAMA_FAST_PERIOD + 1)
    slowest = 2.0 / (KAMA_SLOW_PERIOD + 1)

    volatility = 0.0
    for j in range(1, period + 1):
        volatility += abs(x[j] - x[j - 1])

    prev = x[period - 1]
    for i in range(period, n):
        if i > period:
            volatility += abs(x[i] - x[i - 1]) - abs(x[i - period] - x[i - period - 1])

        direction = abs(x[i] - x[i - period])
        if volatility <= direction or abs(volatility) < EPSILON:
            efficiency = 1.0
        else:
            efficiency = direction / volatility

        sc = efficiency * (fastest - slowest) + slowest
        sc *= sc
        prev = prev + sc * (x[i] - prev)
        out[i] = prev
    return out


_SERIES = {
    MAType.SMA: sma_series,
    MAType.EMA: ema_series,
    MAType.WMA: wma_series,
    MAType.DEMA: dema_series,
    MAType.TEMA: tema_series,
    MAType.TRIMA: trima_series,
    MAType.KAMA: kama_series,
}


def ma_series(x: np.ndarray, period: int, ma_type: MAType = MAType.SMA) -> np.ndarray:
    """Full-length MA kernel output for a supported MAType."""
    if period == 1:
        return x.astype(np.float64, copy=True)
    return _SERIES[MAType(ma_type)](x, period)


def _single(series_fn, lookback_fn, start_idx, end_idx, in_real, period) -> Result:
    outcome = validate_params(start_idx, end_idx, in_real, period)
    if not outcome.ok:
        return outcome.failure()

    lookback = lookback_fn(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    x = as_array(in_real)[:end_idx + 1]
    return emit(series_fn(x, period), start_idx, end_idx, lookback)


# ---------------------------------------------------------------------------
# Public indicators
# ---------------------------------------------------------------------------

@guarded
def sma(start_idx: int, end_idx: int, in_real, period: int = DEFAULT_WINDOWS.sma_period) -> Result:
    """
    Simple Moving Average.

    Mean of the trailing ``period`` points, maintained as a rolling sum.

    Returns:
        Result with values starting at index ``period - 1`` (or start_idx
        when later)
    """
    return _single(sma_series, sma_lookback, start_idx, end_idx, in_real, period)


@guarded
def wma(start_idx: int, end_idx: int, in_real, period: int = DEFAULT_WINDOWS.wma_period) -> Result:
    """Weighted Moving Average (weights 1..period, newest heaviest)."""
    return _single(wma_series, wma_lookback, start_idx, end_idx, in_real, period)


@guarded
def ema(start_idx: int, end_idx: int, in_real, period: int = DEFAULT_WINDOWS.ema_period) -> Result:
    """
    Exponential Moving Average.

    Seeded with the simple mean of the first ``period`` input points, then
    ema[i] = x[i]*k + ema[i-1]*(1-k) with k = 2/(period+1). Values at a
    given index do not depend on ``start_idx``.
    """
    return _single(ema_series, ema_lookback, start_idx, end_idx, in_real, period)


@guarded
def dema(start_idx: int, end_idx: int, in_real, period: int = DEFAULT_WINDOWS.ema_period) -> Result:
    """Double EMA: 2*EMA - EMA(EMA)."""
    return _single(dema_series, dema_lookback, start_idx, end_idx, in_real, period)


@guarded
def tema(start_idx: int, end_idx: int, in_real, period: int = DEFAULT_WINDOWS.ema_period) -> Result:
    """Triple EMA: 3*E1 - 3*E2 + E3."""
    return _single(tema_series, tema_lookback, start_idx, end_idx, in_real, period)


@guarded
def trima(start_idx: int, end_idx: int, in_real, period: int = DEFAULT_WINDOWS.sma_period) -> Result:
    """Triangular Moving Average."""
    return _single(trima_series, trima_lookback, start_idx, end_idx, in_real, period)


@guarded
def kama(start_idx: int, end_idx: int, in_real, period: int = 30) -> Result:
    """Kaufman Adaptive Moving Average (fast 2, slow 30)."""
    return _single(kama_series, kama_lookback, start_idx, end_idx, in_real, period)


@guarded
def ma(
    start_idx: int,
    end_idx: int,
    in_real,
    period: int = DEFAULT_WINDOWS.sma_period,
    ma_type: MAType = MAType.SMA,
) -> Result:
    """
    Moving average of the selected type.

    A period of 1 returns the requested input range unchanged.
    MAMA is a valid selector but is not computed here and is rejected.
    """
    outcome = validate_params(start_idx, end_idx, in_real, period)
    if not outcome.ok:
        return outcome.failure()
    if validate_ma_type(ma_type) != RetCode.SUCCESS:
        return Result.failure(RetCode.INVALID_PARAMETER, f"invalid moving average type: {ma_type!r}")
    if MAType(ma_type) == MAType.MAMA:
        logger.debug("ma() called with MAMA selector")
        return Result.failure(RetCode.INVALID_PARAMETER, "MAMA is not supported by ma()")

    lookback = ma_lookback(period, ma_type)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    x = as_array(in_real)[:end_idx + 1]
    return emit(ma_series(x, period, ma_type), start_idx, end_idx, lookback)
