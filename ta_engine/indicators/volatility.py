"""
Volatility Indicators Module

Implements volatility and range indicators:
- TRANGE (True Range) and ATR (Average True Range, Wilder smoothed)
- VAR / STDDEV (rolling population variance / standard deviation)
- Bollinger Bands
- MAX / MIN / MINMAX rolling extrema and the highest-high/lowest-low
  price channel

Multi-output indicators return their bands as Result extras
(``upper_band``, ``lower_band``, ``min``, ``max``).
"""

import logging

import numpy as np

from ta_engine.indicators.moving_averages import ma_lookback, ma_series
from ta_engine.indicators.primitives import mean, variance
from ta_engine.indicators.recurrences import (
    emit,
    padded,
    rolling_extrema,
    true_range,
    wilder_series,
)
from ta_engine.indicators.validation_utils import (
    as_array,
    guarded,
    output_range,
    validate,
    validate_ma_type,
    validate_params,
    validate_price,
)
from ta_engine.shared.config.defaults import DEFAULT_WINDOWS
from ta_engine.shared.models.result import MAType, Result, RetCode

logger = logging.getLogger(__name__)


def trange_lookback() -> int:
    return 1


def atr_lookback(period: int) -> int:
    return period


def var_lookback(period: int) -> int:
    return period - 1


def bbands_lookback(period: int, ma_type: MAType = MAType.SMA) -> int:
    return ma_lookback(period, ma_type)


def extrema_lookback(period: int) -> int:
    return period - 1


def variance_series(x: np.ndarray, period: int) -> np.ndarray:
    """Rolling population variance, each window measured around its own mean."""
    n = len(x)
    out = padded(n)
    for i in range(period - 1, n):
        window = x[i - period + 1:i + 1]
        out[i] = variance(window, mean(window))
    return out


@guarded
def trange(start_idx: int, end_idx: int, high, low, close) -> Result:
    """
    True Range.

    max(high-low, |high-prevClose|, |low-prevClose|); the first bar has no
    previous close, so output starts at index 1.
    """
    outcome = validate_price(start_idx, end_idx, high, low, close)
    if not outcome.ok:
        return outcome.failure()
    if output_range(start_idx, end_idx, trange_lookback())[1] == 0:
        return Result.empty()

    stop = end_idx + 1
    tr = true_range(as_array(high)[:stop], as_array(low)[:stop], as_array(close)[:stop])
    return emit(tr, start_idx, end_idx, trange_lookback())


@guarded
def atr(start_idx: int, end_idx: int, high, low, close, period: int = DEFAULT_WINDOWS.atr_period) -> Result:
    """
    Compute Average True Range (ATR).

    The true range series is Wilder-smoothed: the seed is the mean of the
    first ``period`` true ranges (indices 1..period) and each later value
    is (prev*(period-1) + tr) / period.

    Returns:
        Result with values starting at index ``period``
    """
    outcome = validate(start_idx, end_idx, period, high, low, close)
    if not outcome.ok:
        return outcome.failure()

    lookback = atr_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    stop = end_idx + 1
    tr = true_range(as_array(high)[:stop], as_array(low)[:stop], as_array(close)[:stop])
    smoothed = padded(stop)
    smoothed[1:] = wilder_series(tr[1:], period)
    return emit(smoothed, start_idx, end_idx, lookback)


@guarded
def var(start_idx: int, end_idx: int, in_real, period: int = 5, nbdev: float = 1.0) -> Result:
    """Rolling population variance (scaled by ``nbdev``)."""
    outcome = validate_params(start_idx, end_idx, in_real, period)
    if not outcome.ok:
        return outcome.failure()

    lookback = var_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    x = as_array(in_real)[:end_idx + 1]
    return emit(variance_series(x, period) * nbdev, start_idx, end_idx, lookback)


@guarded
def stddev(start_idx: int, end_idx: int, in_real, period: int = 5, nbdev: float = 1.0) -> Result:
    """Rolling population standard deviation times ``nbdev``."""
    outcome = validate_params(start_idx, end_idx, in_real, period)
    if not outcome.ok:
        return outcome.failure()

    lookback = var_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    x = as_array(in_real)[:end_idx + 1]
    return emit(np.sqrt(variance_series(x, period)) * nbdev, start_idx, end_idx, lookback)


@guarded
def bbands(
    start_idx: int,
    end_idx: int,
    in_real,
    period: int = DEFAULT_WINDOWS.bb_period,
    nbdev_up: float = DEFAULT_WINDOWS.bb_std,
    nbdev_dn: float = DEFAULT_WINDOWS.bb_std,
    ma_type: MAType = MAType.SMA,
) -> Result:
    """
    Compute Bollinger Bands.

    Middle band is the moving average of the selected type; band width is
    the population standard deviation of the same window.

    Returns:
        Result with values = middle band and extras ``upper_band``,
        ``lower_band``
    """
    outcome = validate_params(start_idx, end_idx, in_real, period)
    if not outcome.ok:
        return outcome.failure()
    if validate_ma_type(ma_type) != RetCode.SUCCESS or MAType(ma_type) == MAType.MAMA:
        return Result.failure(RetCode.INVALID_PARAMETER, f"invalid moving average type: {ma_type!r}")

    lookback = max(bbands_lookback(period, ma_type), var_lookback(period))
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty('upper_band', 'lower_band')

    x = as_array(in_real)[:end_idx + 1]
    middle = ma_series(x, period, ma_type)
    deviation = np.sqrt(variance_series(x, period))
    return emit(
        middle,
        start_idx,
        end_idx,
        lookback,
        upper_band=middle + nbdev_up * deviation,
        lower_band=middle - nbdev_dn * deviation,
    )


def _extrema(start_idx, end_idx, in_real, period, use_max) -> Result:
    outcome = validate_params(start_idx, end_idx, in_real, period)
    if not outcome.ok:
        return outcome.failure()

    lookback = extrema_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    x = as_array(in_real)[:end_idx + 1]
    return emit(rolling_extrema(x, period, use_max), start_idx, end_idx, lookback)


@guarded
def max_value(start_idx: int, end_idx: int, in_real, period: int = 30) -> Result:
    """Highest value over the trailing window."""
    return _extrema(start_idx, end_idx, in_real, period, use_max=True)


@guarded
def min_value(start_idx: int, end_idx: int, in_real, period: int = 30) -> Result:
    """Lowest value over the trailing window."""
    return _extrema(start_idx, end_idx, in_real, period, use_max=False)


@guarded
def minmax(start_idx: int, end_idx: int, in_real, period: int = 30) -> Result:
    """Rolling max and min; values = max, extras ``min`` and ``max``."""
    outcome = validate_params(start_idx, end_idx, in_real, period)
    if not outcome.ok:
        return outcome.failure()

    lookback = extrema_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty('min', 'max')

    x = as_array(in_real)[:end_idx + 1]
    highest = rolling_extrema(x, period, use_max=True)
    lowest = rolling_extrema(x, period, use_max=False)
    return emit(highest, start_idx, end_idx, lookback, min=lowest, max=highest)


@guarded
def price_channel(
    start_idx: int, end_idx: int, high, low, period: int = DEFAULT_WINDOWS.channel_period
) -> Result:
    """
    Highest-high / lowest-low band.

    Returns:
        Result with values = channel midpoint and extras ``upper_band``
        (highest high) and ``lower_band`` (lowest low)
    """
    outcome = validate(start_idx, end_idx, period, high, low)
    if not outcome.ok:
        return outcome.failure()

    lookback = extrema_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty('upper_band', 'lower_band')

    stop = end_idx + 1
    upper = rolling_extrema(as_array(high)[:stop], period, use_max=True)
    lower = rolling_extrema(as_array(low)[:stop], period, use_max=False)
    return emit((upper + lower) / 2.0, start_idx, end_idx, lookback, upper_band=upper, lower_band=lower)

