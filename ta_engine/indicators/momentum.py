"""
Momentum Indicators Module

Implements technical momentum and trend-strength indicators:
- RSI (Relative Strength Index, Wilder smoothed)
- MACD (Moving Average Convergence Divergence) with signal and histogram
- APO / PPO (absolute / percentage price oscillators)
- ROC / MOM (rate of change, momentum)
- Stochastic oscillator (fast and slow), Stochastic RSI, Williams %R
- CCI (Commodity Channel Index)
- MFI (Money Flow Index)
- DX / ADX (directional movement, +DI / -DI)

Every function returns a Result; multi-output indicators carry their
secondary lines as extras (``signal``, ``hist``, ``slow_d``, ``fast_d``,
``plus_di``, ``minus_di``).

Denominator-zero cases return fixed values instead of NaN:
%K and Williams %R -> 0, CCI -> 0, MFI -> 100, RSI -> 100, DI/DX -> 0.
"""

import logging
from typing import Tuple

import numpy as np

from ta_engine.indicators.composition import align, compose
from ta_engine.indicators.moving_averages import ema, ema_lookback, ma, ma_lookback, ma_series
from ta_engine.indicators.primitives import is_zero, max2, mean, min2, sum_
from ta_engine.indicators.recurrences import (
    ema_series,
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
    validate_periods,
)
from ta_engine.shared.config.defaults import CCI_CONSTANT, DEFAULT_WINDOWS
from ta_engine.shared.models.result import MAType, Result, RetCode

logger = logging.getLogger(__name__)


def _bad_ma_type(ma_type) -> bool:
    return validate_ma_type(ma_type) != RetCode.SUCCESS or MAType(ma_type) == MAType.MAMA


def _invalid_ma_type(ma_type) -> Result:
    return Result.failure(RetCode.INVALID_PARAMETER, f"invalid moving average type: {ma_type!r}")


# ---------------------------------------------------------------------------
# Lookbacks
# ---------------------------------------------------------------------------

def rsi_lookback(period: int) -> int:
    return period


def macd_lookback(fast: int, slow: int, signal: int) -> int:
    """Slow EMA warm-up followed by the signal EMA warm-up."""
    return ema_lookback(max(fast, slow)) + ema_lookback(signal)


def apo_lookback(fast: int, slow: int, ma_type: MAType = MAType.EMA) -> int:
    return ma_lookback(max(fast, slow), ma_type)


def roc_lookback(period: int) -> int:
    return period


def willr_lookback(period: int) -> int:
    return period - 1


def cci_lookback(period: int) -> int:
    return period - 1


def mfi_lookback(period: int) -> int:
    return period


def dx_lookback(period: int) -> int:
    return period


def adx_lookback(period: int) -> int:
    """DM/TR smoothing warm-up followed by the DX smoothing warm-up."""
    return dx_lookback(period) + period - 1


def stochf_lookback(fastk: int, fastd: int, fastd_ma: MAType = MAType.SMA) -> int:
    return (fastk - 1) + ma_lookback(fastd, fastd_ma)


def stoch_lookback(
    fastk: int, slowk: int, slowd: int,
    slowk_ma: MAType = MAType.SMA, slowd_ma: MAType = MAType.SMA,
) -> int:
    return (fastk - 1) + ma_lookback(slowk, slowk_ma) + ma_lookback(slowd, slowd_ma)


def stoch_rsi_lookback(period: int, fastk: int, fastd: int, fastd_ma: MAType = MAType.SMA) -> int:
    return rsi_lookback(period) + stochf_lookback(fastk, fastd, fastd_ma)


# ---------------------------------------------------------------------------
# Series kernels
# ---------------------------------------------------------------------------

def rsi_series(x: np.ndarray, period: int) -> np.ndarray:
    """Wilder RSI; the first value sits at index ``period``."""
    n = len(x)
    out = padded(n)
    if n <= period:
        return out

    gains = np.zeros(n)
    losses = np.zeros(n)
    for i in range(1, n):
        change = x[i] - x[i - 1]
        if change > 0:
            gains[i] = change
        elif change < 0:
            losses[i] = -change

    avg_gain = sum_(gains[1:period + 1]) / period
    avg_loss = sum_(losses[1:period + 1]) / period
    out[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, n):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[i] = _rsi_value(avg_gain, avg_loss)
    return out


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if is_zero(avg_loss):
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def fast_k_series(high: np.ndarray, low: np.ndarray, close: np.ndarray, period: int) -> np.ndarray:
    """Raw stochastic %K; a flat window yields 0."""
    highest = rolling_extrema(high, period, use_max=True)
    lowest = rolling_extrema(low, period, use_max=False)
    out = padded(len(close))
    for i in range(period - 1, len(close)):
        spread = highest[i] - lowest[i]
        if is_zero(spread):
            out[i] = 0.0
        else:
            out[i] = min2(max2((close[i] - lowest[i]) / spread * 100.0, 0.0), 100.0)
    return out


def directional_series(
    high: np.ndarray, low: np.ndarray, close: np.ndarray, period: int
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute +DI, -DI and DX, each valid from index ``period``.

    A bar contributes +DM only when its up-move is positive and larger than
    its down-move; -DM symmetrically. Ties contribute to neither.
    """
    n = len(high)
    plus_dm = np.zeros(n)
    minus_dm = np.zeros(n)
    for i in range(1, n):
        up_move = high[i] - high[i - 1]
        down_move = low[i - 1] - low[i]
        if up_move > down_move and up_move > 0:
            plus_dm[i] = up_move
        elif down_move > up_move and down_move > 0:
            minus_dm[i] = down_move

    tr = true_range(high, low, close)
    smooth_tr = padded(n)
    smooth_plus = padded(n)
    smooth_minus = padded(n)
    smooth_tr[1:] = wilder_series(tr[1:], period)
    smooth_plus[1:] = wilder_series(plus_dm[1:], period)
    smooth_minus[1:] = wilder_series(minus_dm[1:], period)

    plus_di = padded(n)
    minus_di = padded(n)
    dx = padded(n)
    for i in range(period, n):
        if is_zero(smooth_tr[i]):
            p, m = 0.0, 0.0
        else:
            p = 100.0 * smooth_plus[i] / smooth_tr[i]
            m = 100.0 * smooth_minus[i] / smooth_tr[i]
        plus_di[i] = p
        minus_di[i] = m
        total = p + m
        dx[i] = 0.0 if is_zero(total) else 100.0 * abs(p - m) / total
    return plus_di, minus_di, dx


# ---------------------------------------------------------------------------
# Recursive smoothing
# ---------------------------------------------------------------------------

@guarded
def rsi(start_idx: int, end_idx: int, in_real, period: int = DEFAULT_WINDOWS.rsi_period) -> Result:
    """
    Compute Relative Strength Index (RSI).

    Average gain/loss are seeded with the simple means of the first
    ``period`` differences, then Wilder-smoothed. RSI is 100 while the
    average loss is zero, so a strictly rising series gives 100 and a
    strictly falling one gives 0.

    Returns:
        Result with values (0-100) starting at index ``period``
    """
    outcome = validate_params(start_idx, end_idx, in_real, period)
    if not outcome.ok:
        return outcome.failure()

    lookback = rsi_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    x = as_array(in_real)[:end_idx + 1]
    return emit(rsi_series(x, period), start_idx, end_idx, lookback)


@guarded
def macd(
    start_idx: int,
    end_idx: int,
    in_real,
    fast_period: int = DEFAULT_WINDOWS.macd_fast,
    slow_period: int = DEFAULT_WINDOWS.macd_slow,
    signal_period: int = DEFAULT_WINDOWS.macd_signal,
) -> Result:
    """
    Compute MACD (Moving Average Convergence Divergence).

    MACD line = EMA(fast) - EMA(slow), defined once the slow EMA is seeded.
    The signal line is an EMA of the MACD line, so its warm-up is added on
    top of the slow EMA's: the first output index is
    (slow - 1) + (signal - 1). Periods are swapped when slow < fast.

    Returns:
        Result with values = MACD line and extras ``signal`` and ``hist``
    """
    outcome = validate(start_idx, end_idx, fast_period, in_real)
    if not outcome.ok:
        return outcome.failure()
    bad = validate_periods(('slow period', slow_period, 1), ('signal period', signal_period, 1))
    if bad is not None:
        return bad.failure()

    if slow_period < fast_period:
        fast_period, slow_period = slow_period, fast_period

    if output_range(start_idx, end_idx, macd_lookback(fast_period, slow_period, signal_period))[1] == 0:
        return Result.empty('signal', 'hist')

    x = as_array(in_real)[:end_idx + 1]
    line = ema_series(x, fast_period) - ema_series(x, slow_period)
    macd_line = emit(line, 0, end_idx, ema_lookback(slow_period))

    signal = compose(macd_line, lambda s, e, v: ema(s, e, v, signal_period), start_idx)
    if not signal.ok or signal.element_count == 0:
        return signal

    values = align(macd_line, signal.begin_index, signal.element_count)
    return Result(
        begin_index=signal.begin_index,
        element_count=signal.element_count,
        values=values,
        extras={'signal': signal.values, 'hist': values - signal.values},
    )


def _price_oscillator(start_idx, end_idx, in_real, fast_period, slow_period, ma_type, percent) -> Result:
    outcome = validate(start_idx, end_idx, fast_period, in_real)
    if not outcome.ok:
        return outcome.failure()
    bad = validate_periods(('slow period', slow_period, 1))
    if bad is not None:
        return bad.failure()
    if _bad_ma_type(ma_type):
        return _invalid_ma_type(ma_type)

    if slow_period < fast_period:
        fast_period, slow_period = slow_period, fast_period

    lookback = apo_lookback(fast_period, slow_period, ma_type)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    x = as_array(in_real)[:end_idx + 1]
    fast = ma_series(x, fast_period, ma_type)
    slow = ma_series(x, slow_period, ma_type)
    if not percent:
        return emit(fast - slow, start_idx, end_idx, lookback)

    out = padded(len(x))
    for i in range(lookback, len(x)):
        out[i] = 0.0 if is_zero(slow[i]) else 100.0 * (fast[i] - slow[i]) / slow[i]
    return emit(out, start_idx, end_idx, lookback)


@guarded
def apo(
    start_idx: int,
    end_idx: int,
    in_real,
    fast_period: int = DEFAULT_WINDOWS.apo_fast,
    slow_period: int = DEFAULT_WINDOWS.apo_slow,
    ma_type: MAType = MAType.EMA,
) -> Result:
    """Absolute Price Oscillator: MA(fast) - MA(slow)."""
    return _price_oscillator(start_idx, end_idx, in_real, fast_period, slow_period, ma_type, percent=False)


@guarded
def ppo(
    start_idx: int,
    end_idx: int,
    in_real,
    fast_period: int = DEFAULT_WINDOWS.apo_fast,
    slow_period: int = DEFAULT_WINDOWS.apo_slow,
    ma_type: MAType = MAType.EMA,
) -> Result:
    """Percentage Price Oscillator: 100 * (MA(fast) - MA(slow)) / MA(slow)."""
    return _price_oscillator(start_idx, end_idx, in_real, fast_period, slow_period, ma_type, percent=True)


@guarded
def dx(start_idx: int, end_idx: int, high, low, close, period: int = DEFAULT_WINDOWS.adx_period) -> Result:
    """
    Directional Movement Index.

    Returns:
        Result with values = DX and extras ``plus_di``, ``minus_di``,
        starting at index ``period``
    """
    outcome = validate(start_idx, end_idx, period, high, low, close)
    if not outcome.ok:
        return outcome.failure()

    lookback = dx_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty('plus_di', 'minus_di')

    stop = end_idx + 1
    plus_di, minus_di, dx_values = directional_series(
        as_array(high)[:stop], as_array(low)[:stop], as_array(close)[:stop], period
    )
    return emit(dx_values, start_idx, end_idx, lookback, plus_di=plus_di, minus_di=minus_di)


@guarded
def adx(start_idx: int, end_idx: int, high, low, close, period: int = DEFAULT_WINDOWS.adx_period) -> Result:
    """
    Compute ADX (Average Directional Index) for trend strength.

    Three warm-ups compound here: +DM/-DM and true range are Wilder-smoothed
    (``period`` bars, starting at index 1), DX is derived from the smoothed
    values, and ADX Wilder-smooths DX (``period`` more values). The first
    ADX value is at index ``2 * period - 1``.

    Returns:
        Result with values = ADX and extras ``plus_di``, ``minus_di``
        aligned with the ADX output
    """
    outcome = validate(start_idx, end_idx, period, high, low, close)
    if not outcome.ok:
        return outcome.failure()

    lookback = adx_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty('plus_di', 'minus_di')

    stop = end_idx + 1
    plus_di, minus_di, dx_values = directional_series(
        as_array(high)[:stop], as_array(low)[:stop], as_array(close)[:stop], period
    )
    adx_values = padded(stop)
    first_dx = dx_lookback(period)
    adx_values[first_dx:] = wilder_series(dx_values[first_dx:], period)
    return emit(adx_values, start_idx, end_idx, lookback, plus_di=plus_di, minus_di=minus_di)


# ---------------------------------------------------------------------------
# Windowed
# ---------------------------------------------------------------------------

def _change(start_idx, end_idx, in_real, period, percent) -> Result:
    outcome = validate_params(start_idx, end_idx, in_real, period)
    if not outcome.ok:
        return outcome.failure()

    lookback = roc_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    x = as_array(in_real)[:end_idx + 1]
    out = padded(len(x))
    for i in range(period, len(x)):
        prev = x[i - period]
        if not percent:
            out[i] = x[i] - prev
        else:
            out[i] = 0.0 if prev == 0.0 else (x[i] / prev - 1.0) * 100.0
    return emit(out, start_idx, end_idx, lookback)


@guarded
def roc(start_idx: int, end_idx: int, in_real, period: int = DEFAULT_WINDOWS.roc_period) -> Result:
    """Rate of Change: (price / price[period bars ago] - 1) * 100."""
    return _change(start_idx, end_idx, in_real, period, percent=True)


@guarded
def mom(start_idx: int, end_idx: int, in_real, period: int = DEFAULT_WINDOWS.roc_period) -> Result:
    """Momentum: price - price[period bars ago]."""
    return _change(start_idx, end_idx, in_real, period, percent=False)


@guarded
def willr(start_idx: int, end_idx: int, high, low, close, period: int = DEFAULT_WINDOWS.willr_period) -> Result:
    """
    Williams %R: -100 * (highest high - close) / (highest high - lowest low).

    Ranges from -100 to 0; a flat window yields 0.
    """
    outcome = validate(start_idx, end_idx, period, high, low, close)
    if not outcome.ok:
        return outcome.failure()

    lookback = willr_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    stop = end_idx + 1
    c = as_array(close)[:stop]
    highest = rolling_extrema(as_array(high)[:stop], period, use_max=True)
    lowest = rolling_extrema(as_array(low)[:stop], period, use_max=False)
    out = padded(stop)
    for i in range(lookback, stop):
        spread = highest[i] - lowest[i]
        if is_zero(spread):
            out[i] = 0.0
        else:
            out[i] = min2(max2(-((highest[i] - c[i]) / spread) * 100.0, -100.0), 0.0)
    return emit(out, start_idx, end_idx, lookback)


@guarded
def cci(start_idx: int, end_idx: int, high, low, close, period: int = DEFAULT_WINDOWS.cci_period) -> Result:
    """
    Compute Commodity Channel Index (CCI).

    (typical price - SMA(typical price)) / (0.015 * mean deviation), where
    the mean deviation is the average absolute distance of the window's
    typical prices from their SMA. A zero mean deviation yields 0.
    """
    outcome = validate(start_idx, end_idx, period, high, low, close)
    if not outcome.ok:
        return outcome.failure()

    lookback = cci_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    stop = end_idx + 1
    typical = (as_array(high)[:stop] + as_array(low)[:stop] + as_array(close)[:stop]) / 3.0
    out = padded(stop)
    for i in range(lookback, stop):
        window = typical[i - period + 1:i + 1]
        average = mean(window)
        deviation = 0.0
        for tp in window:
            deviation += abs(tp - average)
        deviation /= period
        out[i] = 0.0 if is_zero(deviation) else (typical[i] - average) / (CCI_CONSTANT * deviation)
    return emit(out, start_idx, end_idx, lookback)


@guarded
def mfi(
    start_idx: int, end_idx: int, high, low, close, volume, period: int = DEFAULT_WINDOWS.mfi_period
) -> Result:
    """
    Compute Money Flow Index (MFI).

    Raw money flow (typical price * volume) counts as positive when the
    typical price rose versus the previous bar and negative when it fell;
    unchanged bars count as neither. MFI = 100 - 100 / (1 + pos / neg) over
    the last ``period`` flows, and 100 when the negative sum is zero.

    Returns:
        Result with values (0-100) starting at index ``period``
    """
    outcome = validate(start_idx, end_idx, period, high, low, close, volume)
    if not outcome.ok:
        return outcome.failure()

    lookback = mfi_lookback(period)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty()

    stop = end_idx + 1
    typical = (as_array(high)[:stop] + as_array(low)[:stop] + as_array(close)[:stop]) / 3.0
    vol = as_array(volume)[:stop]

    positive = np.zeros(stop)
    negative = np.zeros(stop)
    for i in range(1, stop):
        flow = typical[i] * vol[i]
        if typical[i] > typical[i - 1]:
            positive[i] = flow
        elif typical[i] < typical[i - 1]:
            negative[i] = flow

    out = padded(stop)
    for i in range(lookback, stop):
        pos_sum = sum_(positive[i - period + 1:i + 1])
        neg_sum = sum_(negative[i - period + 1:i + 1])
        out[i] = 100.0 if is_zero(neg_sum) else 100.0 - 100.0 / (1.0 + pos_sum / neg_sum)
    return emit(out, start_idx, end_idx, lookback)


# ---------------------------------------------------------------------------
# Stochastics (composite)
# ---------------------------------------------------------------------------

def _fast_k(end_idx: int, high, low, close, period: int) -> Result:
    """Raw %K over [0, end_idx], used as the inner engine of the stochastics."""
    stop = end_idx + 1
    k = fast_k_series(as_array(high)[:stop], as_array(low)[:stop], as_array(close)[:stop], period)
    return emit(k, 0, end_idx, period - 1)


def _ma_engine(period: int, ma_type: MAType):
    return lambda s, e, v: ma(s, e, v, period, ma_type)


def _percent_bounded(values: np.ndarray) -> np.ndarray:
    """Smoothed %K/%D lines stay within [0, 100]."""
    return np.clip(values, 0.0, 100.0)


@guarded
def stochf(
    start_idx: int,
    end_idx: int,
    high,
    low,
    close,
    fastk_period: int = DEFAULT_WINDOWS.stoch_fastk,
    fastd_period: int = DEFAULT_WINDOWS.stoch_slowd,
    fastd_ma: MAType = MAType.SMA,
) -> Result:
    """
    Fast Stochastic oscillator.

    %K = 100 * (close - lowest low) / (highest high - lowest low), 0 on a
    flat window; %D = MA(%K).

    Returns:
        Result with values = fast %K and extras ``fast_d``
    """
    outcome = validate(start_idx, end_idx, fastk_period, high, low, close)
    if not outcome.ok:
        return outcome.failure()
    bad = validate_periods(('fastd period', fastd_period, 1))
    if bad is not None:
        return bad.failure()
    if _bad_ma_type(fastd_ma):
        return _invalid_ma_type(fastd_ma)

    if output_range(start_idx, end_idx, stochf_lookback(fastk_period, fastd_period, fastd_ma))[1] == 0:
        return Result.empty('fast_d')

    fast_k = _fast_k(end_idx, high, low, close, fastk_period)
    fast_d = compose(fast_k, _ma_engine(fastd_period, fastd_ma), start_idx)
    if not fast_d.ok or fast_d.element_count == 0:
        return fast_d

    return Result(
        begin_index=fast_d.begin_index,
        element_count=fast_d.element_count,
        values=align(fast_k, fast_d.begin_index, fast_d.element_count),
        extras={'fast_d': _percent_bounded(fast_d.values)},
    )


@guarded
def stoch(
    start_idx: int,
    end_idx: int,
    high,
    low,
    close,
    fastk_period: int = DEFAULT_WINDOWS.stoch_fastk,
    slowk_period: int = DEFAULT_WINDOWS.stoch_slowk,
    slowk_ma: MAType = MAType.SMA,
    slowd_period: int = DEFAULT_WINDOWS.stoch_slowd,
    slowd_ma: MAType = MAType.SMA,
) -> Result:
    """
    Slow Stochastic oscillator.

    Slow %K is a moving average of the raw %K; slow %D is a moving average
    of slow %K. The warm-ups of the three stages add up.

    Returns:
        Result with values = slow %K and extras ``slow_d``
    """
    outcome = validate(start_idx, end_idx, fastk_period, high, low, close)
    if not outcome.ok:
        return outcome.failure()
    bad = validate_periods(('slowk period', slowk_period, 1), ('slowd period', slowd_period, 1))
    if bad is not None:
        return bad.failure()
    for ma_type in (slowk_ma, slowd_ma):
        if _bad_ma_type(ma_type):
            return _invalid_ma_type(ma_type)

    lookback = stoch_lookback(fastk_period, slowk_period, slowd_period, slowk_ma, slowd_ma)
    if output_range(start_idx, end_idx, lookback)[1] == 0:
        return Result.empty('slow_d')

    fast_k = _fast_k(end_idx, high, low, close, fastk_period)
    slow_k = compose(fast_k, _ma_engine(slowk_period, slowk_ma), 0)
    slow_d = compose(slow_k, _ma_engine(slowd_period, slowd_ma), start_idx)
    if not slow_d.ok or slow_d.element_count == 0:
        return slow_d

    return Result(
        begin_index=slow_d.begin_index,
        element_count=slow_d.element_count,
        values=_percent_bounded(align(slow_k, slow_d.begin_index, slow_d.element_count)),
        extras={'slow_d': _percent_bounded(slow_d.values)},
    )


@guarded
def stoch_rsi(
    start_idx: int,
    end_idx: int,
    in_real,
    period: int = DEFAULT_WINDOWS.stoch_rsi_period,
    fastk_period: int = DEFAULT_WINDOWS.stoch_rsi_fastk,
    fastd_period: int = DEFAULT_WINDOWS.stoch_rsi_fastd,
    fastd_ma: MAType = MAType.SMA,
) -> Result:
    """
    Compute Stochastic RSI.

    The fast stochastic is applied to the RSI series (RSI serves as high,
    low and close). RSI is validated and computed first; only its valid
    output is handed to the stochastic stage, and RSI errors are returned
    unchanged.

    Returns:
        Result with values = %K (0-100) and extras ``fast_d``
    """
    outcome = validate_params(start_idx, end_idx, in_real, period)
    if not outcome.ok:
        return outcome.failure()
    bad = validate_periods(('fastk period', fastk_period, 1), ('fastd period', fastd_period, 1))
    if bad is not None:
        return bad.failure()
    if _bad_ma_type(fastd_ma):
        return _invalid_ma_type(fastd_ma)

    if output_range(start_idx, end_idx, stoch_rsi_lookback(period, fastk_period, fastd_period, fastd_ma))[1] == 0:
        return Result.empty('fast_d')

    inner = rsi(0, end_idx, in_real, period)
    return compose(
        inner,
        lambda s, e, v: stochf(s, e, v, v, v, fastk_period, fastd_period, fastd_ma),
        start_idx,
    )
