"""
Array kernels shared by the indicator engines.

Each kernel takes a contiguous input array (index 0 = oldest point) and
returns an array of the same length holding NaN in the warm-up slots and
the recurrence output afterwards. The NaN padding never leaves the engine:
``emit`` slices the produced range out before building a Result.

All recurrences are explicit loops carrying their accumulator forward, so
stack depth is constant and the value at index i depends only on inputs
0..i.
"""

from collections import deque

import numpy as np

from ta_engine.indicators.validation_utils import output_range
from ta_engine.shared.models.result import Result


def padded(n: int) -> np.ndarray:
    return np.full(n, np.nan, dtype=np.float64)


def rolling_sum(x: np.ndarray, period: int) -> np.ndarray:
    """Trailing-window sum, incremental add/subtract."""
    n = len(x)
    out = padded(n)
    if n < period:
        return out

    total = 0.0
    for i in range(period):
        total += x[i]
    out[period - 1] = total

    for i in range(period, n):
        total += x[i] - x[i - period]
        out[i] = total
    return out


def sma_series(x: np.ndarray, period: int) -> np.ndarray:
    return rolling_sum(x, period) / period


def wma_series(x: np.ndarray, period: int) -> np.ndarray:
    """Linearly weighted moving average, newest point weighted ``period``."""
    n = len(x)
    out = padded(n)
    if n < period:
        return out

    divider = period * (period + 1) / 2.0
    weighted = 0.0
    plain = 0.0
    for i in range(period):
        weighted += x[i] * (i + 1)
        plain += x[i]
    out[period - 1] = weighted / divider

    # Shifting the window drops one unit of weight from every point
    for i in range(period, n):
        weighted += x[i] * period - plain
        plain += x[i] - x[i - period]
        out[i] = weighted / divider
    return out


def ema_series(x: np.ndarray, period: int, k: float = None) -> np.ndarray:
    """
    Exponential moving average seeded with the mean of the first ``period``
    points: ema[i] = x[i]*k + ema[i-1]*(1-k), k = 2/(period+1).
    """
    n = len(x)
    out = padded(n)
    if n < period:
        return out
    if k is None:
        k = 2.0 / (period + 1)

    seed = 0.0
    for i in range(period):
        seed += x[i]
    prev = seed / period
    out[period - 1] = prev

    for i in range(period, n):
        prev = x[i] * k + prev * (1.0 - k)
        out[i] = prev
    return out


def wilder_series(x: np.ndarray, period: int) -> np.ndarray:
    """
    Wilder smoothing seeded with the mean of the first ``period`` points:
    avg[i] = (avg[i-1]*(period-1) + x[i]) / period.
    """
    n = len(x)
    out = padded(n)
    if n < period:
        return out

    seed = 0.0
    for i in range(period):
        seed += x[i]
    prev = seed / period
    out[period - 1] = prev

    for i in range(period, n):
        prev = (prev * (period - 1) + x[i]) / period
        out[i] = prev
    return out


def rolling_extrema(x: np.ndarray, period: int, use_max: bool) -> np.ndarray:
    """Trailing-window max (or min) using a monotonic deque of indices."""
    n = len(x)
    out = padded(n)
    window = deque()

    for i in range(n):
        v = x[i]
        if use_max:
            while window and x[window[-1]] <= v:
                window.pop()
        else:
            while window and x[window[-1]] >= v:
                window.pop()
        window.append(i)
        if window[0] <= i - period:
            window.popleft()
        if i >= period - 1:
            out[i] = x[window[0]]
    return out


def true_range(high: np.ndarray, low: np.ndarray, close: np.ndarray) -> np.ndarray:
    """max(high-low, |high-prevClose|, |low-prevClose|), undefined at index 0."""
    n = len(high)
    out = padded(n)
    for i in range(1, n):
        prev_close = close[i - 1]
        tr = high[i] - low[i]
        up = abs(high[i] - prev_close)
        down = abs(low[i] - prev_close)
        if up > tr:
            tr = up
        if down > tr:
            tr = down
        out[i] = tr
    return out


def emit(series: np.ndarray, start_idx: int, end_idx: int, lookback: int, **extras: np.ndarray) -> Result:
    """
    Build a Result from full-length kernel output.

    Args:
        series: Primary output indexed like the input
        start_idx: Requested first index
        end_idx: Requested last index
        lookback: Index of the first valid value in ``series``
        **extras: Secondary outputs indexed like the input
    """
    begin, count = output_range(start_idx, end_idx, lookback)
    if count == 0:
        return Result.empty(*extras)
    stop = begin + count
    return Result(
        begin_index=begin,
        element_count=count,
        values=series[begin:stop].copy(),
        extras={name: seq[begin:stop].copy() for name, seq in extras.items()},
    )
