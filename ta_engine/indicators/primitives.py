"""
Numeric primitives shared by every indicator.

Plain sequential loops are used for sums so that seeds computed here match
the incremental accumulators in the engines bit for bit.
"""

import math
from typing import Sequence

from ta_engine.shared.config.defaults import EPSILON


def abs_(x: float) -> float:
    return math.fabs(x)


def round_pos(x: float) -> float:
    """Round a positive number to the nearest integer (half up)."""
    return math.floor(x + 0.5)


def round_neg(x: float) -> float:
    """Round a negative number to the nearest integer (half away from zero)."""
    return math.ceil(x - 0.5)


def round_pos2(x: float) -> float:
    """Round a positive number to 2 decimal places."""
    return math.floor(x * 100.0 + 0.5) / 100.0


def round_neg2(x: float) -> float:
    """Round a negative number to 2 decimal places."""
    return math.ceil(x * 100.0 - 0.5) / 100.0


def is_zero(x: float) -> bool:
    """True if ``x`` is within EPSILON of zero."""
    return math.fabs(x) < EPSILON


def are_equal(a: float, b: float) -> bool:
    """True if ``a`` and ``b`` differ by less than EPSILON."""
    return math.fabs(a - b) < EPSILON


def max2(a: float, b: float) -> float:
    return a if a > b else b


def min2(a: float, b: float) -> float:
    return a if a < b else b


def max_in(values: Sequence[float]) -> float:
    """Largest value of a sequence, NaN when empty."""
    if len(values) == 0:
        return math.nan
    highest = values[0]
    for v in values[1:]:
        if v > highest:
            highest = v
    return float(highest)


def min_in(values: Sequence[float]) -> float:
    """Smallest value of a sequence, NaN when empty."""
    if len(values) == 0:
        return math.nan
    lowest = values[0]
    for v in values[1:]:
        if v < lowest:
            lowest = v
    return float(lowest)


def sum_(values: Sequence[float]) -> float:
    total = 0.0
    for v in values:
        total += v
    return total


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, NaN when empty."""
    if len(values) == 0:
        return math.nan
    return sum_(values) / len(values)


def variance(values: Sequence[float], mean_value: float) -> float:
    """Population variance around ``mean_value``, NaN when empty."""
    if len(values) == 0:
        return math.nan
    total = 0.0
    for v in values:
        diff = v - mean_value
        total += diff * diff
    return total / len(values)


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation, NaN when empty."""
    if len(values) == 0:
        return math.nan
    return math.sqrt(variance(values, mean(values)))
