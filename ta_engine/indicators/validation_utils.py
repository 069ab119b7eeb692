"""
Input Validation Utilities

Centralized range and parameter validation for indicator calculations.
Every indicator validates its inputs here before any numeric work runs, so
malformed input is rejected early with a return code instead of leaking
NaN or IndexError out of a recurrence.
"""

from functools import wraps
from typing import Callable, NamedTuple, Optional, Sequence, Tuple
import logging

import numpy as np

from ta_engine.shared.models.result import MAType, Result, RetCode

logger = logging.getLogger(__name__)


class DataValidationError(ValueError):
    """Raised when indicator input data fails validation checks."""


class ValidationOutcome(NamedTuple):
    """Result of validating an indicator request."""
    ret_code: RetCode
    begin_index: int
    element_count: int
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.ret_code == RetCode.SUCCESS

    def failure(self) -> Result:
        return Result.failure(self.ret_code, self.reason)


def _is_period(value) -> bool:
    """A period must be a positive integer (bools excluded)."""
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool) and value > 0


def _reject(ret_code: RetCode, reason: str) -> ValidationOutcome:
    logger.debug("Indicator input rejected: %s (%s)", reason, ret_code.name)
    return ValidationOutcome(ret_code, 0, 0, reason)


def validate(
    start_idx: int,
    end_idx: int,
    lookback: Optional[int],
    *sequences: Sequence[float],
) -> ValidationOutcome:
    """
    Validate an index range, companion sequences and a period.

    Args:
        start_idx: First requested input index
        end_idx: Last requested input index (inclusive)
        lookback: Period parameter to check, or None to skip the check
        *sequences: Input sequences; all must be non-empty and equal length

    Returns:
        ValidationOutcome with the requestable range
        (begin = start_idx, count = end_idx - start_idx + 1) on success
    """
    if not sequences or any(len(seq) == 0 for seq in sequences):
        return _reject(RetCode.INVALID_PARAMETER, "empty input data")

    length = len(sequences[0])
    if any(len(seq) != length for seq in sequences[1:]):
        return _reject(RetCode.INVALID_PARAMETER, "mismatched input lengths")

    if start_idx < 0:
        return _reject(RetCode.OUT_OF_RANGE_START_INDEX, "start index out of range")
    if end_idx < start_idx:
        return _reject(RetCode.OUT_OF_RANGE_END_INDEX, "end index before start index")
    if end_idx >= length:
        return _reject(RetCode.OUT_OF_RANGE_END_INDEX, "end index out of range")

    if lookback is not None and not _is_period(lookback):
        return _reject(RetCode.INVALID_PARAMETER, "invalid time period")

    return ValidationOutcome(RetCode.SUCCESS, start_idx, end_idx - start_idx + 1)


def validate_params(
    start_idx: int, end_idx: int, in_real: Sequence[float], period: int
) -> ValidationOutcome:
    """Validate a single-input indicator request with a time period."""
    return validate(start_idx, end_idx, period, in_real)


def validate_price(
    start_idx: int,
    end_idx: int,
    high: Sequence[float],
    low: Sequence[float],
    close: Sequence[float],
) -> ValidationOutcome:
    """Validate a high/low/close request."""
    return validate(start_idx, end_idx, None, high, low, close)


def validate_volume(
    start_idx: int, end_idx: int, price: Sequence[float], volume: Sequence[float]
) -> ValidationOutcome:
    """Validate a price/volume request."""
    return validate(start_idx, end_idx, None, price, volume)


def validate_ma_type(ma_type: int) -> RetCode:
    """Check that ``ma_type`` is a known moving average selector."""
    try:
        MAType(ma_type)
    except ValueError:
        logger.debug("Unknown moving average type: %r", ma_type)
        return RetCode.INVALID_PARAMETER
    return RetCode.SUCCESS


def validate_periods(*periods: Tuple[str, int, int]) -> Optional[ValidationOutcome]:
    """
    Check secondary period parameters against their minimums.

    Args:
        *periods: (name, value, minimum) triples

    Returns:
        A failed outcome for the first offending period, else None
    """
    for name, value, minimum in periods:
        if not isinstance(value, (int, np.integer)) or isinstance(value, bool):
            return _reject(RetCode.INVALID_PARAMETER, f"invalid {name}: {value!r} is not an integer")
        if value < minimum:
            return _reject(RetCode.INVALID_PARAMETER, f"invalid {name}: {value} < {minimum}")
    return None


def output_range(start_idx: int, end_idx: int, lookback_total: int) -> Tuple[int, int]:
    """
    Derive the produced output range from the requested one.

    The first producible index is ``lookback_total``; a request starting
    later reads its window backward into earlier input.

    Returns:
        (begin_index, element_count); element_count is 0 when the warm-up
        exceeds the requested range
    """
    begin = max(start_idx, lookback_total)
    if begin > end_idx:
        return begin, 0
    return begin, end_idx - begin + 1


def as_array(seq: Sequence[float]) -> np.ndarray:
    """View an input sequence as a float64 array without mutating it."""
    return np.asarray(seq, dtype=np.float64)


def check_result(result: Result, start_idx: int, end_idx: int) -> Optional[str]:
    """
    Verify the Result invariants of a successful call.

    Returns:
        A description of the first violated invariant, or None
    """
    if result.element_count != len(result.values):
        return f"element_count {result.element_count} != len(values) {len(result.values)}"
    for name, seq in result.extras.items():
        if len(seq) != result.element_count:
            return f"extra '{name}' has {len(seq)} values, expected {result.element_count}"
    if result.element_count > 0:
        if result.begin_index < start_idx:
            return f"begin_index {result.begin_index} < start_idx {start_idx}"
        if result.end_index > end_idx:
            return f"last index {result.end_index} > end_idx {end_idx}"
    return None


def guarded(func: Callable[..., Result]) -> Callable[..., Result]:
    """
    Wrap an indicator so resource exhaustion and broken invariants surface
    as ALLOC_ERROR / INTERNAL_ERROR Results instead of escaping.

    The wrapped function must take ``start_idx, end_idx`` as its first two
    positional arguments.
    """
    @wraps(func)
    def wrapper(start_idx: int, end_idx: int, *args, **kwargs) -> Result:
        try:
            result = func(start_idx, end_idx, *args, **kwargs)
        except MemoryError:
            logger.error("%s: allocation failed for range [%s, %s]", func.__name__, start_idx, end_idx)
            return Result.failure(RetCode.ALLOC_ERROR, "memory allocation failed")

        if result.ok:
            problem = check_result(result, start_idx, end_idx)
            if problem is not None:
                logger.error("%s: result invariant violated: %s", func.__name__, problem)
                return Result.failure(RetCode.INTERNAL_ERROR, problem)
        return result

    return wrapper
