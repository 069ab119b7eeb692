"""
Error policy enforcement - Zero Silent Failures principle.

Indicator engines report failures through ``Result.ret_code``. Callers that
prefer exceptions (the DataFrame service, the CLI) convert a failed or
malformed Result into one of the exceptions below.
"""

from typing import Optional

from ta_engine.indicators.validation_utils import DataValidationError, check_result
from ta_engine.shared.models.result import Result, RetCode


class IndicatorError(Exception):
    """Raised when an indicator call did not succeed."""

    ret_code = RetCode.INTERNAL_ERROR

    def __init__(self, message: str, ret_code: Optional[RetCode] = None):
        super().__init__(message)
        if ret_code is not None:
            self.ret_code = ret_code


class InvalidParameterError(IndicatorError, DataValidationError):
    """Empty input, mismatched lengths, bad period or MA type."""
    ret_code = RetCode.INVALID_PARAMETER


class EmptyInputError(InvalidParameterError):
    """An input sequence was empty."""


class MismatchedInputLengthsError(InvalidParameterError):
    """Companion input sequences differ in length."""


class OutOfRangeStartIndexError(IndicatorError, DataValidationError):
    """Start index is negative."""
    ret_code = RetCode.OUT_OF_RANGE_START_INDEX


class OutOfRangeEndIndexError(IndicatorError, DataValidationError):
    """End index is before the start index or past the input."""
    ret_code = RetCode.OUT_OF_RANGE_END_INDEX


class AllocError(IndicatorError):
    """Resource exhaustion during computation."""
    ret_code = RetCode.ALLOC_ERROR


class InternalError(IndicatorError):
    """An engine produced output that breaks the Result invariants."""
    ret_code = RetCode.INTERNAL_ERROR


_BY_CODE = {
    RetCode.INVALID_PARAMETER: InvalidParameterError,
    RetCode.OUT_OF_RANGE_START_INDEX: OutOfRangeStartIndexError,
    RetCode.OUT_OF_RANGE_END_INDEX: OutOfRangeEndIndexError,
    RetCode.ALLOC_ERROR: AllocError,
    RetCode.INTERNAL_ERROR: InternalError,
}

_BY_REASON = {
    "empty input data": EmptyInputError,
    "mismatched input lengths": MismatchedInputLengthsError,
}


def error_for(result: Result, name: str = "indicator") -> IndicatorError:
    """Build the exception matching a failed Result."""
    exc_class = _BY_REASON.get(result.reason or "", _BY_CODE.get(result.ret_code, IndicatorError))
    reason = result.reason or result.ret_code.name
    return exc_class(f"{name} failed: {reason}", result.ret_code)


def enforce_success(result: Result, name: str = "indicator") -> Result:
    """
    Ensure an indicator call succeeded.

    Returns:
        The same Result, for chaining

    Raises:
        IndicatorError: Subclass matching the Result's return code
    """
    if not result.ok:
        raise error_for(result, name)
    return result


def enforce_complete_result(result: Result, start_idx: int, end_idx: int, name: str = "indicator") -> Result:
    """
    Ensure a Result succeeded and satisfies the range invariants.

    Raises:
        IndicatorError: If the call failed
        InternalError: If the output is inconsistent with the request
    """
    enforce_success(result, name)
    problem = check_result(result, start_idx, end_idx)
    if problem is not None:
        raise InternalError(f"{name} produced an inconsistent result: {problem}")
    return result
