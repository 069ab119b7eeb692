"""
Indicator result data models.

Every indicator in the engine returns the same ``Result`` record, so callers
can treat all indicators alike regardless of the recurrence behind them.

Index contract:
    values[j] is the indicator value at input index ``begin_index + j``.
    Extra sequences (signal line, bands, +DI/-DI ...) share the same
    ``begin_index`` and ``element_count`` as ``values``.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Optional

import numpy as np


class RetCode(IntEnum):
    """Return code of an indicator call."""
    SUCCESS = 0
    INVALID_PARAMETER = 1
    OUT_OF_RANGE_START_INDEX = 2
    OUT_OF_RANGE_END_INDEX = 3
    ALLOC_ERROR = 4
    INTERNAL_ERROR = 5


class MAType(IntEnum):
    """Moving average selector used by MA-parameterised indicators."""
    SMA = 0     # Simple
    EMA = 1     # Exponential
    WMA = 2     # Weighted
    DEMA = 3    # Double exponential
    TEMA = 4    # Triple exponential
    TRIMA = 5   # Triangular
    KAMA = 6    # Kaufman adaptive
    MAMA = 7    # MESA adaptive (not computed by ma())


def _empty() -> np.ndarray:
    return np.empty(0, dtype=np.float64)


@dataclass(eq=False)
class Result:
    """
    Output of a single indicator call.

    Attributes:
        ret_code: SUCCESS or the error that stopped the call
        begin_index: Input index of the first output value
        element_count: Number of output values
        values: Primary output sequence
        extras: Named secondary sequences aligned with ``values``
        reason: Short human-readable description of a failure
    """
    ret_code: RetCode = RetCode.SUCCESS
    begin_index: int = 0
    element_count: int = 0
    values: np.ndarray = field(default_factory=_empty)
    extras: Dict[str, np.ndarray] = field(default_factory=dict)
    reason: Optional[str] = None

    @classmethod
    def failure(cls, ret_code: RetCode, reason: Optional[str] = None) -> "Result":
        """Build the empty Result returned on any error."""
        return cls(ret_code=ret_code, reason=reason)

    @classmethod
    def empty(cls, *extra_names: str) -> "Result":
        """Successful call whose produced range is empty (warm-up exceeds data)."""
        return cls(extras={name: _empty() for name in extra_names})

    @property
    def ok(self) -> bool:
        return self.ret_code == RetCode.SUCCESS

    @property
    def end_index(self) -> int:
        """Input index of the last output value (begin_index - 1 when empty)."""
        return self.begin_index + self.element_count - 1

    def __getitem__(self, name: str) -> np.ndarray:
        if name == "values":
            return self.values
        return self.extras[name]

    def __len__(self) -> int:
        return self.element_count

    def value_at(self, index: int, name: str = "values") -> float:
        """Value of a sequence at an absolute input index."""
        offset = index - self.begin_index
        if offset < 0 or offset >= self.element_count:
            raise IndexError(
                f"Index {index} outside produced range "
                f"[{self.begin_index}, {self.end_index}]"
            )
        return float(self[name][offset])

    def clipped(self, start_idx: int) -> "Result":
        """Copy of this Result with outputs before ``start_idx`` dropped."""
        if not self.ok or self.begin_index >= start_idx:
            return self
        drop = start_idx - self.begin_index
        if drop >= self.element_count:
            return Result.empty(*self.extras)
        return Result(
            begin_index=start_idx,
            element_count=self.element_count - drop,
            values=self.values[drop:].copy(),
            extras={name: seq[drop:].copy() for name, seq in self.extras.items()},
        )

    def shifted(self, offset: int) -> "Result":
        """Copy of this Result with indices moved by ``offset`` (composite mapping)."""
        if not self.ok or self.element_count == 0:
            return self
        return Result(
            begin_index=self.begin_index + offset,
            element_count=self.element_count,
            values=self.values,
            extras=dict(self.extras),
        )

    def to_dict(self) -> Dict[str, object]:
        """Plain-Python view, e.g. for JSON output."""
        out: Dict[str, object] = {
            "ret_code": self.ret_code.name,
            "begin_index": self.begin_index,
            "element_count": self.element_count,
            "values": self.values.tolist(),
        }
        for name, seq in self.extras.items():
            out[name] = seq.tolist()
        if self.reason:
            out["reason"] = self.reason
        return out
