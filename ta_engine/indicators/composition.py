"""
Composite wiring: feed one engine's valid output into another engine.

The inner engine always runs over ``[0, end_idx]`` so that its output does
not depend on the caller's start index. Its valid output sequence becomes
the outer engine's input; the outer engine validates and runs over the
whole of it, and the outer Result is then mapped back to input indices and
clipped to ``start_idx``. Results are passed by value; no buffer is shared
between the two calls.
"""

from typing import Callable

import numpy as np

from ta_engine.shared.models.result import Result

Engine = Callable[[int, int, np.ndarray], Result]


def compose(inner: Result, outer: Engine, start_idx: int, source: str = "values") -> Result:
    """
    Apply ``outer`` to the ``source`` sequence of ``inner``.

    Errors of either engine are returned unchanged.
    """
    if not inner.ok:
        return inner
    if inner.element_count == 0:
        return Result.empty()

    result = outer(0, inner.element_count - 1, inner[source])
    if not result.ok:
        return result
    return result.shifted(inner.begin_index).clipped(start_idx)


def align(result: Result, begin_index: int, element_count: int, source: str = "values") -> np.ndarray:
    """Slice a sequence of ``result`` to the given absolute range."""
    offset = begin_index - result.begin_index
    return result[source][offset:offset + element_count].copy()
