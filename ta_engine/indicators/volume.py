"""
Volume Indicators Module

Implements cumulative volume indicators:
- OBV (On-Balance Volume)
"""

import logging

import numpy as np

from ta_engine.indicators.validation_utils import as_array, guarded, validate_volume
from ta_engine.shared.models.result import Result

logger = logging.getLogger(__name__)


def obv_lookback() -> int:
    return 0


@guarded
def obv(start_idx: int, end_idx: int, close, volume) -> Result:
    """
    Compute On-Balance Volume (OBV).

    The first output equals ``volume[start_idx]``. Each later bar adds its
    volume when the close rose, subtracts it when the close fell, and
    leaves OBV unchanged when the close did not move. There is no warm-up,
    so output begins at ``start_idx``.

    Args:
        start_idx: First requested index (also the seed bar)
        end_idx: Last requested index
        close: Close prices
        volume: Volumes aligned with ``close``

    Returns:
        Result with one value per requested bar
    """
    outcome = validate_volume(start_idx, end_idx, close, volume)
    if not outcome.ok:
        return outcome.failure()

    c = as_array(close)
    vol = as_array(volume)
    count = outcome.element_count
    out = np.empty(count, dtype=np.float64)

    running = vol[start_idx]
    out[0] = running
    prev_close = c[start_idx]
    for j in range(1, count):
        i = start_idx + j
        if c[i] > prev_close:
            running += vol[i]
        elif c[i] < prev_close:
            running -= vol[i]
        out[j] = running
        prev_close = c[i]

    return Result(begin_index=start_idx, element_count=count, values=out)
