"""
Data models for OHLCV candles and their conversion into engine inputs.

The engine only consumes parallel per-field arrays. Feeds produce lists of
OHLCV records; the helpers here convert records (or a candle DataFrame)
into the ``(open, high, low, close, volume)`` array form.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd


OHLCV_COLUMNS = ('time', 'open', 'high', 'low', 'close', 'volume')

Slices = Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]


@dataclass(frozen=True)
class OHLCV:
    """
    Single OHLCV (Open, High, Low, Close, Volume) candlestick data point.

    Attributes:
        timestamp: Candle open time in Unix seconds
        open: Opening price
        high: Highest price during period
        low: Lowest price during period
        close: Closing price
        volume: Trading volume
    """
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    def __post_init__(self):
        """Validate OHLCV relationships."""
        if self.high < self.low:
            raise ValueError(f"High ({self.high}) cannot be less than Low ({self.low})")
        if self.high < self.close or self.high < self.open:
            raise ValueError(f"High ({self.high}) must be >= Open ({self.open}) and Close ({self.close})")
        if self.low > self.close or self.low > self.open:
            raise ValueError(f"Low ({self.low}) must be <= Open ({self.open}) and Close ({self.close})")


def get_ohlcv_slices(data: Sequence[OHLCV]) -> Slices:
    """
    Convert OHLCV records into separate field arrays.

    Returns:
        (open, high, low, close, volume) as float64 arrays of equal length
    """
    n = len(data)
    open_ = np.empty(n, dtype=np.float64)
    high = np.empty(n, dtype=np.float64)
    low = np.empty(n, dtype=np.float64)
    close = np.empty(n, dtype=np.float64)
    volume = np.empty(n, dtype=np.float64)

    for i, candle in enumerate(data):
        open_[i] = candle.open
        high[i] = candle.high
        low[i] = candle.low
        close[i] = candle.close
        volume[i] = candle.volume

    return open_, high, low, close, volume


def candles_to_frame(data: Sequence[OHLCV]) -> pd.DataFrame:
    """Convert OHLCV records to a DataFrame with the standard candle columns."""
    return pd.DataFrame(
        [(c.timestamp, c.open, c.high, c.low, c.close, c.volume) for c in data],
        columns=list(OHLCV_COLUMNS),
    )


def frame_to_slices(df: pd.DataFrame) -> Slices:
    """
    Convert a candle DataFrame into field arrays.

    Raises:
        ValueError: If a price/volume column is missing
    """
    required = OHLCV_COLUMNS[1:]
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(f"DataFrame missing required columns: {missing}")

    return tuple(df[col].to_numpy(dtype=np.float64, copy=True) for col in required)  # type: ignore[return-value]


def frame_to_candles(df: pd.DataFrame) -> List[OHLCV]:
    """Convert a candle DataFrame into OHLCV records."""
    return [
        OHLCV(
            timestamp=int(row.time),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in df.itertuples(index=False)
    ]
