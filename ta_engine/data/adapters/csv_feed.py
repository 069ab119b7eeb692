"""
CSV file data feed.

Expected layout: a header row starting with ``time`` followed by at least
``open,high,low,close,volume``; ``time`` is Unix seconds.
"""

from pathlib import Path
from typing import List, Union

import numpy as np
import pandas as pd
from loguru import logger

from ta_engine.data.adapters.base import TimeBound, to_epoch_seconds
from ta_engine.shared.models.data import OHLCV, OHLCV_COLUMNS, frame_to_candles


class CSVFeed:
    """Reads OHLCV candles from a CSV file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def get_data(self, start_time: TimeBound = None, end_time: TimeBound = None) -> List[OHLCV]:
        """
        Load candles, optionally limited to ``[start_time, end_time]``.

        Rows whose time does not parse are skipped; unparsable prices read
        as 0. Rows that break the OHLC relationships are dropped with a
        warning.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the header is malformed or no rows remain
        """
        df = pd.read_csv(self.path, dtype=str)

        header = list(df.columns)
        if len(header) < len(OHLCV_COLUMNS) or header[0] != 'time':
            raise ValueError("invalid CSV format: expected time,open,high,low,close,volume")

        df = df.iloc[:, :len(OHLCV_COLUMNS)].copy()
        df.columns = list(OHLCV_COLUMNS)

        df['time'] = pd.to_numeric(df['time'], errors='coerce')
        skipped = int(df['time'].isna().sum())
        if skipped:
            logger.debug(f"Skipping {skipped} rows with unparsable time in {self.path}")
        df = df.dropna(subset=['time']).copy()
        df['time'] = df['time'].astype(np.int64)

        for col in OHLCV_COLUMNS[1:]:
            df[col] = pd.to_numeric(df[col], errors='coerce').fillna(0.0).astype(float)

        start = to_epoch_seconds(start_time)
        end = to_epoch_seconds(end_time)
        if start is not None:
            df = df[df['time'] >= start]
        if end is not None:
            df = df[df['time'] <= end]

        invalid_rows = (
            (df['high'] < df['low'])
            | (df['high'] < df[['open', 'close']].max(axis=1))
            | (df['low'] > df[['open', 'close']].min(axis=1))
        )
        if invalid_rows.any():
            logger.warning(f"Found {int(invalid_rows.sum())} invalid OHLCV rows in {self.path}")
            df = df[~invalid_rows]

        if df.empty:
            raise ValueError(f"no data found in CSV file {self.path}")

        logger.info(f"Loaded {len(df)} candles from {self.path}")
        return frame_to_candles(df)
