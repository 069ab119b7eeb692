"""
Yahoo Finance data feed for fetching OHLCV candles through yfinance.

Symbols use Yahoo notation (e.g. 'AAPL', 'BTC-USD', 'RELIANCE.NS').
Intervals are given in standard notation and converted with
``convert_interval`` ('1w' -> '1wk', '1M' -> '1mo').
"""

from datetime import datetime, timezone
from typing import List, Optional

import pandas as pd
import yfinance as yf
from loguru import logger

from ta_engine.data.adapters.base import TimeBound, convert_interval, to_epoch_seconds
from ta_engine.shared.config.defaults import DEFAULT_FEED_CONFIG
from ta_engine.shared.models.data import OHLCV, OHLCV_COLUMNS, frame_to_candles

_EPOCH = pd.Timestamp(0, tz='UTC')


def history_to_frame(hist: pd.DataFrame) -> pd.DataFrame:
    """
    Normalise a yfinance history frame to time (seconds), open, high, low,
    close, volume columns.

    Rows with a missing price are dropped; missing volume counts as 0.
    """
    if hist is None or hist.empty:
        return pd.DataFrame(columns=list(OHLCV_COLUMNS))

    # Reset index to get 'Date' or 'Datetime' as column
    df = hist.reset_index()

    # Flatten MultiIndex columns if present (yfinance behavior)
    if isinstance(df.columns, pd.MultiIndex):
        df.columns = df.columns.get_level_values(0)

    ts_col = 'Date' if 'Date' in df.columns else 'Datetime'
    if ts_col not in df.columns:
        ts_col = df.columns[0]

    df = df.rename(columns={
        ts_col: 'time',
        'Open': 'open',
        'High': 'high',
        'Low': 'low',
        'Close': 'close',
        'Volume': 'volume'
    })

    stamps = pd.to_datetime(df['time'], utc=True)
    df['time'] = ((stamps - _EPOCH) // pd.Timedelta(seconds=1)).astype('int64')
    df = df[list(OHLCV_COLUMNS)].copy()

    df = df.dropna(subset=['open', 'high', 'low', 'close']).copy()
    df['volume'] = df['volume'].fillna(0.0)
    for col in OHLCV_COLUMNS[1:]:
        df[col] = df[col].astype(float)
    return df


class YahooFeed:
    """
    Feed for Yahoo Finance candles using the yfinance library.

    Prices are the unadjusted quotes; candle times are Unix seconds.
    """

    def __init__(
        self,
        symbol: str,
        interval: str = DEFAULT_FEED_CONFIG.default_interval,
        ticker: Optional[yf.Ticker] = None,
    ):
        """
        Initialize the feed.

        Args:
            symbol: Yahoo ticker symbol (e.g., 'AAPL', 'BTC-USD')
            interval: Candle interval in standard notation (e.g., '1h', '1d', '1w')
            ticker: Pre-built yfinance Ticker (defaults to yf.Ticker(symbol))
        """
        self.symbol = symbol
        self.interval = interval
        self.ticker = ticker or yf.Ticker(symbol)

    def fetch_history(self, start: Optional[int] = None, end: Optional[int] = None) -> pd.DataFrame:
        """
        Fetch raw history for ``[start, end]`` (Unix seconds).

        Without a start bound the full available history is requested.
        """
        yahoo_interval = convert_interval(self.interval)
        kwargs = {'interval': yahoo_interval, 'auto_adjust': False}
        if start is None:
            kwargs['period'] = 'max'
        else:
            kwargs['start'] = datetime.fromtimestamp(start, tz=timezone.utc)
            if end is not None:
                # yfinance treats the end bound as exclusive
                kwargs['end'] = datetime.fromtimestamp(end + 1, tz=timezone.utc)

        logger.debug(f"Fetching {yahoo_interval} history for {self.symbol} from Yahoo Finance")
        df = history_to_frame(self.ticker.history(**kwargs))

        invalid_rows = (
            (df['high'] < df['low'])
            | (df['high'] < df[['open', 'close']].max(axis=1))
            | (df['low'] > df[['open', 'close']].min(axis=1))
        )
        if invalid_rows.any():
            logger.warning(f"Found {int(invalid_rows.sum())} invalid OHLCV rows for {self.symbol}")
            df = df[~invalid_rows]
        return df

    def get_data(self, start_time: TimeBound = None, end_time: TimeBound = None) -> List[OHLCV]:
        """
        Fetch candles for ``[start_time, end_time]``.

        Raises:
            ValueError: If Yahoo returns no candles in the range
        """
        start = to_epoch_seconds(start_time)
        end = to_epoch_seconds(end_time)

        df = self.fetch_history(start, end)
        if start is not None:
            df = df[df['time'] >= start]
        if end is not None:
            df = df[df['time'] <= end]

        if df.empty:
            raise ValueError(f"no data available for {self.symbol}")

        logger.info(f"Fetched {len(df)} candles for {self.symbol} {self.interval} from Yahoo Finance")
        return frame_to_candles(df)
