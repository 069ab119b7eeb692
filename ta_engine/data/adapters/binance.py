"""
Binance data feed for fetching OHLCV candles through ccxt.
Implements retry logic and rate limit handling.
"""

from typing import List, Optional

import ccxt
import pandas as pd
from loguru import logger

from ta_engine.data.adapters.base import TimeBound, to_epoch_seconds
from ta_engine.data.adapters.retry import retry_on_rate_limit
from ta_engine.shared.config.defaults import DEFAULT_FEED_CONFIG, FeedConfig
from ta_engine.shared.models.data import OHLCV, OHLCV_COLUMNS, frame_to_candles


class BinanceFeed:
    """
    Feed for Binance spot candles using the ccxt library.

    Candle open times arrive in milliseconds and are converted to Unix
    seconds.
    """

    def __init__(
        self,
        symbol: str,
        interval: str = DEFAULT_FEED_CONFIG.default_interval,
        exchange: Optional[ccxt.Exchange] = None,
        config: Optional[FeedConfig] = None,
    ):
        """
        Initialize the feed.

        Args:
            symbol: Trading pair symbol (e.g., 'BTC/USDT')
            interval: Candle interval (e.g., '1h', '1d')
            exchange: Pre-built ccxt exchange (defaults to ccxt.binance)
            config: Feed settings (candle limit)
        """
        self.symbol = symbol
        self.interval = interval
        self.config = config or DEFAULT_FEED_CONFIG
        self.exchange = exchange or ccxt.binance({'enableRateLimit': True})

    @retry_on_rate_limit()
    def fetch_ohlcv(self, since_ms: Optional[int] = None, until_ms: Optional[int] = None) -> pd.DataFrame:
        """
        Fetch one page of raw candles.

        Returns:
            DataFrame with columns time (seconds), open, high, low, close, volume

        Raises:
            ccxt.ExchangeError: If the exchange returns an error
        """
        params = {'endTime': until_ms} if until_ms is not None else {}
        logger.debug(f"Fetching up to {self.config.binance_limit} {self.interval} candles for {self.symbol}")

        try:
            ohlcv = self.exchange.fetch_ohlcv(
                self.symbol,
                timeframe=self.interval,
                since=since_ms,
                limit=self.config.binance_limit,
                params=params,
            )
        except ccxt.ExchangeError as e:
            logger.error(f"Exchange error fetching {self.symbol} {self.interval}: {e}")
            raise

        if not ohlcv:
            logger.warning(f"No data returned for {self.symbol} {self.interval}")
            return pd.DataFrame(columns=list(OHLCV_COLUMNS))

        df = pd.DataFrame([row[:6] for row in ohlcv], columns=list(OHLCV_COLUMNS))

        # Convert open time from milliseconds to seconds
        df['time'] = (df['time'].astype('int64') // 1000).astype('int64')
        for col in OHLCV_COLUMNS[1:]:
            df[col] = df[col].astype(float)

        # Validate OHLCV relationships
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
        Fetch candles for ``[start_time, end_time]`` (one page of at most
        ``FeedConfig.binance_limit`` candles).
        """
        start = to_epoch_seconds(start_time)
        end = to_epoch_seconds(end_time)

        df = self.fetch_ohlcv(
            since_ms=start * 1000 if start is not None else None,
            until_ms=end * 1000 if end is not None else None,
        )
        if end is not None and not df.empty:
            df = df[df['time'] <= end]

        logger.info(f"Fetched {len(df)} candles for {self.symbol} {self.interval}")
        return frame_to_candles(df)
