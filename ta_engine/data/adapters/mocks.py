"""
Mock data generators for deterministic testing.
Creates synthetic OHLCV data with different market regimes.
"""

from datetime import datetime, timezone
from typing import List, Optional

import numpy as np

from ta_engine.data.adapters.base import TimeBound, to_epoch_seconds
from ta_engine.shared.models.data import OHLCV

# 2024-01-01 00:00 UTC
_START_TIME = int(datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp())
_BAR_SECONDS = 3600

_REGIMES = {
    # regime: (drift per bar, volatility, wick scale, volume range)
    'trending': (0.001, 0.02, 0.3, (100.0, 1000.0)),
    'volatile': (0.0, 0.05, 0.6, (500.0, 2000.0)),
}


def _candle(timestamp: int, open_price: float, close_price: float, wick: float,
            volume: float, rng: np.random.Generator) -> OHLCV:
    high_price = max(open_price, close_price) * (1 + abs(rng.normal(0, wick)))
    low_price = min(open_price, close_price) * (1 - abs(rng.normal(0, wick)))
    return OHLCV(
        timestamp=timestamp,
        open=round(open_price, 2),
        high=round(high_price, 2),
        low=round(low_price, 2),
        close=round(close_price, 2),
        volume=round(volume, 2),
    )


def generate_mock_ohlcv(regime: str, bars: int = 100, seed: int = 42) -> List[OHLCV]:
    """
    Generate mock OHLCV data based on market regime.

    Args:
        regime: Market regime - 'trending', 'ranging', or 'volatile'
        bars: Number of hourly bars to generate
        seed: Random seed for reproducibility

    Returns:
        List of OHLCV instances
    """
    if regime == "ranging":
        return generate_ranging_data(bars, seed)
    if regime not in _REGIMES:
        raise ValueError(f"Unknown regime: {regime}. Use 'trending', 'ranging', or 'volatile'")

    rng = np.random.default_rng(seed)
    drift, volatility, wick_scale, (vol_lo, vol_hi) = _REGIMES[regime]

    candles = []
    current_price = 40000.0
    for i in range(bars):
        current_price += (drift + rng.normal(0, volatility)) * current_price

        open_price = current_price
        close_price = current_price * (1 + rng.normal(drift, volatility * 0.5))
        candles.append(_candle(
            _START_TIME + i * _BAR_SECONDS, open_price, close_price,
            volatility * wick_scale, rng.uniform(vol_lo, vol_hi), rng,
        ))
        current_price = close_price

    return candles


def generate_ranging_data(bars: int = 100, seed: int = 42) -> List[OHLCV]:
    """
    Generate ranging/sideways OHLCV data oscillating around a mean.
    """
    rng = np.random.default_rng(seed)

    mean_price = 40000.0
    range_width = 0.05  # 5% range around mean
    volatility = 0.015

    candles = []
    for i in range(bars):
        # Sine wave plus noise
        current_price = mean_price * (1 + np.sin(i * 0.2) * range_width + rng.normal(0, volatility))
        close_price = current_price * (1 + rng.normal(0, volatility * 0.5))
        candles.append(_candle(
            _START_TIME + i * _BAR_SECONDS, current_price, close_price,
            volatility * 0.4, rng.uniform(50.0, 500.0), rng,
        ))

    return candles


class MockFeed:
    """Deterministic synthetic feed; same arguments give the same candles."""

    def __init__(self, regime: str = "trending", bars: int = 100, seed: int = 42):
        self.regime = regime
        self.bars = bars
        self.seed = seed

    def get_data(self, start_time: TimeBound = None, end_time: TimeBound = None) -> List[OHLCV]:
        candles = generate_mock_ohlcv(self.regime, self.bars, self.seed)
        start: Optional[int] = to_epoch_seconds(start_time)
        end: Optional[int] = to_epoch_seconds(end_time)
        return [
            c for c in candles
            if (start is None or c.timestamp >= start) and (end is None or c.timestamp <= end)
        ]
