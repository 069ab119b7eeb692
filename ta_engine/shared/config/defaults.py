"""
Default configuration for the indicator engine, service and feeds.
"""
from dataclasses import dataclass
from typing import Tuple


# Tolerance for floating point comparisons
EPSILON = 0.000000001

# Scaling constant of the Commodity Channel Index
CCI_CONSTANT = 0.015


@dataclass
class WindowSizes:
    """Indicator calculation window sizes."""
    # Moving averages
    sma_period: int = 20
    ema_period: int = 20
    wma_period: int = 20

    # MACD / APO
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    apo_fast: int = 12
    apo_slow: int = 26

    # RSI/Momentum
    rsi_period: int = 14
    roc_period: int = 10
    cci_period: int = 14
    willr_period: int = 14
    mfi_period: int = 14
    adx_period: int = 14

    # Stochastics
    stoch_fastk: int = 5
    stoch_slowk: int = 3
    stoch_slowd: int = 3
    stoch_rsi_period: int = 14
    stoch_rsi_fastk: int = 14
    stoch_rsi_fastd: int = 3

    # Volatility
    atr_period: int = 14
    bb_period: int = 20
    bb_std: float = 2.0
    channel_period: int = 20


@dataclass
class ServiceConfig:
    """Indicator service settings."""
    min_candles: int = 50
    groups: Tuple[str, ...] = ('trend', 'momentum', 'volatility', 'volume')
    log_timings: bool = True


@dataclass
class FeedConfig:
    """Data feed settings."""
    max_retries: int = 3
    backoff: float = 1.0
    jitter_pct: float = 0.25  # 25% random jitter
    binance_limit: int = 1000
    default_interval: str = '1d'


# Default instances
DEFAULT_WINDOWS = WindowSizes()
DEFAULT_SERVICE_CONFIG = ServiceConfig()
DEFAULT_FEED_CONFIG = FeedConfig()
