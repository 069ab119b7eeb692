"""
Technical Indicators Package

Provides:
- Moving averages (SMA, EMA, WMA, DEMA, TEMA, TRIMA, KAMA, MA dispatch)
- Momentum indicators (RSI, MACD, APO, PPO, ROC, MOM, Stochastics,
  Stochastic RSI, Williams %R, CCI, MFI, DX, ADX)
- Volatility indicators (TRANGE, ATR, VAR, STDDEV, Bollinger Bands,
  rolling extrema, price channel)
- Volume indicators (OBV)
- Input validation and numeric primitives

All indicator functions follow consistent patterns:
- Accept ``start_idx, end_idx`` followed by aligned input sequences
- Return a Result (begin index, element count, values, named extras)
- Report invalid input through Result.ret_code instead of raising
"""

from ta_engine.indicators.moving_averages import (
    sma,
    ema,
    wma,
    dema,
    tema,
    trima,
    kama,
    ma,
    ma_lookback,
)

from ta_engine.indicators.momentum import (
    rsi,
    macd,
    apo,
    ppo,
    roc,
    mom,
    stoch,
    stochf,
    stoch_rsi,
    willr,
    cci,
    mfi,
    dx,
    adx,
)

from ta_engine.indicators.volatility import (
    trange,
    atr,
    var,
    stddev,
    bbands,
    max_value,
    min_value,
    minmax,
    price_channel,
)

from ta_engine.indicators.volume import obv

from ta_engine.indicators.validation_utils import (
    validate,
    validate_params,
    validate_price,
    validate_volume,
    validate_ma_type,
    output_range,
    DataValidationError,
)

from ta_engine.indicators.registry import INDICATORS, compute, get_indicator

__all__ = [
    # Moving averages
    'sma',
    'ema',
    'wma',
    'dema',
    'tema',
    'trima',
    'kama',
    'ma',
    'ma_lookback',
    # Momentum
    'rsi',
    'macd',
    'apo',
    'ppo',
    'roc',
    'mom',
    'stoch',
    'stochf',
    'stoch_rsi',
    'willr',
    'cci',
    'mfi',
    'dx',
    'adx',
    # Volatility
    'trange',
    'atr',
    'var',
    'stddev',
    'bbands',
    'max_value',
    'min_value',
    'minmax',
    'price_channel',
    # Volume
    'obv',
    # Validation
    'validate',
    'validate_params',
    'validate_price',
    'validate_volume',
    'validate_ma_type',
    'output_range',
    'DataValidationError',
    # Registry
    'INDICATORS',
    'compute',
    'get_indicator',
]
