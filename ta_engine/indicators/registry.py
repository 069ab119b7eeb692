"""
Indicator registry.

Maps indicator names to their engine function, the input fields they
consume and the extra sequences they produce, so callers (CLI, service)
can run any indicator through one ``compute`` call.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

from ta_engine.indicators import momentum, moving_averages, volatility, volume
from ta_engine.shared.models.result import Result, RetCode


@dataclass(frozen=True)
class IndicatorSpec:
    """How to call one indicator."""
    name: str
    func: Callable[..., Result]
    inputs: Tuple[str, ...]
    extras: Tuple[str, ...] = ()
    description: str = ""


_SPECS = (
    IndicatorSpec('sma', moving_averages.sma, ('close',), description="Simple Moving Average"),
    IndicatorSpec('ema', moving_averages.ema, ('close',), description="Exponential Moving Average"),
    IndicatorSpec('wma', moving_averages.wma, ('close',), description="Weighted Moving Average"),
    IndicatorSpec('dema', moving_averages.dema, ('close',), description="Double EMA"),
    IndicatorSpec('tema', moving_averages.tema, ('close',), description="Triple EMA"),
    IndicatorSpec('trima', moving_averages.trima, ('close',), description="Triangular Moving Average"),
    IndicatorSpec('kama', moving_averages.kama, ('close',), description="Kaufman Adaptive Moving Average"),
    IndicatorSpec('ma', moving_averages.ma, ('close',), description="Moving Average (by type)"),
    IndicatorSpec('rsi', momentum.rsi, ('close',), description="Relative Strength Index"),
    IndicatorSpec('macd', momentum.macd, ('close',), ('signal', 'hist'), "Moving Average Convergence Divergence"),
    IndicatorSpec('apo', momentum.apo, ('close',), description="Absolute Price Oscillator"),
    IndicatorSpec('ppo', momentum.ppo, ('close',), description="Percentage Price Oscillator"),
    IndicatorSpec('roc', momentum.roc, ('close',), description="Rate of Change"),
    IndicatorSpec('mom', momentum.mom, ('close',), description="Momentum"),
    IndicatorSpec('stoch', momentum.stoch, ('high', 'low', 'close'), ('slow_d',), "Stochastic"),
    IndicatorSpec('stochf', momentum.stochf, ('high', 'low', 'close'), ('fast_d',), "Fast Stochastic"),
    IndicatorSpec('stochrsi', momentum.stoch_rsi, ('close',), ('fast_d',), "Stochastic RSI"),
    IndicatorSpec('willr', momentum.willr, ('high', 'low', 'close'), description="Williams %R"),
    IndicatorSpec('cci', momentum.cci, ('high', 'low', 'close'), description="Commodity Channel Index"),
    IndicatorSpec('mfi', momentum.mfi, ('high', 'low', 'close', 'volume'), description="Money Flow Index"),
    IndicatorSpec('dx', momentum.dx, ('high', 'low', 'close'), ('plus_di', 'minus_di'), "Directional Movement Index"),
    IndicatorSpec('adx', momentum.adx, ('high', 'low', 'close'), ('plus_di', 'minus_di'), "Average Directional Index"),
    IndicatorSpec('trange', volatility.trange, ('high', 'low', 'close'), description="True Range"),
    IndicatorSpec('atr', volatility.atr, ('high', 'low', 'close'), description="Average True Range"),
    IndicatorSpec('var', volatility.var, ('close',), description="Variance"),
    IndicatorSpec('stddev', volatility.stddev, ('close',), description="Standard Deviation"),
    IndicatorSpec('bbands', volatility.bbands, ('close',), ('upper_band', 'lower_band'), "Bollinger Bands"),
    IndicatorSpec('max', volatility.max_value, ('close',), description="Highest value over period"),
    IndicatorSpec('min', volatility.min_value, ('close',), description="Lowest value over period"),
    IndicatorSpec('minmax', volatility.minmax, ('close',), ('min', 'max'), "Lowest and highest values"),
    IndicatorSpec('channel', volatility.price_channel, ('high', 'low'), ('upper_band', 'lower_band'),
                  "Highest high / lowest low channel"),
    IndicatorSpec('obv', volume.obv, ('close', 'volume'), description="On-Balance Volume"),
)

INDICATORS: Dict[str, IndicatorSpec] = {spec.name: spec for spec in _SPECS}


def get_indicator(name: str) -> IndicatorSpec:
    """
    Look up an indicator by name (case-insensitive).

    Raises:
        KeyError: If the indicator is unknown
    """
    key = name.lower()
    if key not in INDICATORS:
        raise KeyError(f"Unknown indicator '{name}'. Available: {', '.join(sorted(INDICATORS))}")
    return INDICATORS[key]


def compute(
    name: str,
    data: Mapping[str, Sequence[float]],
    start_idx: int = 0,
    end_idx: Optional[int] = None,
    **params,
) -> Result:
    """
    Run an indicator over named input sequences.

    Args:
        name: Registered indicator name
        data: Mapping of field name ('open', 'high', 'low', 'close',
              'volume') to sequence
        start_idx: First requested index
        end_idx: Last requested index; defaults to the last input index
        **params: Indicator parameters (period, fast_period, ...)

    Returns:
        The indicator Result; INVALID_PARAMETER if a required field is
        missing from ``data``
    """
    spec = get_indicator(name)
    missing = [field for field in spec.inputs if field not in data]
    if missing:
        return Result.failure(RetCode.INVALID_PARAMETER, f"missing input fields: {missing}")

    inputs = [data[field] for field in spec.inputs]
    if end_idx is None:
        end_idx = len(inputs[0]) - 1
    return spec.func(start_idx, end_idx, *inputs, **params)
