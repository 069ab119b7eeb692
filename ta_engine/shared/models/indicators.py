"""
Indicator snapshot data models.

A snapshot holds the most recent value of each indicator the service
computed for one candle frame; an IndicatorSet groups snapshots by
timeframe.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, Optional


@dataclass
class IndicatorSnapshot:
    """
    Latest indicator readings for a single candle frame.

    Any field is None when its group was not requested or the frame was
    too short for the indicator's warm-up.

    Trend:
        sma, ema: Moving averages of close
        macd_line, macd_signal, macd_histogram: MACD outputs
        adx, plus_di, minus_di: Directional movement

    Momentum:
        rsi: Relative Strength Index (0-100)
        stoch_k, stoch_d: Slow stochastic (0-100)
        stoch_rsi_k, stoch_rsi_d: Stochastic RSI (0-100)
        willr: Williams %R (-100-0)
        cci: Commodity Channel Index
        mfi: Money Flow Index (0-100)
        roc: Rate of change (percent)
        apo: Absolute price oscillator

    Volatility:
        atr: Average True Range
        atr_percent: ATR as percentage of close
        bb_upper, bb_middle, bb_lower: Bollinger Bands
        bb_width: upper - lower

    Volume:
        obv: On-Balance Volume
    """
    close: float
    timestamp: Optional[int] = None

    # Trend
    sma: Optional[float] = None
    ema: Optional[float] = None
    macd_line: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_histogram: Optional[float] = None
    adx: Optional[float] = None
    plus_di: Optional[float] = None
    minus_di: Optional[float] = None

    # Momentum
    rsi: Optional[float] = None
    stoch_k: Optional[float] = None
    stoch_d: Optional[float] = None
    stoch_rsi_k: Optional[float] = None
    stoch_rsi_d: Optional[float] = None
    willr: Optional[float] = None
    cci: Optional[float] = None
    mfi: Optional[float] = None
    roc: Optional[float] = None
    apo: Optional[float] = None

    # Volatility
    atr: Optional[float] = None
    atr_percent: Optional[float] = None
    bb_upper: Optional[float] = None
    bb_middle: Optional[float] = None
    bb_lower: Optional[float] = None
    bb_width: Optional[float] = None

    # Volume
    obv: Optional[float] = None

    def __post_init__(self):
        """Validate indicator ranges."""
        for name in ('rsi', 'mfi', 'stoch_k', 'stoch_d', 'stoch_rsi_k', 'stoch_rsi_d'):
            value = getattr(self, name)
            if value is not None and not 0 <= value <= 100:
                raise ValueError(f"{name} must be 0-100, got {value}")

        if self.willr is not None and not -100 <= self.willr <= 0:
            raise ValueError(f"Williams %R must be -100-0, got {self.willr}")

        if self.atr is not None and self.atr < 0:
            raise ValueError(f"ATR must be non-negative, got {self.atr}")

        if None not in (self.bb_upper, self.bb_middle, self.bb_lower):
            if not (self.bb_upper >= self.bb_middle >= self.bb_lower):
                raise ValueError(
                    f"Bollinger Bands must satisfy: upper ({self.bb_upper}) >= "
                    f"middle ({self.bb_middle}) >= lower ({self.bb_lower})"
                )
            if self.bb_width is None:
                self.bb_width = self.bb_upper - self.bb_lower

    @property
    def rsi_oversold(self) -> bool:
        """Check if RSI indicates oversold condition (< 30)."""
        return self.rsi is not None and self.rsi < 30

    @property
    def rsi_overbought(self) -> bool:
        """Check if RSI indicates overbought condition (> 70)."""
        return self.rsi is not None and self.rsi > 70

    def to_dict(self) -> Dict[str, Optional[float]]:
        return asdict(self)


@dataclass
class IndicatorSet:
    """
    Indicator snapshots across timeframes.

    Attributes:
        by_timeframe: Dictionary mapping timeframe ('1h', '1d', ...) to snapshot
    """
    by_timeframe: Dict[str, IndicatorSnapshot] = field(default_factory=dict)

    def get_indicator(self, timeframe: str) -> IndicatorSnapshot:
        """Get indicators for a specific timeframe."""
        if timeframe not in self.by_timeframe:
            raise KeyError(f"Timeframe '{timeframe}' not found in IndicatorSet")
        return self.by_timeframe[timeframe]

    def has_timeframe(self, timeframe: str) -> bool:
        return timeframe in self.by_timeframe

    def get_timeframes(self) -> list:
        return list(self.by_timeframe.keys())
