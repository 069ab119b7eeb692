"""
Indicator Service - latest-value indicator snapshots for candle frames.

Runs the indicator engines over a pandas candle frame by group:
- Trend: SMA, EMA, MACD, ADX (+DI/-DI)
- Momentum: RSI, Stochastic, Stochastic RSI, Williams %R, CCI, MFI, ROC, APO
- Volatility: ATR, Bollinger Bands
- Volume: OBV

Engine failures are raised through the error policy; per-timeframe
failures in ``compute`` are collected in ``diagnostics`` instead of
aborting the whole set.
"""

from typing import Dict, Optional

import numpy as np
import pandas as pd
from loguru import logger

from ta_engine.indicators.momentum import (
    adx,
    apo,
    cci,
    macd,
    mfi,
    roc,
    rsi,
    stoch,
    stoch_rsi,
    willr,
)
from ta_engine.indicators.moving_averages import ema, sma
from ta_engine.indicators.volatility import atr, bbands
from ta_engine.indicators.volume import obv
from ta_engine.shared.config.defaults import (
    DEFAULT_SERVICE_CONFIG,
    DEFAULT_WINDOWS,
    ServiceConfig,
    WindowSizes,
)
from ta_engine.shared.models.data import frame_to_slices
from ta_engine.shared.models.indicators import IndicatorSet, IndicatorSnapshot
from ta_engine.shared.models.result import Result
from ta_engine.shared.utils.error_policy import IndicatorError, enforce_complete_result
from ta_engine.shared.utils.logging_utils import log_result, time_operation


def latest(result: Result, last_idx: int, name: str = "values") -> Optional[float]:
    """Value of ``name`` at input index ``last_idx``, or None if not produced."""
    if result.element_count == 0 or result.end_index != last_idx:
        return None
    return float(result[name][-1])


class IndicatorService:
    """
    Service for computing indicator snapshots from candle DataFrames.

    Usage:
        service = IndicatorService()
        snapshot = service.compute_frame(df)
        indicator_set = service.compute({'1h': df_1h, '1d': df_1d})
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        windows: Optional[WindowSizes] = None,
    ):
        """
        Initialize indicator service.

        Args:
            config: Service settings (minimum candles, groups, timing logs)
            windows: Indicator periods
        """
        self._config = config or DEFAULT_SERVICE_CONFIG
        self._windows = windows or DEFAULT_WINDOWS
        self._diagnostics: Dict[str, list] = {'indicator_failures': []}

    @property
    def diagnostics(self) -> Dict[str, list]:
        """Get diagnostic information from last computation."""
        return self._diagnostics

    def compute(self, frames: Dict[str, pd.DataFrame]) -> IndicatorSet:
        """
        Compute snapshots for several timeframes.

        Frames that are empty or shorter than ``min_candles`` are skipped;
        frames whose computation raises are recorded in ``diagnostics``.
        """
        self._diagnostics = {'indicator_failures': [], 'skipped': []}
        by_timeframe: Dict[str, IndicatorSnapshot] = {}

        for timeframe, df in frames.items():
            if df.empty or len(df) < self._config.min_candles:
                self._diagnostics['skipped'].append(timeframe)
                continue

            try:
                by_timeframe[timeframe] = self.compute_frame(df, timeframe)
            except (ValueError, IndicatorError) as e:
                logger.warning(f"Indicator computation failed for {timeframe}: {e}")
                self._diagnostics['indicator_failures'].append({
                    'timeframe': timeframe,
                    'error': str(e)
                })

        return IndicatorSet(by_timeframe=by_timeframe)

    def compute_frame(self, df: pd.DataFrame, label: Optional[str] = None) -> IndicatorSnapshot:
        """
        Compute the latest value of every indicator in the configured groups.

        Args:
            df: Candle frame with open, high, low, close, volume columns
                (and optionally ``time``)
            label: Timeframe or symbol used in log messages

        Raises:
            ValueError: If a required column is missing or the frame is empty
            IndicatorError: If an engine call fails
        """
        if df.empty:
            raise ValueError("Cannot compute indicators on an empty frame")

        _, high, low, close, volume = frame_to_slices(df)
        last = len(close) - 1
        values: Dict[str, Optional[float]] = {}

        with time_operation("compute_indicators", label, enabled=self._config.log_timings):
            for group in self._config.groups:
                handler = getattr(self, f"_{group}", None)
                if handler is None:
                    raise ValueError(f"Unknown indicator group: {group}")
                values.update(handler(last, high, low, close, volume))

        current_price = close[last]
        if values.get('atr') is not None and current_price > 0:
            values['atr_percent'] = values['atr'] / current_price * 100

        timestamp = int(df['time'].iloc[-1]) if 'time' in df.columns else None
        snapshot = IndicatorSnapshot(close=float(current_price), timestamp=timestamp, **values)

        logger.info(
            f"{label or 'frame'} indicators: close={current_price:.2f} "
            f"RSI={_fmt(snapshot.rsi)} ATR={_fmt(snapshot.atr)} ADX={_fmt(snapshot.adx)}"
        )
        return snapshot

    def _run(self, name: str, result: Result, last: int) -> Result:
        log_result(name, result)
        return enforce_complete_result(result, 0, last, name)

    def _trend(self, last, high, low, close, volume) -> Dict[str, Optional[float]]:
        w = self._windows
        sma_r = self._run('SMA', sma(0, last, close, period=w.sma_period), last)
        ema_r = self._run('EMA', ema(0, last, close, period=w.ema_period), last)
        macd_r = self._run('MACD', macd(0, last, close, w.macd_fast, w.macd_slow, w.macd_signal), last)
        adx_r = self._run('ADX', adx(0, last, high, low, close, period=w.adx_period), last)
        return {
            'sma': latest(sma_r, last),
            'ema': latest(ema_r, last),
            'macd_line': latest(macd_r, last),
            'macd_signal': latest(macd_r, last, 'signal'),
            'macd_histogram': latest(macd_r, last, 'hist'),
            'adx': latest(adx_r, last),
            'plus_di': latest(adx_r, last, 'plus_di'),
            'minus_di': latest(adx_r, last, 'minus_di'),
        }

    def _momentum(self, last, high, low, close, volume) -> Dict[str, Optional[float]]:
        w = self._windows
        stoch_r = self._run(
            'STOCH',
            stoch(0, last, high, low, close, w.stoch_fastk, w.stoch_slowk, slowd_period=w.stoch_slowd),
            last,
        )
        stoch_rsi_r = self._run(
            'STOCHRSI',
            stoch_rsi(0, last, close, w.stoch_rsi_period, w.stoch_rsi_fastk, w.stoch_rsi_fastd),
            last,
        )
        results = {
            'rsi': self._run('RSI', rsi(0, last, close, period=w.rsi_period), last),
            'willr': self._run('WILLR', willr(0, last, high, low, close, period=w.willr_period), last),
            'cci': self._run('CCI', cci(0, last, high, low, close, period=w.cci_period), last),
            'mfi': self._run('MFI', mfi(0, last, high, low, close, volume, period=w.mfi_period), last),
            'roc': self._run('ROC', roc(0, last, close, period=w.roc_period), last),
            'apo': self._run('APO', apo(0, last, close, w.apo_fast, w.apo_slow), last),
        }
        values = {name: latest(result, last) for name, result in results.items()}
        values.update({
            'stoch_k': latest(stoch_r, last),
            'stoch_d': latest(stoch_r, last, 'slow_d'),
            'stoch_rsi_k': latest(stoch_rsi_r, last),
            'stoch_rsi_d': latest(stoch_rsi_r, last, 'fast_d'),
        })
        return values

    def _volatility(self, last, high, low, close, volume) -> Dict[str, Optional[float]]:
        w = self._windows
        atr_r = self._run('ATR', atr(0, last, high, low, close, period=w.atr_period), last)
        bb_r = self._run('BBANDS', bbands(0, last, close, w.bb_period, w.bb_std, w.bb_std), last)
        return {
            'atr': latest(atr_r, last),
            'bb_upper': latest(bb_r, last, 'upper_band'),
            'bb_middle': latest(bb_r, last),
            'bb_lower': latest(bb_r, last, 'lower_band'),
        }

    def _volume(self, last, high, low, close, volume) -> Dict[str, Optional[float]]:
        obv_r = self._run('OBV', obv(0, last, close, volume), last)
        return {'obv': latest(obv_r, last)}


def _fmt(value: Optional[float]) -> str:
    if value is None or np.isnan(value):
        return "n/a"
    return f"{value:.2f}"


# Singleton
_indicator_service: Optional[IndicatorService] = None


def get_indicator_service() -> Optional[IndicatorService]:
    """Get the singleton IndicatorService instance."""
    return _indicator_service


def configure_indicator_service(
    config: Optional[ServiceConfig] = None,
    windows: Optional[WindowSizes] = None,
) -> IndicatorService:
    """Configure and return the singleton IndicatorService."""
    global _indicator_service
    _indicator_service = IndicatorService(config=config, windows=windows)
    return _indicator_service
