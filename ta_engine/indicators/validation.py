"""
Indicator Validation Module

Cross-checks the loop-based engines against independent pandas
references (rolling windows, ``ewm``, cumulative sums). Used by the test
suite and the ``ta-engine validate`` command to catch regressions in the
recursive seeds and window arithmetic.

Usage:
    from ta_engine.indicators.validation import validate_all_indicators
    results = validate_all_indicators(df)
    assert results['all_passed']
"""

import logging
from typing import Callable, Dict

import numpy as np
import pandas as pd

from ta_engine.indicators.moving_averages import ema, sma
from ta_engine.indicators.volatility import bbands, max_value, min_value, stddev
from ta_engine.indicators.volume import obv
from ta_engine.shared.models.result import Result

logger = logging.getLogger(__name__)


def result_to_series(result: Result, index: pd.Index, name: str = "values") -> pd.Series:
    """
    Place a Result's output sequence on the input's index.

    Positions before ``begin_index`` (and after the last output) are NaN.
    """
    out = pd.Series(np.nan, index=index, dtype=np.float64)
    if result.ok and result.element_count:
        out.iloc[result.begin_index:result.begin_index + result.element_count] = result[name]
    return out


# --- Reference implementations ---

def reference_sma(close: pd.Series, period: int) -> pd.Series:
    return close.rolling(window=period).mean()


def reference_ema(close: pd.Series, period: int) -> pd.Series:
    """EMA seeded with the mean of the first ``period`` values."""
    seeded = close.copy().astype(np.float64)
    seeded.iloc[:period - 1] = np.nan
    seeded.iloc[period - 1] = close.iloc[:period].mean()
    ema_values = seeded.iloc[period - 1:].ewm(alpha=2.0 / (period + 1), adjust=False).mean()
    return ema_values.reindex(close.index)


def reference_stddev(close: pd.Series, period: int) -> pd.Series:
    return close.rolling(window=period).std(ddof=0)


def reference_obv(close: pd.Series, volume: pd.Series) -> pd.Series:
    direction = np.sign(close.diff()).fillna(0.0)
    flow = direction * volume
    flow.iloc[0] = volume.iloc[0]
    return flow.cumsum()


# --- Comparison ---

def _compare(indicator: str, ours: pd.Series, reference: pd.Series, tolerance: float) -> Dict:
    valid_mask = ~(ours.isna() | reference.isna())

    if valid_mask.sum() == 0:
        return {
            'indicator': indicator,
            'passed': False,
            'error': 'No valid values to compare'
        }

    diff = np.abs(ours[valid_mask] - reference[valid_mask])
    max_diff = float(diff.max())

    # Warm-up positions must agree too: NaN in one and a value in the other is a mismatch
    warmup_mismatch = int((ours.isna() != reference.isna()).sum())

    return {
        'indicator': indicator,
        'max_diff': max_diff,
        'mean_diff': float(diff.mean()),
        'tolerance': tolerance,
        'warmup_mismatch': warmup_mismatch,
        'passed': max_diff < tolerance and warmup_mismatch == 0,
        'samples': int(valid_mask.sum())
    }


def _checked(indicator: str, check: Callable[[], Dict]) -> Dict:
    try:
        return check()
    except Exception as e:
        logger.warning(f"{indicator} validation raised: {e}")
        return {
            'indicator': indicator,
            'passed': False,
            'error': str(e)
        }


def validate_sma(df: pd.DataFrame, period: int = 20, tolerance: float = 1e-8) -> Dict:
    """Validate SMA against ``rolling().mean()``."""
    def check():
        close = df['close']
        ours = result_to_series(sma(0, len(close) - 1, close.values, period=period), close.index)
        return _compare('SMA', ours, reference_sma(close, period), tolerance)
    return _checked('SMA', check)


def validate_ema(df: pd.DataFrame, period: int = 20, tolerance: float = 1e-8) -> Dict:
    """Validate EMA against a mean-seeded ``ewm(adjust=False)``."""
    def check():
        close = df['close']
        ours = result_to_series(ema(0, len(close) - 1, close.values, period=period), close.index)
        return _compare('EMA', ours, reference_ema(close, period), tolerance)
    return _checked('EMA', check)


def validate_stddev(df: pd.DataFrame, period: int = 20, tolerance: float = 1e-6) -> Dict:
    """Validate STDDEV against population ``rolling().std(ddof=0)``."""
    def check():
        close = df['close']
        ours = result_to_series(stddev(0, len(close) - 1, close.values, period=period), close.index)
        return _compare('STDDEV', ours, reference_stddev(close, period), tolerance)
    return _checked('STDDEV', check)


def validate_bollinger_bands(df: pd.DataFrame, period: int = 20, nbdev: float = 2.0,
                             tolerance: float = 1e-6) -> Dict:
    """Validate the upper band against rolling mean + nbdev * rolling std."""
    def check():
        close = df['close']
        result = bbands(0, len(close) - 1, close.values, period=period, nbdev_up=nbdev, nbdev_dn=nbdev)
        ours = result_to_series(result, close.index, 'upper_band')
        reference = reference_sma(close, period) + nbdev * reference_stddev(close, period)
        return _compare('BBANDS', ours, reference, tolerance)
    return _checked('BBANDS', check)


def validate_extrema(df: pd.DataFrame, period: int = 20, tolerance: float = 1e-12) -> Dict:
    """Validate MAX and MIN against ``rolling().max()`` / ``rolling().min()``."""
    def check():
        close = df['close']
        end = len(close) - 1
        highest = result_to_series(max_value(0, end, close.values, period=period), close.index)
        lowest = result_to_series(min_value(0, end, close.values, period=period), close.index)
        high_check = _compare('MAX', highest, close.rolling(period).max(), tolerance)
        low_check = _compare('MIN', lowest, close.rolling(period).min(), tolerance)
        merged = dict(high_check)
        merged['indicator'] = 'MAX/MIN'
        merged['passed'] = high_check.get('passed', False) and low_check.get('passed', False)
        return merged
    return _checked('MAX/MIN', check)


def validate_obv(df: pd.DataFrame, tolerance: float = 1e-6) -> Dict:
    """Validate OBV against a signed cumulative volume sum."""
    def check():
        close, volume = df['close'], df['volume']
        ours = result_to_series(obv(0, len(close) - 1, close.values, volume.values), close.index)
        return _compare('OBV', ours, reference_obv(close, volume), tolerance)
    return _checked('OBV', check)


def validate_all_indicators(df: pd.DataFrame) -> Dict:
    """
    Run the complete cross-check suite.

    Args:
        df: OHLCV DataFrame with at least 'close' and 'volume' columns

    Returns:
        dict: Per-indicator results plus overall pass/fail
    """
    results = {
        'timestamp': pd.Timestamp.now().isoformat(),
        'data_points': len(df),
        'validations': []
    }

    validators = [
        validate_sma,
        validate_ema,
        validate_stddev,
        validate_bollinger_bands,
        validate_extrema,
        validate_obv,
    ]

    for validator in validators:
        results['validations'].append(validator(df))

    passed = [v for v in results['validations'] if v.get('passed', False)]
    results['passed_count'] = len(passed)
    results['total_count'] = len(results['validations'])
    results['all_passed'] = len(passed) == len(results['validations'])

    if not results['all_passed']:
        failed = [v['indicator'] for v in results['validations'] if not v.get('passed', False)]
        logger.warning(f"Indicator validation failed for: {', '.join(failed)}")

    return results
