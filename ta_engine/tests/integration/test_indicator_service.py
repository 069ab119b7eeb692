"""
Integration tests for IndicatorService snapshots.

Tests:
- Snapshot over a realistic candle frame
- Multi-timeframe compute with short frames skipped
- Group selection and unknown groups
- Singleton configuration
"""

import numpy as np
import pytest

from ta_engine.services import configure_indicator_service, get_indicator_service
from ta_engine.services.indicator_service import IndicatorService, latest
from ta_engine.shared.config.defaults import ServiceConfig, WindowSizes
from ta_engine.shared.models.indicators import IndicatorSet, IndicatorSnapshot
from ta_engine.shared.models.result import Result
from ta_engine.tests.fixtures.market_data import (
    generate_bearish_trend_ohlcv,
    generate_bullish_trend_ohlcv,
    generate_flat_ohlcv,
    ohlcv_frame,
)


class TestSnapshot:
    """compute_frame on a single frame."""

    def test_all_groups_populated(self):
        df = ohlcv_frame(generate_bullish_trend_ohlcv(120))
        snap = IndicatorService().compute_frame(df, '1h')

        for name in ('sma', 'ema', 'macd_line', 'macd_signal', 'adx', 'rsi', 'stoch_k',
                     'stoch_rsi_d', 'willr', 'cci', 'mfi', 'roc', 'apo', 'atr', 'bb_upper', 'obv'):
            assert getattr(snap, name) is not None, name

        assert snap.close == pytest.approx(df['close'].iloc[-1])
        assert snap.timestamp == int(df['time'].iloc[-1])
        assert snap.bb_lower <= snap.bb_middle <= snap.bb_upper
        assert snap.atr_percent == pytest.approx(snap.atr / snap.close * 100)
        assert snap.macd_histogram == pytest.approx(snap.macd_line - snap.macd_signal)

    def test_flat_market(self):
        df = ohlcv_frame(generate_flat_ohlcv(60))
        snap = IndicatorService().compute_frame(df)

        assert snap.sma == pytest.approx(100.0)
        assert snap.atr == 0.0
        assert snap.bb_width == 0.0
        assert snap.cci == 0.0

    def test_short_frame_leaves_slow_indicators_unset(self):
        df = ohlcv_frame(generate_bullish_trend_ohlcv(30))
        snap = IndicatorService().compute_frame(df)

        assert snap.macd_line is None
        assert snap.rsi is not None

    def test_empty_frame_raises(self):
        df = ohlcv_frame(generate_bullish_trend_ohlcv(10)).iloc[0:0]
        with pytest.raises(ValueError, match="empty frame"):
            IndicatorService().compute_frame(df)

    def test_snapshot_serializes(self):
        snap = IndicatorService().compute_frame(ohlcv_frame(generate_bearish_trend_ohlcv(80)))
        data = snap.to_dict()
        assert data['close'] == snap.close
        assert 'rsi' in data


    def test_snapshot_range_is_strict(self):
        with pytest.raises(ValueError, match="stoch_k must be 0-100"):
            IndicatorSnapshot(close=1.0, stoch_k=100.00000000000001)
        with pytest.raises(ValueError, match="Williams %R"):
            IndicatorSnapshot(close=1.0, willr=-100.00000000000001)

    def test_stochastic_fields_within_bounds(self):
        df = ohlcv_frame(generate_bullish_trend_ohlcv(120))
        snap = IndicatorService().compute_frame(df)
        for name in ('stoch_k', 'stoch_d', 'stoch_rsi_k', 'stoch_rsi_d'):
            assert 0.0 <= getattr(snap, name) <= 100.0


class TestGroups:
    """Configured indicator groups."""

    def test_subset_of_groups(self):
        service = IndicatorService(config=ServiceConfig(groups=('volatility',)))
        snap = service.compute_frame(ohlcv_frame(generate_bullish_trend_ohlcv(60)))

        assert snap.atr is not None
        assert snap.rsi is None
        assert snap.obv is None

    def test_unknown_group(self):
        service = IndicatorService(config=ServiceConfig(groups=('trend', 'sentiment')))
        with pytest.raises(ValueError, match="Unknown indicator group"):
            service.compute_frame(ohlcv_frame(generate_bullish_trend_ohlcv(60)))

    def test_custom_windows(self):
        df = ohlcv_frame(generate_bullish_trend_ohlcv(60))
        snap = IndicatorService(windows=WindowSizes(sma_period=1)).compute_frame(df)
        assert snap.sma == pytest.approx(df['close'].iloc[-1])


class TestMultiTimeframe:
    """compute over several frames."""

    def test_short_frames_skipped(self):
        service = IndicatorService()
        frames = {
            '1h': ohlcv_frame(generate_bullish_trend_ohlcv(100)),
            '4h': ohlcv_frame(generate_bearish_trend_ohlcv(60)),
            '1d': ohlcv_frame(generate_bullish_trend_ohlcv(20)),
        }
        indicator_set = service.compute(frames)

        assert isinstance(indicator_set, IndicatorSet)
        assert sorted(indicator_set.get_timeframes()) == ['1h', '4h']
        assert service.diagnostics['skipped'] == ['1d']
        assert service.diagnostics['indicator_failures'] == []

    def test_failures_collected(self):
        service = IndicatorService(config=ServiceConfig(groups=('nonexistent',)))
        indicator_set = service.compute({'1h': ohlcv_frame(generate_bullish_trend_ohlcv(60))})

        assert not indicator_set.has_timeframe('1h')
        failure = service.diagnostics['indicator_failures'][0]
        assert failure['timeframe'] == '1h'
        assert 'nonexistent' in failure['error']

    def test_missing_timeframe(self):
        indicator_set = IndicatorService().compute({})
        with pytest.raises(KeyError):
            indicator_set.get_indicator('1w')


class TestHelpers:

    def test_latest_requires_last_index(self):
        result = Result(begin_index=2, element_count=3, values=np.array([1.0, 2.0, 3.0]))
        assert latest(result, 4) == 3.0
        assert latest(result, 5) is None
        assert latest(Result.empty(), 4) is None

    def test_singleton(self):
        service = configure_indicator_service(config=ServiceConfig(min_candles=10))
        assert get_indicator_service() is service
