"""
Cross-checks of the loop-based engines against pandas references.
"""

import numpy as np
import pandas as pd
import pytest

from ta_engine.data.adapters.mocks import generate_mock_ohlcv
from ta_engine.indicators.moving_averages import sma
from ta_engine.indicators.validation import (
    reference_ema,
    result_to_series,
    validate_all_indicators,
    validate_ema,
)
from ta_engine.shared.models.data import candles_to_frame


@pytest.fixture(params=['trending', 'ranging', 'volatile'])
def frame(request):
    return candles_to_frame(generate_mock_ohlcv(request.param, bars=300))


class TestReferenceValidation:

    def test_all_indicators_pass(self, frame):
        results = validate_all_indicators(frame)
        failed = [v for v in results['validations'] if not v['passed']]
        assert results['all_passed'], failed
        assert results['data_points'] == 300
        assert results['passed_count'] == results['total_count']

    def test_warmup_positions_agree(self, frame):
        check = validate_ema(frame, period=10)
        assert check['warmup_mismatch'] == 0
        assert check['samples'] == len(frame) - 9

    def test_too_short_frame_reports_error(self):
        df = candles_to_frame(generate_mock_ohlcv('trending', bars=5))
        check = validate_ema(df, period=20)
        assert not check['passed']
        assert 'error' in check


class TestHelpers:

    def test_result_to_series_places_output(self):
        close = pd.Series(np.arange(1.0, 11.0))
        series = result_to_series(sma(0, 9, close.values, period=3), close.index)

        assert series.iloc[:2].isna().all()
        assert series.iloc[2] == pytest.approx(2.0)
        assert series.iloc[9] == pytest.approx(9.0)

    def test_reference_ema_seed(self):
        close = pd.Series([1.0, 2.0, 3.0, 4.0])
        ref = reference_ema(close, 3)
        assert ref.iloc[2] == pytest.approx(2.0)
        assert ref.iloc[3] == pytest.approx(3.0)
