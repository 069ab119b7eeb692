"""
Unit tests for the numeric primitives.
"""

import math

import pytest

from ta_engine.indicators.primitives import (
    abs_,
    are_equal,
    is_zero,
    max2,
    max_in,
    mean,
    min2,
    min_in,
    round_neg,
    round_neg2,
    round_pos,
    round_pos2,
    std_dev,
    sum_,
    variance,
)


class TestRounding:
    """Half-away-from-zero rounding helpers."""

    def test_round_pos_half_up(self):
        assert round_pos(2.5) == 3
        assert round_pos(2.49) == 2

    def test_round_neg_half_away_from_zero(self):
        assert round_neg(-2.5) == -3
        assert round_neg(-2.49) == -2

    def test_two_decimal_rounding(self):
        assert round_pos2(2.346) == pytest.approx(2.35)
        assert round_neg2(-2.346) == pytest.approx(-2.35)

    def test_abs(self):
        assert abs_(-3.5) == 3.5


class TestComparisons:
    """Epsilon comparisons use a 1e-9 tolerance."""

    def test_is_zero(self):
        assert is_zero(0.0)
        assert is_zero(1e-10)
        assert not is_zero(1e-8)

    def test_are_equal(self):
        assert are_equal(1.0, 1.0 + 1e-10)
        assert not are_equal(1.0, 1.0001)

    def test_max_min_of_two(self):
        assert max2(1.0, 2.0) == 2.0
        assert min2(1.0, 2.0) == 1.0


class TestAggregates:
    """Sequence aggregates, NaN on empty input."""

    def test_extrema(self):
        assert max_in([3.0, 7.0, 1.0]) == 7.0
        assert min_in([3.0, 7.0, 1.0]) == 1.0

    def test_empty_sequences_give_nan(self):
        assert math.isnan(max_in([]))
        assert math.isnan(min_in([]))
        assert math.isnan(mean([]))
        assert math.isnan(variance([], 0.0))
        assert math.isnan(std_dev([]))

    def test_sum_and_mean(self):
        assert sum_([1.0, 2.0, 3.0]) == 6.0
        assert sum_([]) == 0.0
        assert mean([1.0, 2.0, 3.0]) == 2.0

    def test_population_variance_and_std(self):
        values = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
        assert variance(values, mean(values)) == pytest.approx(4.0)
        assert std_dev(values) == pytest.approx(2.0)

    def test_constant_sequence_has_zero_variance(self):
        assert variance([5.0] * 10, 5.0) == 0.0
