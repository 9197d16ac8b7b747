"""Tests for the numeric primitives."""

from __future__ import annotations

import math

import pytest

from hdi.domains.headache.domain_logic.statistics_primitives import (
    approximate_p_value,
    is_significant,
    linear_trend_slope,
    mean,
    moving_average,
    pearson_correlation,
    percentile,
    population_std_dev,
)


class TestPearsonCorrelation:
    def test_perfect_positive(self):
        assert pearson_correlation([1, 2, 3, 4], [2, 4, 6, 8]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert pearson_correlation([1, 2, 3, 4], [8, 6, 4, 2]) == pytest.approx(-1.0)

    def test_known_value(self):
        r = pearson_correlation([1, 2, 3, 4, 5], [2, 1, 4, 3, 5])
        assert r == pytest.approx(0.8)

    def test_constant_series_is_zero(self):
        assert pearson_correlation([3, 3, 3], [1, 2, 3]) == 0.0

    def test_fewer_than_two_points_is_zero(self):
        assert pearson_correlation([1.0], [2.0]) == 0.0
        assert pearson_correlation([], []) == 0.0

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError, match="lengths differ"):
            pearson_correlation([1, 2, 3], [1, 2])

    def test_result_stays_in_bounds(self):
        xs = [0.1 * i for i in range(50)]
        r = pearson_correlation(xs, [3 * x + 1 for x in xs])
        assert -1.0 <= r <= 1.0

    @pytest.mark.parametrize(
        ("x", "y"),
        [
            ([1.5, 2.0, 7.25, 3.0, 9.5], [4.0, 1.0, 6.5, 2.25, 8.0]),
            ([1013.2, 1008.7, 999.4, 1004.1, 1011.0, 997.3], [0, 3, 8, 2, 0, 9]),
            ([0.3, -1.2, 4.4, 2.0], [10.0, 7.5, -3.0, 1.0]),
        ],
    )
    def test_symmetric_and_bounded(self, x, y):
        r = pearson_correlation(x, y)
        assert r == pearson_correlation(y, x)
        assert -1.0 <= r <= 1.0


class TestPValue:
    def test_tiny_sample_is_one(self):
        assert approximate_p_value(0.9, 2) == 1.0

    def test_perfect_correlation(self):
        assert approximate_p_value(1.0, 10) == 0.01

    def test_breakpoints(self):
        # t = r * sqrt((n-2)/(1-r^2))
        assert approximate_p_value(0.5, 30) == 0.01  # t ~ 3.06
        assert approximate_p_value(0.4, 30) == 0.05  # t ~ 2.31
        assert approximate_p_value(0.33, 30) == 0.1  # t ~ 1.85
        assert approximate_p_value(0.1, 30) == 0.2

    def test_sign_does_not_matter(self):
        assert approximate_p_value(-0.5, 30) == approximate_p_value(0.5, 30)


class TestSignificance:
    def test_needs_small_p_and_twenty_samples(self):
        assert is_significant(0.01, 20)
        assert not is_significant(0.01, 19)
        assert not is_significant(0.05, 40)


class TestTrendAndAverages:
    def test_slope_of_line(self):
        assert linear_trend_slope([1, 3, 5, 7]) == pytest.approx(2.0)

    def test_slope_degenerate(self):
        assert linear_trend_slope([]) == 0.0
        assert linear_trend_slope([4.0]) == 0.0

    def test_moving_average(self):
        assert moving_average([1, 2, 3, 4, 5], 3) == [2.0, 3.0, 4.0]

    def test_moving_average_short_series_unchanged(self):
        assert moving_average([1.0, 2.0], 7) == [1.0, 2.0]

    def test_moving_average_rejects_bad_window(self):
        with pytest.raises(ValueError):
            moving_average([1.0], 0)

    def test_mean_and_std_dev(self):
        assert mean([]) == 0.0
        assert mean([2, 4]) == 3.0
        assert population_std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
        assert population_std_dev([]) == 0.0


class TestPercentile:
    def test_index_is_floor(self):
        values = [5, 1, 4, 2, 3]
        assert percentile(values, 0.75) == 4  # index floor(4 * 0.75) = 3
        assert percentile(values, 0.0) == 1
        assert percentile(values, 1.0) == 5

    def test_inverted_direction_mirrors_index(self):
        values = [1000, 1002, 1004, 1006, 1008]
        assert percentile(values, 0.25, invert_direction=True) == 1006

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            percentile([], 0.5)

    def test_nan_free_on_single_value(self):
        assert not math.isnan(percentile([3.0], 0.75))
