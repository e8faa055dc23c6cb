"""
Unit tests for compute_statistics and its helpers.

Covers the closest-rank linear interpolation percentile, population standard
deviation, mode tie-breaking, and the zero-mean coefficient of variation.
"""
from __future__ import annotations

import dataclasses
import math

import numpy as np
import pytest

from sparkline.analysis.statistics import compute_statistics, mode, percentile


class TestComputeStatistics:
    def test_empty_returns_none(self):
        assert compute_statistics([]) is None
        assert compute_statistics(np.array([], dtype=np.float32)) is None

    def test_three_samples(self):
        stats = compute_statistics([1.0, 2.0, 3.0])

        assert stats.count == 3
        assert stats.min == 1.0
        assert stats.max == 3.0
        assert stats.mean == pytest.approx(2.0)
        assert stats.median == pytest.approx(2.0)
        assert stats.lower_quartile == pytest.approx(1.5)
        assert stats.upper_quartile == pytest.approx(2.5)
        assert stats.iqr == pytest.approx(1.0)
        assert stats.range == pytest.approx(2.0)
        assert stats.mode == 1.0
        assert stats.standard_deviation == pytest.approx(math.sqrt(2.0 / 3.0))
        assert stats.coefficient_of_variation == pytest.approx(math.sqrt(2.0 / 3.0) / 2.0)

    def test_quartiles_of_four_samples(self):
        stats = compute_statistics([40.0, 10.0, 30.0, 20.0])

        assert stats.lower_quartile == pytest.approx(17.5)
        assert stats.median == pytest.approx(25.0)
        assert stats.upper_quartile == pytest.approx(32.5)
        assert stats.iqr == pytest.approx(15.0)

    def test_single_sample(self):
        stats = compute_statistics([7.0])

        assert stats.min == stats.max == stats.median == stats.mode == 7.0
        assert stats.lower_quartile == stats.upper_quartile == 7.0
        assert stats.standard_deviation == 0.0
        assert stats.range == 0.0

    def test_zero_mean_has_zero_cv(self):
        stats = compute_statistics([-1.0, 1.0])
        assert stats.mean == 0.0
        assert stats.coefficient_of_variation == 0.0

    def test_mode_prefers_most_frequent(self):
        assert compute_statistics([5.0, 3.0, 5.0, 1.0]).mode == 5.0

    def test_non_finite_samples_do_not_raise(self):
        stats = compute_statistics([1.0, math.nan, 3.0])
        assert stats.count == 3
        assert math.isnan(stats.mean)

        stats = compute_statistics([1.0, math.inf])
        assert stats.max == math.inf
        assert stats.mean == math.inf

    def test_result_is_frozen(self):
        stats = compute_statistics([1.0, 2.0])
        with pytest.raises(dataclasses.FrozenInstanceError):
            stats.mean = 0.0  # type: ignore[misc]

    def test_input_is_not_modified(self):
        data = np.array([3.0, 1.0, 2.0], dtype=np.float32)
        compute_statistics(data)
        np.testing.assert_array_equal(data, [3.0, 1.0, 2.0])


class TestHelpers:
    @pytest.mark.parametrize(
        "p, expected",
        [(0, 10.0), (25, 17.5), (50, 25.0), (75, 32.5), (100, 40.0)],
    )
    def test_percentile(self, p, expected):
        data = np.array([10.0, 20.0, 30.0, 40.0])
        assert percentile(data, p) == pytest.approx(expected)

    def test_percentile_matches_numpy_linear(self):
        data = np.sort(np.array([3.0, 9.0, 1.5, 4.0, 12.0, 7.0]))
        for p in (10, 33, 50, 90):
            assert percentile(data, p) == pytest.approx(float(np.percentile(data, p)))

    def test_percentile_empty_raises(self):
        with pytest.raises(ValueError):
            percentile(np.array([]), 50)

    def test_mode_ties_go_to_smallest_value(self):
        assert mode([3.0, 2.0, 3.0, 2.0, 9.0]) == 2.0

    def test_mode_empty_raises(self):
        with pytest.raises(ValueError):
            mode([])
