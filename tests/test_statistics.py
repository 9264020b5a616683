"""Tests for statistical analysis module."""

import math

import pytest
import pandas as pd
import numpy as np

from core.statistics import (
    calculate_correlation,
    cluster_points,
    detect_outliers_stddev,
    fit_linear_trend,
    r_squared_score,
    welch_t_test,
)


class TestLinearTrend:
    """Tests for linear trend fitting over sequence index."""

    def test_perfect_line(self):
        fit = fit_linear_trend([100, 110, 120, 130, 140])

        assert fit.slope == pytest.approx(10.0)
        assert fit.intercept == pytest.approx(100.0)
        assert fit.r_squared == pytest.approx(1.0)
        assert fit.direction == "Upward"
        assert fit.predict(5) == pytest.approx(150.0)

    def test_matches_closed_form_least_squares(self):
        y = np.array([3.0, 7.0, 4.0, 9.0, 8.0, 12.0])
        x = np.arange(len(y))
        n = len(y)
        slope = (n * (x * y).sum() - x.sum() * y.sum()) / (n * (x ** 2).sum() - x.sum() ** 2)
        intercept = (y.sum() - slope * x.sum()) / n

        fit = fit_linear_trend(y)

        assert fit.slope == pytest.approx(slope)
        assert fit.intercept == pytest.approx(intercept)

    def test_decreasing_series(self):
        fit = fit_linear_trend([50, 40, 30])
        assert fit.slope == pytest.approx(-10.0)
        assert fit.direction == "Downward"

    def test_constant_series_has_undefined_r_squared(self):
        fit = fit_linear_trend([5, 5, 5, 5])
        assert fit.slope == pytest.approx(0.0)
        assert math.isnan(fit.r_squared)

    def test_insufficient_data_raises_error(self):
        with pytest.raises(ValueError):
            fit_linear_trend([1])


class TestRSquared:
    """Tests for the coefficient of determination."""

    def test_partial_fit(self):
        y = np.array([1.0, 2.0, 3.0])
        y_pred = np.array([1.0, 2.0, 2.0])
        # SS_res = 1, SS_tot = 2
        assert r_squared_score(y, y_pred) == pytest.approx(0.5)


class TestCorrelation:
    """Tests for Pearson correlation."""

    def test_identical_samples(self):
        result = calculate_correlation([1, 2, 3, 4], [1, 2, 3, 4], "a", "b")

        assert result.variable1 == "a"
        assert result.variable2 == "b"
        assert result.correlation == pytest.approx(1.0)
        assert result.direction == "positive"

    def test_negative_correlation(self):
        result = calculate_correlation([1, 2, 3, 4, 5], [10, 8, 6, 4, 2])
        assert result.correlation == pytest.approx(-1.0)
        assert result.direction == "negative"

    def test_matches_numpy(self):
        np.random.seed(42)
        x = np.random.normal(0, 1, 50)
        y = x + np.random.normal(0, 1, 50)

        result = calculate_correlation(x, y)

        assert result.correlation == pytest.approx(np.corrcoef(x, y)[0, 1])
        assert 0 <= result.p_value <= 1

    def test_constant_sample_gives_nan(self):
        result = calculate_correlation([1, 1, 1], [1, 2, 3])
        assert math.isnan(result.correlation)

    def test_insufficient_data_raises_error(self):
        with pytest.raises(ValueError):
            calculate_correlation([1, 2], [3, 4])

    def test_unequal_lengths_raise_error(self):
        with pytest.raises(ValueError):
            calculate_correlation([1, 2, 3], [1, 2, 3, 4])


class TestOutlierDetection:
    """Tests for standard-deviation based outlier detection."""

    def test_closed_form_mean_and_threshold(self):
        values = pd.Series([1, 2, 3, 4, 5, 100], dtype="float64")
        scan = detect_outliers_stddev(values, multiplier=2.0)

        mean = sum(values) / len(values)
        std_dev = math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))

        assert scan.mean == pytest.approx(mean)
        assert scan.mean == pytest.approx(19.1667, abs=1e-4)
        assert scan.std_dev == pytest.approx(std_dev)
        assert scan.threshold == pytest.approx(2 * std_dev)

        flagged = abs(100 - mean) > 2 * std_dev
        assert (100.0 in scan.outliers.tolist()) is flagged
        assert scan.outliers.tolist() == [100.0]

    def test_index_is_preserved(self):
        values = pd.Series([10.0] * 9 + [100.0], index=range(5, 15))
        scan = detect_outliers_stddev(values)

        assert scan.outliers.index.tolist() == [14]
        assert scan.mean == pytest.approx(19.0)
        assert scan.threshold == pytest.approx(54.0)

    def test_constant_series_has_no_outliers(self):
        scan = detect_outliers_stddev(pd.Series([5.0, 5.0, 5.0, 5.0]))
        assert scan.outliers.empty
        assert scan.threshold == 0

    def test_invalid_multiplier_raises_error(self):
        with pytest.raises(ValueError):
            detect_outliers_stddev(pd.Series([1.0, 2.0]), multiplier=0)


class TestClustering:
    """Tests for k-means clustering of 2-D points."""

    def test_segments_cover_all_points(self):
        points = np.array([[0, 0], [1, 0], [0, 1], [50, 50], [51, 50], [50, 51],
                           [100, 0], [101, 0], [100, 1]], dtype=float)
        result = cluster_points(points, 3, random_state=0)

        assert result.k == 3
        assert [seg.id for seg in result.segments] == [1, 2, 3]
        assert sum(seg.size for seg in result.segments) == len(points)
        for seg in result.segments:
            assert len(seg.points) == seg.size
            assert len(seg.centroid) == 2

    def test_same_seed_is_reproducible(self):
        np.random.seed(7)
        points = np.random.normal(0, 10, (40, 2))

        first = cluster_points(points, 3, random_state=11)
        second = cluster_points(points, 3, random_state=11)

        assert first.labels.tolist() == second.labels.tolist()
        assert [s.centroid for s in first.segments] == [s.centroid for s in second.segments]

    def test_too_few_points_raises_error(self):
        with pytest.raises(ValueError):
            cluster_points(np.array([[0.0, 0.0]]), 3)


class TestWelchTTest:
    """Tests for Welch's t-test helper."""

    def test_clear_difference_is_significant(self):
        t_stat, p_val = welch_t_test([1, 2, 3, 4, 5], [101, 102, 103, 104, 105])
        assert t_stat < 0
        assert p_val < 0.05

    def test_insufficient_data_raises_error(self):
        with pytest.raises(ValueError):
            welch_t_test([1], [2, 3])
