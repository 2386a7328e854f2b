"""Tests for Pearson/Spearman correlation and correlation matrices."""

import math

import pytest
import numpy as np
from scipy import stats as sp_stats

from statistical_analysis.correlation_analyzer import CorrelationAnalyzer
from statistical_analysis.errors import InvalidInputError
from statistical_analysis.results import (
    CorrelationDirection,
    CorrelationStrength,
    CorrelationType,
)


@pytest.fixture
def analyzer():
    return CorrelationAnalyzer()


def test_pearson_perfect_positive(analyzer):
    """Test a perfectly linear increasing relationship."""
    result = analyzer.calculate_pearson_correlation([1, 2, 3, 4, 5], [2, 4, 6, 8, 10])

    assert result.value == pytest.approx(1.0)
    assert result.direction == CorrelationDirection.POSITIVE
    assert result.strength == CorrelationStrength.VERY_STRONG
    assert result.correlation_type == CorrelationType.PEARSON
    assert result.sample_size == 5
    assert result.p_value == 0.0
    assert result.confidence_interval == (1.0, 1.0)


def test_pearson_perfect_negative(analyzer):
    """Test a perfectly linear decreasing relationship."""
    result = analyzer.calculate_pearson_correlation([1, 2, 3, 4, 5], [10, 8, 6, 4, 2])

    assert result.value == pytest.approx(-1.0)
    assert result.direction == CorrelationDirection.NEGATIVE


def test_pearson_too_few_pairs_is_empty(analyzer):
    """Test fewer than three pairs gives the empty result."""
    result = analyzer.calculate_pearson_correlation([1, 2], [1, 2])

    assert result.is_empty
    assert result.value == 0
    assert result.sample_size == 0
    assert result.confidence == 0
    assert result.direction == CorrelationDirection.NONE
    assert result.strength == CorrelationStrength.VERY_WEAK
    assert result.p_value is None


def test_pearson_unequal_lengths_is_empty(analyzer):
    """Test mismatched series give the empty result."""
    result = analyzer.calculate_pearson_correlation([1, 2, 3, 4], [1, 2, 3])

    assert result.is_empty


def test_pearson_zero_variance_is_empty(analyzer):
    """Test a constant series gives the empty result."""
    result = analyzer.calculate_pearson_correlation([3, 3, 3, 3], [1, 2, 3, 4])

    assert result.is_empty


def test_pearson_filters_missing_values(analyzer):
    """Test pairs with None or NaN are dropped before computing."""
    x = [1, 2, None, 4, 5, float("nan"), 7]
    y = [2.1, 3.9, 6.0, 8.2, 9.8, 12.0, 14.1]

    result = analyzer.calculate_pearson_correlation(x, y)

    assert result.sample_size == 5
    assert result.value > 0.99


def test_pearson_missing_values_leave_too_few_pairs(analyzer):
    """Test filtering below three pairs yields the empty result."""
    result = analyzer.calculate_pearson_correlation([1, None, np.nan, 4], [1, 2, 3, np.nan])

    assert result.is_empty


def test_pearson_matches_scipy(analyzer, correlated_samples):
    """Test r and its p-value against scipy."""
    x, y = correlated_samples
    expected_r, expected_p = sp_stats.pearsonr(x, y)

    result = analyzer.calculate_pearson_correlation(x, y)

    assert result.value == pytest.approx(expected_r, abs=1e-4)
    assert result.p_value == pytest.approx(expected_p, abs=1e-4)
    assert -1 <= result.value <= 1


def test_pearson_fisher_interval(analyzer, correlated_samples):
    """Test the Fisher-z confidence interval brackets r."""
    x, y = correlated_samples
    result = analyzer.calculate_pearson_correlation(x, y)
    r = result.value
    se = 1 / math.sqrt(len(x) - 3)

    lower, upper = result.confidence_interval

    assert lower < r < upper
    assert result.standard_error == pytest.approx(se)
    assert lower == pytest.approx(math.tanh(math.atanh(r) - 1.96 * se), abs=1e-3)
    assert upper == pytest.approx(math.tanh(math.atanh(r) + 1.96 * se), abs=1e-3)


def test_pearson_wider_interval_at_higher_confidence(analyzer, correlated_samples):
    """Test a 99% interval is wider than a 90% one."""
    x, y = correlated_samples
    narrow = analyzer.calculate_pearson_correlation(x, y, confidence_level=0.90)
    wide = analyzer.calculate_pearson_correlation(x, y, confidence_level=0.99)

    assert wide.confidence_interval[0] < narrow.confidence_interval[0]
    assert wide.confidence_interval[1] > narrow.confidence_interval[1]
    assert wide.confidence == pytest.approx(99.0)


def test_pearson_three_pairs_has_unbounded_interval(analyzer):
    """Test three pairs leave no degrees of freedom for the Fisher interval."""
    result = analyzer.calculate_pearson_correlation([1, 2, 3], [1, 3, 2])

    assert result.sample_size == 3
    assert result.standard_error == math.inf
    assert result.confidence_interval == (-1.0, 1.0)


def test_pearson_invalid_confidence_level(analyzer):
    """Test an out-of-range confidence level raises."""
    with pytest.raises(InvalidInputError):
        analyzer.calculate_pearson_correlation([1, 2, 3], [1, 2, 3], confidence_level=1.5)


def test_pearson_is_deterministic(analyzer, correlated_samples):
    """Test identical inputs give identical results."""
    x, y = correlated_samples

    assert analyzer.calculate_pearson_correlation(x, y) == analyzer.calculate_pearson_correlation(x, y)


@pytest.mark.parametrize(
    "r, expected",
    [
        (0.95, CorrelationStrength.VERY_STRONG),
        (-0.75, CorrelationStrength.STRONG),
        (0.5, CorrelationStrength.MODERATE),
        (0.31, CorrelationStrength.WEAK),
        (-0.1, CorrelationStrength.VERY_WEAK),
    ],
)
def test_interpret_strength(r, expected):
    """Test strength thresholds on |r|."""
    assert CorrelationAnalyzer.interpret_strength(r) == expected


def test_spearman_monotone_nonlinear(analyzer):
    """Test a monotone but non-linear relationship has rank correlation 1."""
    x = [1, 2, 3, 4, 5, 6]
    y = [1, 8, 27, 64, 125, 216]

    result = analyzer.calculate_spearman_correlation(x, y)

    assert result.value == pytest.approx(1.0)
    assert result.correlation_type == CorrelationType.SPEARMAN
    assert result.methodology == "Spearman rank correlation coefficient"


def test_spearman_too_few_pairs_is_empty(analyzer):
    """Test the Spearman empty result keeps its correlation type."""
    result = analyzer.calculate_spearman_correlation([1, 2], [2, 1])

    assert result.is_empty
    assert result.correlation_type == CorrelationType.SPEARMAN
    assert result.methodology == "Spearman rank correlation"


def test_ranks_min_method_keeps_first_position(analyzer):
    """Test tied values share the rank of their first sorted position."""
    ranks = analyzer.calculate_ranks([10, 20, 20, 30])

    assert list(ranks) == [1.0, 2.0, 2.0, 4.0]


def test_ranks_average_method(analyzer):
    """Test tied values share their mean rank."""
    ranks = analyzer.calculate_ranks([10, 20, 20, 30], rank_method="average")

    assert list(ranks) == [1.0, 2.5, 2.5, 4.0]


def test_ranks_unknown_method(analyzer):
    """Test an unsupported tie policy raises."""
    with pytest.raises(InvalidInputError):
        analyzer.calculate_ranks([1, 2, 3], rank_method="dense")


def test_spearman_average_ties_match_scipy():
    """Test tie-averaged Spearman agrees with scipy."""
    analyzer = CorrelationAnalyzer(rank_method="average")
    x = [1, 2, 2, 3, 4, 4, 5, 6]
    y = [2, 1, 3, 3, 5, 4, 7, 6]
    expected, _ = sp_stats.spearmanr(x, y)

    result = analyzer.calculate_spearman_correlation(x, y)

    assert result.value == pytest.approx(expected, abs=1e-4)


def test_spearman_min_ties_differ_from_average():
    """Test the two tie policies are distinguishable on tied data."""
    x = [1, 1, 1, 2, 3]
    y = [1, 2, 3, 4, 5]

    legacy = CorrelationAnalyzer(rank_method="min").calculate_spearman_correlation(x, y)
    averaged = CorrelationAnalyzer(rank_method="average").calculate_spearman_correlation(x, y)

    assert legacy.value != averaged.value


def test_correlation_matrix(analyzer, metrics_frame):
    """Test the matrix covers numeric columns, is symmetric with unit diagonal."""
    matrix = analyzer.calculate_correlation_matrix(metrics_frame)

    assert list(matrix.columns) == ["sessions", "conversions", "bounce_rate"]
    assert np.allclose(np.diag(matrix.to_numpy()), 1.0)
    assert np.allclose(matrix.to_numpy(), matrix.to_numpy().T)
    assert matrix.loc["sessions", "conversions"] > 0.7


def test_correlation_matrix_constant_column_is_nan(analyzer, metrics_frame):
    """Test pairs without variance are reported as NaN."""
    frame = metrics_frame.assign(flat=1.0)

    matrix = analyzer.calculate_correlation_matrix(frame, method="spearman")

    assert np.isnan(matrix.loc["flat", "sessions"])


def test_correlation_matrix_unknown_method(analyzer, metrics_frame):
    """Test an unsupported matrix method raises."""
    with pytest.raises(InvalidInputError):
        analyzer.calculate_correlation_matrix(metrics_frame, method="kendall")


def test_pearson_huge_values_keep_sign(analyzer):
    """Test values near the float limit do not overflow into a wrong sign."""
    x = [1e200, 2e200, 3e200, 4e200]

    result = analyzer.calculate_pearson_correlation(x, x)

    assert result.value == pytest.approx(1.0)
    assert result.direction == CorrelationDirection.POSITIVE
    assert result.p_value == 0.0


def test_pearson_tiny_values(analyzer):
    """Test values near zero do not underflow into an empty result."""
    x = [1e-200, 2e-200, 3e-200, 4e-200]
    y = [4e-200, 3e-200, 2e-200, 1e-200]

    result = analyzer.calculate_pearson_correlation(x, y)

    assert not result.is_empty
    assert result.value == pytest.approx(-1.0)
    assert result.direction == CorrelationDirection.NEGATIVE


def test_pearson_overflowing_mean_is_empty(analyzer):
    """Test values whose mean overflows give the empty result."""
    result = analyzer.calculate_pearson_correlation(
        [1.7e308, 1.7e308, -1.0, 1.0], [1, 2, 3, 4]
    )

    assert result.is_empty
