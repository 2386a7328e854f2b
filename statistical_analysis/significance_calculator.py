import logging
from enum import Enum
from math import fabs, sqrt
from typing import List, Sequence

import numpy as np

from statistical_analysis.distributions import normal_cdf, t_critical, t_test_p_value, z_critical
from statistical_analysis.errors import InsufficientDataError, InvalidInputError
from statistical_analysis.results import HypothesisTestResult
from statistical_analysis.sample_utils import (
    drop_non_finite,
    drop_non_finite_pairs,
    to_float_array,
)

logger = logging.getLogger(__name__)

MIN_GROUP_SAMPLE = 2


class TailType(Enum):
    TWO_TAILED = "two_tailed"
    ONE_TAILED = "one_tailed"


class CorrectionMethod(Enum):
    BONFERRONI = "bonferroni"
    BENJAMINI_HOCHBERG = "benjamini_hochberg"


class SignificanceCalculator:
    """t-tests, z-tests and multiple comparison corrections.

    Every test fails fast: samples that are too small, mismatched or without
    variance raise instead of returning a placeholder result.
    """

    def __init__(self, precision: int = 4):
        self.precision = precision

    def perform_t_test(
        self,
        sample1: Sequence[float],
        sample2: Sequence[float],
        confidence_level: float = 0.95,
        paired: bool = False
    ) -> HypothesisTestResult:
        """Welch's independent two-sample t-test, or a paired t-test on the differences"""
        first = to_float_array(sample1, 'sample1')
        second = to_float_array(sample2, 'sample2')

        if len(first) < MIN_GROUP_SAMPLE or len(second) < MIN_GROUP_SAMPLE:
            raise InsufficientDataError('Insufficient sample size for t-test')

        if paired:
            test_statistic, degrees_of_freedom, effect_size = self._paired_statistics(first, second)
            test_type = 'Paired t-test'
        else:
            test_statistic, degrees_of_freedom, effect_size = self._welch_statistics(first, second)
            test_type = 'Independent samples t-test (Welch)'

        p_value = t_test_p_value(test_statistic, degrees_of_freedom)
        critical_value = t_critical(confidence_level, degrees_of_freedom)

        return HypothesisTestResult(
            test_statistic=round(test_statistic, self.precision),
            p_value=p_value,
            critical_value=round(critical_value, self.precision),
            reject_null=fabs(test_statistic) > critical_value,
            confidence_level=confidence_level * 100,
            test_type=test_type,
            effect_size=round(effect_size, self.precision),
            degrees_of_freedom=degrees_of_freedom,
        )

    def test_statistical_significance(
        self,
        observed_value: float,
        expected_value: float,
        standard_error: float,
        test_type: str = 'two_tailed',
        alpha: float = 0.05
    ) -> HypothesisTestResult:
        """z-test of an observed value against an expected value with known standard error"""
        tail = self._parse_enum(TailType, test_type, 'test type')

        if not 0 < alpha < 1:
            raise InvalidInputError(f"Alpha must be in (0, 1), got {alpha}")
        if tail == TailType.ONE_TAILED and alpha >= 0.5:
            raise InvalidInputError(f"One-tailed alpha must be below 0.5, got {alpha}")
        if not standard_error > 0:
            raise InvalidInputError(f"Standard error must be positive, got {standard_error}")

        z_score = (observed_value - expected_value) / standard_error
        tail_probability = 1.0 - normal_cdf(fabs(z_score))

        if tail == TailType.TWO_TAILED:
            p_value = 2.0 * tail_probability
            critical_value = z_critical(1.0 - alpha)
        else:
            p_value = tail_probability
            critical_value = z_critical(1.0 - alpha * 2.0)
        p_value = min(1.0, max(0.0, p_value))

        return HypothesisTestResult(
            test_statistic=round(z_score, self.precision),
            p_value=round(p_value, self.precision),
            critical_value=round(critical_value, self.precision),
            reject_null=p_value < alpha,
            confidence_level=(1.0 - alpha) * 100,
            test_type=f"Z-test ({tail.value})",
        )

    def perform_two_proportion_test(
        self,
        n1: int,
        p1: float,
        n2: int,
        p2: float,
        alpha: float = 0.05
    ) -> HypothesisTestResult:
        """Pooled two-proportion z-test of treatment rate p2 against control rate p1"""
        if not 0 < alpha < 1:
            raise InvalidInputError(f"Alpha must be in (0, 1), got {alpha}")
        if n1 < 0 or n2 < 0:
            raise InvalidInputError(f"Group sizes must be non-negative, got {n1} and {n2}")
        if not (0 <= p1 <= 1 and 0 <= p2 <= 1):
            raise InvalidInputError(f"Proportions must be in [0, 1], got {p1} and {p2}")

        critical_value = z_critical(1.0 - alpha)
        test_type = 'Two-proportion z-test'

        if n1 == 0 or n2 == 0:
            logger.debug("Empty group in two-proportion test, nothing to compare")
            return HypothesisTestResult(
                test_statistic=0.0,
                p_value=1.0,
                critical_value=round(critical_value, self.precision),
                reject_null=False,
                confidence_level=(1.0 - alpha) * 100,
                test_type=test_type,
            )

        pooled = (n1 * p1 + n2 * p2) / (n1 + n2)
        standard_error = sqrt(pooled * (1.0 - pooled) * (1.0 / n1 + 1.0 / n2))
        z_score = (p2 - p1) / standard_error if standard_error > 0 else 0.0
        p_value = min(1.0, max(0.0, 2.0 * (1.0 - normal_cdf(fabs(z_score)))))

        # Cohen's h
        effect_size = 2.0 * (np.arcsin(np.sqrt(p2)) - np.arcsin(np.sqrt(p1)))

        return HypothesisTestResult(
            test_statistic=round(z_score, self.precision),
            p_value=round(p_value, self.precision),
            critical_value=round(critical_value, self.precision),
            reject_null=fabs(z_score) > critical_value,
            confidence_level=(1.0 - alpha) * 100,
            test_type=test_type,
            effect_size=round(float(effect_size), self.precision),
        )

    def correct_multiple_comparisons(
        self,
        p_values: Sequence[float],
        method: str = 'bonferroni'
    ) -> List[float]:
        """Adjust p-values for multiple comparisons, capped at 1"""
        correction = self._parse_enum(CorrectionMethod, method, 'correction method')
        n = len(p_values)
        if n == 0:
            return []

        if correction == CorrectionMethod.BONFERRONI:
            return [min(p * n, 1.0) for p in p_values]

        # Benjamini-Hochberg step-up: walk from the largest p-value down,
        # keeping the adjusted values monotone
        sorted_pvals = sorted(enumerate(p_values), key=lambda x: x[1])
        corrected = [0.0] * n
        running_min = 1.0

        for rank in range(n, 0, -1):
            original_idx, p_val = sorted_pvals[rank - 1]
            running_min = min(running_min, p_val * n / rank)
            corrected[original_idx] = running_min

        return corrected

    def _welch_statistics(self, first: np.ndarray, second: np.ndarray):
        first = drop_non_finite(first, 'sample1')
        second = drop_non_finite(second, 'sample2')
        n1, n2 = len(first), len(second)

        if n1 < MIN_GROUP_SAMPLE or n2 < MIN_GROUP_SAMPLE:
            raise InsufficientDataError('Insufficient sample size for t-test')

        mean1, mean2 = float(np.mean(first)), float(np.mean(second))
        var1, var2 = float(np.var(first, ddof=1)), float(np.var(second, ddof=1))

        standard_error = sqrt(var1 / n1 + var2 / n2)
        if standard_error == 0:
            raise InsufficientDataError('Both samples have zero variance')

        pooled_std = sqrt(((n1 - 1) * var1 + (n2 - 1) * var2) / (n1 + n2 - 2))
        test_statistic = (mean1 - mean2) / standard_error

        # Welch-Satterthwaite degrees of freedom
        degrees_of_freedom = (var1 / n1 + var2 / n2) ** 2 / (
            (var1 / n1) ** 2 / (n1 - 1) + (var2 / n2) ** 2 / (n2 - 1)
        )

        # Cohen's d on the pooled standard deviation
        effect_size = (mean1 - mean2) / pooled_std

        return test_statistic, degrees_of_freedom, effect_size

    def _paired_statistics(self, first: np.ndarray, second: np.ndarray):
        if len(first) != len(second):
            raise InvalidInputError('Paired t-test requires equal sample sizes')

        first, second = drop_non_finite_pairs(first, second)
        differences = first - second
        n = len(differences)

        if n < MIN_GROUP_SAMPLE:
            raise InsufficientDataError('Insufficient sample size for t-test')

        mean_diff = float(np.mean(differences))
        std_diff = float(np.std(differences, ddof=1))
        if std_diff == 0:
            raise InsufficientDataError('Paired differences have zero variance')

        test_statistic = mean_diff / (std_diff / sqrt(n))
        effect_size = mean_diff / std_diff

        return test_statistic, n - 1, effect_size

    @staticmethod
    def _parse_enum(enum_cls, value, label: str):
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(value)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown {label}: {value}") from exc
