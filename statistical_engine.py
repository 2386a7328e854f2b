import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from statistical_analysis import distributions
from statistical_analysis.correlation_analyzer import CorrelationAnalyzer
from statistical_analysis.engine_config import EngineConfig
from statistical_analysis.errors import InsufficientDataError, InvalidInputError, StatisticalError
from statistical_analysis.experiment_planner import ExperimentPlanner
from statistical_analysis.regression_analyzer import RegressionAnalyzer
from statistical_analysis.results import (
    CorrelationResult,
    Err,
    HypothesisTestResult,
    Ok,
    Outcome,
    ReadabilityResult,
    RegressionResult,
)
from statistical_analysis.significance_calculator import SignificanceCalculator
from content_analysis.readability_analyzer import ReadabilityAnalyzer

logger = logging.getLogger(__name__)


def _or_default(value, default):
    """Fall back to the configured default only when no value was passed"""
    return default if value is None else value


class StatisticalEngine:
    """Core statistical inference engine for analytics and experimentation.

    Holds nothing but an immutable EngineConfig, so a single instance can be
    shared across threads. Correlation returns an empty result on degenerate
    data; regression, t-tests and z-tests raise. analyze() wraps any operation
    in an explicit Ok/Err outcome for callers that prefer not to branch on
    which policy an operation follows.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self._correlation = CorrelationAnalyzer(
            precision=self.config.precision,
            rank_method=self.config.rank_method
        )
        self._regression = RegressionAnalyzer(precision=self.config.precision)
        self._significance = SignificanceCalculator(precision=self.config.precision)
        self._planner = ExperimentPlanner()
        self._readability = ReadabilityAnalyzer()

    def calculate_pearson_correlation(
        self,
        x: Sequence[float],
        y: Sequence[float],
        confidence_level: float = None
    ) -> CorrelationResult:
        """Pearson correlation with t-test significance and Fisher confidence interval"""
        return self._correlation.calculate_pearson_correlation(
            x, y, _or_default(confidence_level, self.config.default_confidence_level)
        )

    def calculate_spearman_correlation(
        self,
        x: Sequence[float],
        y: Sequence[float],
        confidence_level: float = None,
        rank_method: Optional[str] = None
    ) -> CorrelationResult:
        """Spearman rank correlation"""
        return self._correlation.calculate_spearman_correlation(
            x, y, _or_default(confidence_level, self.config.default_confidence_level), rank_method
        )

    def calculate_correlation_matrix(
        self,
        data: pd.DataFrame,
        method: str = 'pearson',
        confidence_level: float = None
    ) -> pd.DataFrame:
        """Pairwise correlation matrix over the numeric columns of a DataFrame"""
        return self._correlation.calculate_correlation_matrix(
            data, method, _or_default(confidence_level, self.config.default_confidence_level)
        )

    def perform_linear_regression(
        self,
        x: Sequence[float],
        y: Sequence[float],
        confidence_level: float = None
    ) -> RegressionResult:
        """Simple linear regression with slope significance"""
        return self._regression.perform_linear_regression(
            x, y, _or_default(confidence_level, self.config.default_confidence_level)
        )

    def perform_t_test(
        self,
        sample1: Sequence[float],
        sample2: Sequence[float],
        confidence_level: float = None,
        paired: bool = False
    ) -> HypothesisTestResult:
        """Welch or paired t-test comparing two samples"""
        return self._significance.perform_t_test(
            sample1, sample2,
            _or_default(confidence_level, self.config.default_confidence_level), paired
        )

    def test_statistical_significance(
        self,
        observed_value: float,
        expected_value: float,
        standard_error: float,
        test_type: str = 'two_tailed',
        alpha: float = None
    ) -> HypothesisTestResult:
        """z-test of an observed value against its expectation"""
        return self._significance.test_statistical_significance(
            observed_value, expected_value, standard_error, test_type,
            _or_default(alpha, self.config.default_alpha)
        )

    def perform_two_proportion_test(
        self,
        n1: int,
        p1: float,
        n2: int,
        p2: float,
        alpha: float = None
    ) -> HypothesisTestResult:
        """Two-proportion z-test of a treatment rate against a control rate"""
        return self._significance.perform_two_proportion_test(
            n1, p1, n2, p2, _or_default(alpha, self.config.default_alpha)
        )

    def correct_multiple_comparisons(
        self,
        p_values: Sequence[float],
        method: str = 'bonferroni'
    ) -> List[float]:
        """Apply multiple comparison corrections"""
        return self._significance.correct_multiple_comparisons(p_values, method)

    def calculate_required_sample_size(
        self,
        baseline_rate: float,
        minimum_detectable_effect: float,
        power: float = 0.8,
        alpha: float = None
    ) -> int:
        """Calculate required sample size per group for a conversion experiment"""
        return self._planner.calculate_required_sample_size(
            baseline_rate, minimum_detectable_effect, power,
            _or_default(alpha, self.config.default_alpha)
        )

    def calculate_proportion_confidence_interval(
        self,
        successes: int,
        trials: int,
        confidence_level: float = None,
        method: str = 'normal'
    ) -> Tuple[float, float]:
        """Confidence interval for an observed conversion rate"""
        return self._planner.calculate_proportion_confidence_interval(
            successes, trials,
            _or_default(confidence_level, self.config.default_confidence_level), method
        )

    def calculate_readability_score(self, text: str, method: str = None) -> ReadabilityResult:
        """Readability ease score of a text"""
        return self._readability.calculate_readability_score(
            text, _or_default(method, self.config.readability_method)
        )

    @staticmethod
    def normal_cdf(z: float) -> float:
        return distributions.normal_cdf(z)

    @staticmethod
    def normal_inverse_cdf(p: float) -> float:
        return distributions.normal_inverse_cdf(p)

    @staticmethod
    def z_critical(confidence_level: float) -> float:
        return distributions.z_critical(confidence_level)

    @staticmethod
    def t_critical(confidence_level: float, df: float) -> float:
        return distributions.t_critical(confidence_level, df)

    def analyze(self, operation: str, *args, **kwargs) -> Outcome:
        """Run a named operation and return Ok(result) or Err(reason, error).

        An empty correlation result is reported as Err with an
        InsufficientDataError. Only StatisticalError is converted; any other
        exception propagates.
        """
        operations = self._operations()
        if operation not in operations:
            raise InvalidInputError(
                f"Unknown operation: {operation}. Available: {sorted(operations)}"
            )

        try:
            result = operations[operation](*args, **kwargs)
        except StatisticalError as exc:
            logger.debug(f"{operation} failed: {exc}")
            return Err(reason=str(exc), error=exc)

        if isinstance(result, CorrelationResult) and result.is_empty:
            error = InsufficientDataError(
                f"{result.correlation_type.value} correlation needs at least 3 valid pairs "
                f"with non-zero variance"
            )
            return Err(reason=str(error), error=error)

        return Ok(result)

    def _operations(self) -> Dict[str, Callable[..., Any]]:
        return {
            'pearson_correlation': self.calculate_pearson_correlation,
            'spearman_correlation': self.calculate_spearman_correlation,
            'correlation_matrix': self.calculate_correlation_matrix,
            'linear_regression': self.perform_linear_regression,
            't_test': self.perform_t_test,
            'z_test': self.test_statistical_significance,
            'two_proportion_test': self.perform_two_proportion_test,
            'multiple_comparisons': self.correct_multiple_comparisons,
            'required_sample_size': self.calculate_required_sample_size,
            'proportion_confidence_interval': self.calculate_proportion_confidence_interval,
            'readability': self.calculate_readability_score,
        }


statistical_engine = StatisticalEngine()
