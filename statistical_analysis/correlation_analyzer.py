import logging
from dataclasses import replace
from math import atanh, copysign, inf, sqrt, tanh
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.stats import rankdata

from statistical_analysis.distributions import t_test_p_value, z_critical
from statistical_analysis.errors import InvalidInputError
from statistical_analysis.results import (
    CorrelationDirection,
    CorrelationResult,
    CorrelationStrength,
    CorrelationType,
)
from statistical_analysis.sample_utils import drop_non_finite_pairs, to_float_array

logger = logging.getLogger(__name__)

MIN_CORRELATION_SAMPLE = 3
PERFECT_CORRELATION_TOLERANCE = 1e-12

# |r| lower bound -> strength, checked from the strongest down
_STRENGTH_THRESHOLDS = (
    (0.9, CorrelationStrength.VERY_STRONG),
    (0.7, CorrelationStrength.STRONG),
    (0.5, CorrelationStrength.MODERATE),
    (0.3, CorrelationStrength.WEAK),
)


class CorrelationAnalyzer:
    """Pearson and Spearman correlation with significance and Fisher confidence intervals.

    Correlation never raises on degenerate data: too few valid pairs, unequal
    lengths or a constant series all produce CorrelationResult.empty().
    """

    def __init__(self, precision: int = 4, rank_method: str = 'min'):
        self.precision = precision
        self.rank_method = rank_method

    def calculate_pearson_correlation(
        self,
        x: Sequence[float],
        y: Sequence[float],
        confidence_level: float = 0.95
    ) -> CorrelationResult:
        """Pearson product-moment correlation with t-test significance"""
        critical_value = z_critical(confidence_level)
        x_values = to_float_array(x, 'x')
        y_values = to_float_array(y, 'y')

        if len(x_values) != len(y_values) or len(x_values) < MIN_CORRELATION_SAMPLE:
            logger.debug(
                f"Pearson correlation needs {MIN_CORRELATION_SAMPLE}+ paired values, "
                f"got lengths {len(x_values)} and {len(y_values)}"
            )
            return CorrelationResult.empty(CorrelationType.PEARSON)

        valid_x, valid_y = drop_non_finite_pairs(x_values, y_values)
        n = len(valid_x)

        if n < MIN_CORRELATION_SAMPLE:
            logger.debug(f"Only {n} valid pairs remain for Pearson correlation")
            return CorrelationResult.empty(CorrelationType.PEARSON)

        # Deviations from the means, scaled to a max magnitude of 1 so the
        # products below stay finite for very large or very small values
        x_dev = valid_x - valid_x.mean()
        y_dev = valid_y - valid_y.mean()
        x_scale = float(np.max(np.abs(x_dev)))
        y_scale = float(np.max(np.abs(y_dev)))

        if not (np.isfinite(x_scale) and np.isfinite(y_scale)):
            logger.debug("Values overflow the float range, Pearson correlation undefined")
            return CorrelationResult.empty(CorrelationType.PEARSON)
        if x_scale == 0 or y_scale == 0:
            logger.debug("Zero variance in a series, Pearson correlation undefined")
            return CorrelationResult.empty(CorrelationType.PEARSON)

        x_dev = x_dev / x_scale
        y_dev = y_dev / y_scale

        numerator = float(np.sum(x_dev * y_dev))
        denominator = sqrt(float(np.sum(x_dev * x_dev)) * float(np.sum(y_dev * y_dev)))

        correlation = min(1.0, max(-1.0, numerator / denominator))
        is_perfect = 1.0 - abs(correlation) < PERFECT_CORRELATION_TOLERANCE

        # Significance of r against zero
        degrees_of_freedom = n - 2
        if is_perfect:
            t_statistic = copysign(inf, correlation)
        else:
            t_statistic = correlation * sqrt(degrees_of_freedom / (1.0 - correlation * correlation))
        p_value = t_test_p_value(t_statistic, degrees_of_freedom)

        standard_error, (lower, upper) = self._fisher_interval(
            correlation, n, critical_value, is_perfect
        )

        return CorrelationResult(
            value=round(correlation, self.precision),
            confidence=confidence_level * 100,
            sample_size=n,
            methodology='Pearson product-moment correlation with Fisher transformation',
            p_value=p_value,
            standard_error=standard_error,
            confidence_interval=(round(lower, self.precision), round(upper, self.precision)),
            correlation_type=CorrelationType.PEARSON,
            strength=self.interpret_strength(correlation),
            direction=self.interpret_direction(correlation),
        )

    def calculate_spearman_correlation(
        self,
        x: Sequence[float],
        y: Sequence[float],
        confidence_level: float = 0.95,
        rank_method: Optional[str] = None
    ) -> CorrelationResult:
        """Spearman rank correlation: Pearson correlation of the rank-transformed series"""
        z_critical(confidence_level)  # validates confidence_level
        x_values = to_float_array(x, 'x')
        y_values = to_float_array(y, 'y')

        if len(x_values) != len(y_values) or len(x_values) < MIN_CORRELATION_SAMPLE:
            logger.debug(
                f"Spearman correlation needs {MIN_CORRELATION_SAMPLE}+ paired values, "
                f"got lengths {len(x_values)} and {len(y_values)}"
            )
            return CorrelationResult.empty(CorrelationType.SPEARMAN)

        valid_x, valid_y = drop_non_finite_pairs(x_values, y_values)

        result = self.calculate_pearson_correlation(
            self.calculate_ranks(valid_x, rank_method),
            self.calculate_ranks(valid_y, rank_method),
            confidence_level
        )

        if result.is_empty:
            return CorrelationResult.empty(CorrelationType.SPEARMAN)

        return replace(
            result,
            correlation_type=CorrelationType.SPEARMAN,
            methodology='Spearman rank correlation coefficient'
        )

    def calculate_correlation_matrix(
        self,
        data: pd.DataFrame,
        method: str = 'pearson',
        confidence_level: float = 0.95
    ) -> pd.DataFrame:
        """Pairwise correlation of the numeric columns of a DataFrame.

        Pairs for which no correlation can be computed are reported as NaN.
        """
        if method == 'pearson':
            correlate = self.calculate_pearson_correlation
        elif method == 'spearman':
            correlate = self.calculate_spearman_correlation
        else:
            raise InvalidInputError(f"Unknown correlation method: {method}")

        numeric = data.select_dtypes(include=[np.number])
        columns = list(numeric.columns)
        matrix = pd.DataFrame(np.nan, index=columns, columns=columns, dtype=float)

        for i, first in enumerate(columns):
            for second in columns[i:]:
                result = correlate(
                    numeric[first].to_numpy(), numeric[second].to_numpy(), confidence_level
                )
                value = np.nan if result.is_empty else result.value
                matrix.loc[first, second] = value
                matrix.loc[second, first] = value

        return matrix

    def calculate_ranks(self, values: Sequence[float], rank_method: Optional[str] = None) -> np.ndarray:
        """1-based ranks; ties get the lowest shared rank ('min') or their mean rank ('average')"""
        method = rank_method or self.rank_method
        if method not in ('min', 'average'):
            raise InvalidInputError(f"Unknown rank method: {method}")
        return rankdata(values, method=method).astype(float)

    def _fisher_interval(
        self,
        correlation: float,
        n: int,
        critical_value: float,
        is_perfect: bool
    ) -> Tuple[float, Tuple[float, float]]:
        """Standard error of the Fisher z and the back-transformed interval for r"""
        standard_error = 1.0 / sqrt(n - 3) if n > 3 else inf

        if is_perfect:
            return standard_error, (correlation, correlation)
        if standard_error == inf:
            return standard_error, (-1.0, 1.0)

        fisher_z = atanh(correlation)
        margin = critical_value * standard_error
        return standard_error, (tanh(fisher_z - margin), tanh(fisher_z + margin))

    @staticmethod
    def interpret_strength(correlation: float) -> CorrelationStrength:
        """Classify |r| into a strength band"""
        magnitude = abs(correlation)
        for threshold, strength in _STRENGTH_THRESHOLDS:
            if magnitude >= threshold:
                return strength
        return CorrelationStrength.VERY_WEAK

    @staticmethod
    def interpret_direction(correlation: float) -> CorrelationDirection:
        if correlation > 0:
            return CorrelationDirection.POSITIVE
        if correlation < 0:
            return CorrelationDirection.NEGATIVE
        return CorrelationDirection.NONE
