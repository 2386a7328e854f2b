import logging
from math import copysign, inf, sqrt
from typing import Sequence

import numpy as np

from statistical_analysis.distributions import t_critical, t_test_p_value
from statistical_analysis.errors import InsufficientDataError, InvalidInputError
from statistical_analysis.results import RegressionResult
from statistical_analysis.sample_utils import drop_non_finite_pairs, to_float_array

logger = logging.getLogger(__name__)

MIN_REGRESSION_SAMPLE = 3


class RegressionAnalyzer:
    """Ordinary least squares regression of y on a single predictor x"""

    def __init__(self, precision: int = 4):
        self.precision = precision

    def perform_linear_regression(
        self,
        x: Sequence[float],
        y: Sequence[float],
        confidence_level: float = 0.95
    ) -> RegressionResult:
        """Fit y = slope * x + intercept and test the slope against zero.

        Raises:
            InsufficientDataError: fewer than three finite pairs, unequal
                lengths, or a constant predictor
            InvalidInputError: values too large for the sums of squares
        """
        x_values = to_float_array(x, 'x')
        y_values = to_float_array(y, 'y')

        if len(x_values) != len(y_values):
            raise InsufficientDataError(
                f"Regression needs paired data, got lengths {len(x_values)} and {len(y_values)}"
            )

        x_values, y_values = drop_non_finite_pairs(x_values, y_values)
        n = len(x_values)

        if n < MIN_REGRESSION_SAMPLE:
            raise InsufficientDataError(
                f"Insufficient data for regression analysis: {n} pairs, need {MIN_REGRESSION_SAMPLE}"
            )

        # Sums of squares around the means
        x_dev = x_values - x_values.mean()
        y_dev = y_values - y_values.mean()

        sum_xy = float(np.sum(x_dev * y_dev))
        sum_xx = float(np.sum(x_dev * x_dev))
        sum_yy = float(np.sum(y_dev * y_dev))

        if not all(np.isfinite(total) for total in (sum_xy, sum_xx, sum_yy)):
            raise InvalidInputError("Values overflow the float range in regression sums of squares")
        if sum_xx == 0:
            raise InsufficientDataError("No variance in independent variable")

        slope = sum_xy / sum_xx
        intercept = float(y_values.mean()) - slope * float(x_values.mean())

        predictions = slope * x_values + intercept
        residuals = y_values - predictions

        # Goodness of fit
        degrees_of_freedom = n - 2
        ss_total = sum_yy
        ss_residual = float(np.sum(residuals * residuals))
        if ss_total == 0:
            r_squared = 0.0
            adjusted_r_squared = 0.0
        else:
            r_squared = 1.0 - ss_residual / ss_total
            adjusted_r_squared = 1.0 - (ss_residual / degrees_of_freedom) / (ss_total / (n - 1))

        # Slope significance
        mse = ss_residual / degrees_of_freedom
        standard_error = sqrt(mse / sum_xx)

        if standard_error > 0:
            t_statistic = slope / standard_error
        elif slope != 0:
            logger.debug("Residuals are zero, slope t statistic is infinite")
            t_statistic = copysign(inf, slope)
        else:
            t_statistic = 0.0
        p_value = t_test_p_value(t_statistic, degrees_of_freedom)

        margin = t_critical(confidence_level, degrees_of_freedom) * standard_error
        lower, upper = slope - margin, slope + margin

        return RegressionResult(
            slope=round(slope, self.precision),
            intercept=round(intercept, self.precision),
            r_squared=round(r_squared, self.precision),
            adjusted_r_squared=round(adjusted_r_squared, self.precision),
            standard_error=round(standard_error, self.precision),
            t_statistic=round(t_statistic, self.precision),
            p_value=p_value,
            confidence_interval=(round(lower, self.precision), round(upper, self.precision)),
            residuals=tuple(float(value) for value in residuals),
            predictions=tuple(float(value) for value in predictions),
            sample_size=n,
        )
