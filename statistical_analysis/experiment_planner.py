import logging
from typing import Tuple

import numpy as np
from statsmodels.stats.power import zt_ind_solve_power
from statsmodels.stats.proportion import proportion_confint

from statistical_analysis.errors import InvalidInputError

logger = logging.getLogger(__name__)

MAX_TREATMENT_RATE = 0.99
CONFIDENCE_INTERVAL_METHODS = ('normal', 'wilson')


class ExperimentPlanner:
    """Power analysis and interval estimates for conversion-rate experiments"""

    def calculate_required_sample_size(
        self,
        baseline_rate: float,
        minimum_detectable_effect: float,
        power: float = 0.8,
        alpha: float = 0.05,
        two_sided: bool = True
    ) -> int:
        """Per-group sample size to detect a relative lift over a baseline conversion rate"""
        if not 0 < baseline_rate < 1:
            raise InvalidInputError(f"Baseline rate must be in (0, 1), got {baseline_rate}")
        if not minimum_detectable_effect > 0:
            raise InvalidInputError(
                f"Minimum detectable effect must be positive, got {minimum_detectable_effect}"
            )
        if not 0.5 <= power <= 0.99:
            raise InvalidInputError(f"Statistical power must be between 0.5 and 0.99, got {power}")
        if not 0.01 <= alpha <= 0.1:
            raise InvalidInputError(f"Significance level must be between 0.01 and 0.1, got {alpha}")

        treatment_rate = baseline_rate * (1 + minimum_detectable_effect)
        treatment_rate = min(treatment_rate, MAX_TREATMENT_RATE)  # Cap at 99%
        if treatment_rate <= baseline_rate:
            raise InvalidInputError(
                f"Baseline rate {baseline_rate} leaves no room for a detectable lift"
            )

        sample_size = zt_ind_solve_power(
            effect_size=self._proportion_effect_size(baseline_rate, treatment_rate),
            power=power,
            alpha=alpha,
            ratio=1.0,
            alternative='two-sided' if two_sided else 'larger'
        )
        logger.debug(
            f"Required sample size {sample_size:.1f} for {baseline_rate} -> {treatment_rate}"
        )
        return int(np.ceil(sample_size))

    def calculate_proportion_confidence_interval(
        self,
        successes: int,
        trials: int,
        confidence_level: float = 0.95,
        method: str = 'normal'
    ) -> Tuple[float, float]:
        """Confidence interval for a binomial proportion, clipped to [0, 1]"""
        if method not in CONFIDENCE_INTERVAL_METHODS:
            raise InvalidInputError(f"Unknown CI method: {method}")
        if not 0 < confidence_level < 1:
            raise InvalidInputError(f"Confidence level must be in (0, 1), got {confidence_level}")
        if trials < 0 or not 0 <= successes <= max(trials, 0):
            raise InvalidInputError(f"Need 0 <= successes <= trials, got {successes}/{trials}")

        if trials == 0:
            return (0.0, 0.0)

        lower, upper = proportion_confint(
            successes, trials, alpha=1 - confidence_level, method=method
        )
        return (max(0.0, float(lower)), min(1.0, float(upper)))

    def _proportion_effect_size(self, p1: float, p2: float) -> float:
        """Calculate effect size for proportion test (Cohen's h)"""
        h = 2 * (np.arcsin(np.sqrt(p1)) - np.arcsin(np.sqrt(p2)))
        return abs(h)
