"""Closed-form approximations of the normal and Student-t distributions.

Every inferential routine in the engine draws its p-values and critical values
from here, so none of them depends on a special-function library at runtime.
The approximations and their error bounds:

- erf: Abramowitz & Stegun 7.1.26, absolute error below 1.5e-7
- normal_inverse_cdf: Acklam's rational approximation with Beasley-Springer-Moro
  style tail coefficients, relative error below 1.2e-9
- t_critical / t_test_p_value: small-sample corrections of the normal values.
  They converge to the normal for df > 30 and understate the Student-t tails
  for small df, so they are not interchangeable with exact t quantiles
"""
from math import exp, fabs, isclose, isinf, log, sqrt
from typing import Sequence

from statistical_analysis.errors import InvalidInputError


# Abramowitz & Stegun 7.1.26
_ERF_A = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)
_ERF_P = 0.3275911

# Central region
_INV_A = (
    -3.969683028665376e+01, 2.209460984245205e+02, -2.759285104469687e+02,
    1.383577518672690e+02, -3.066479806614716e+01, 2.506628277459239e+00,
)
_INV_B = (
    -5.447609879822406e+01, 1.615858368580409e+02, -1.556989798598866e+02,
    6.680131188771972e+01, -1.328068155288572e+01,
)
# Tails
_INV_C = (
    -7.784894002430293e-03, -3.223964580411365e-01, -2.400758277161838e+00,
    -2.549732539343734e+00, 4.374664141464968e+00, 2.938163982698783e+00,
)
_INV_D = (
    7.784695709041462e-03, 3.224671290700398e-01, 2.445134137142996e+00,
    3.754408661907416e+00,
)
_INV_P_LOW = 0.02425

# alpha -> two-sided z critical value
_Z_CRITICAL_TABLE = {
    0.01: 2.576,
    0.05: 1.96,
    0.10: 1.645,
}

LARGE_SAMPLE_DF = 30


def _horner(coefficients: Sequence[float], x: float) -> float:
    result = 0.0
    for coefficient in coefficients:
        result = result * x + coefficient
    return result


def erf(x: float) -> float:
    """Error function, odd-symmetric rational approximation"""
    sign = 1.0 if x >= 0 else -1.0
    x = fabs(x)

    t = 1.0 / (1.0 + _ERF_P * x)
    a1, a2, a3, a4, a5 = _ERF_A
    y = 1.0 - (((((a5 * t + a4) * t) + a3) * t + a2) * t + a1) * t * exp(-x * x)

    return sign * y


def normal_cdf(z: float) -> float:
    """Standard normal cumulative distribution function"""
    return 0.5 * (1.0 + erf(z / sqrt(2.0)))


def normal_inverse_cdf(p: float) -> float:
    """Quantile of the standard normal distribution for p in (0, 1)"""
    if not 0 < p < 1:
        raise InvalidInputError(f"Probability must be between 0 and 1, got {p}")

    if p < _INV_P_LOW:
        q = sqrt(-2.0 * log(p))
        return _horner(_INV_C, q) / (_horner(_INV_D, q) * q + 1.0)

    if p > 1.0 - _INV_P_LOW:
        q = sqrt(-2.0 * log(1.0 - p))
        return -_horner(_INV_C, q) / (_horner(_INV_D, q) * q + 1.0)

    q = p - 0.5
    r = q * q
    return _horner(_INV_A, r) * q / (_horner(_INV_B, r) * r + 1.0)


def z_critical(confidence_level: float) -> float:
    """Two-sided z critical value for a confidence level in (0, 1)"""
    if not 0 < confidence_level < 1:
        raise InvalidInputError(f"Confidence level must be in (0, 1), got {confidence_level}")

    alpha = 1.0 - confidence_level
    for known_alpha, critical_value in _Z_CRITICAL_TABLE.items():
        if isclose(alpha, known_alpha, abs_tol=1e-9):
            return critical_value

    return normal_inverse_cdf(1.0 - alpha / 2.0)


def t_critical(confidence_level: float, df: float) -> float:
    """Approximate two-sided Student-t critical value.

    Above LARGE_SAMPLE_DF degrees of freedom this is the z critical value;
    below it the z value is inflated by 1 + 1/(4df) + 1/(96df^2).
    Not the exact t quantile.
    """
    if not df > 0:
        raise InvalidInputError(f"Degrees of freedom must be positive, got {df}")

    z = z_critical(confidence_level)
    if df > LARGE_SAMPLE_DF:
        return z

    adjustment = 1.0 + 1.0 / (4.0 * df) + 1.0 / (96.0 * df * df)
    return z * adjustment


def t_test_p_value(t_statistic: float, df: float) -> float:
    """Approximate two-tailed p-value of a t statistic"""
    if not df > 0:
        raise InvalidInputError(f"Degrees of freedom must be positive, got {df}")

    t = fabs(t_statistic)
    if isinf(t):
        return 0.0

    if df > LARGE_SAMPLE_DF:
        p_value = 2.0 * (1.0 - normal_cdf(t))
    else:
        adjustment = 1.0 + (t * t) / (4.0 * df)
        p_value = 2.0 * (1.0 - normal_cdf(t / sqrt(adjustment)))

    return min(1.0, max(0.0, p_value))
