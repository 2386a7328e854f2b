import logging
from typing import Sequence, Tuple

import numpy as np

from statistical_analysis.errors import InvalidInputError

logger = logging.getLogger(__name__)


def to_float_array(values: Sequence[float], name: str) -> np.ndarray:
    """Coerce a numeric sequence to a 1-d float array; None becomes NaN"""
    try:
        array = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{name} must contain only numeric values") from exc

    if array.ndim != 1:
        raise InvalidInputError(f"{name} must be one-dimensional, got shape {array.shape}")

    return array


def drop_non_finite(values: np.ndarray, name: str) -> np.ndarray:
    """Remove NaN and infinite observations from a single sample"""
    mask = np.isfinite(values)
    dropped = int(len(values) - mask.sum())
    if dropped:
        logger.warning(f"Dropped {dropped} non-finite value(s) from {name}")
    return values[mask]


def drop_non_finite_pairs(x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Remove pairs where either observation is NaN or infinite"""
    mask = np.isfinite(x) & np.isfinite(y)
    dropped = int(len(x) - mask.sum())
    if dropped:
        logger.warning(f"Dropped {dropped} pair(s) containing non-finite values")
    return x[mask], y[mask]
