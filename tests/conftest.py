"""Pytest configuration and fixtures."""

import pytest
import numpy as np
import pandas as pd

from statistical_engine import StatisticalEngine


@pytest.fixture
def engine():
    """Engine with default configuration."""
    return StatisticalEngine()


@pytest.fixture
def correlated_samples():
    """Generate a noisy positively correlated pair of series."""
    rng = np.random.default_rng(42)
    x = rng.normal(size=200)
    y = 0.8 * x + rng.normal(scale=0.5, size=200)
    return x, y


@pytest.fixture
def metrics_frame():
    """Generate a small frame of numeric and non-numeric columns."""
    rng = np.random.default_rng(7)
    sessions = rng.normal(100, 15, size=50)
    return pd.DataFrame({
        "sessions": sessions,
        "conversions": sessions * 0.05 + rng.normal(scale=0.3, size=50),
        "bounce_rate": rng.uniform(0.2, 0.8, size=50),
        "channel": ["organic", "paid"] * 25,
    })
