'''
Pytest configuration and fixtures for the SVAR Toolbox test suite.

Provides seeded random generators, small reduced-form VARs with known
coefficients, a statsmodels-estimated VAR for cross-checks, and a fixture that
restores the default configuration after every test.
'''

from typing import Tuple

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm

from svar.core.config import reset_config
from svar.models.structural.base import ReducedFormVAR


# ---- Configuration ----

@pytest.fixture(autouse=True)
def restore_config():
    """Restore default configuration after each test."""
    yield
    reset_config()


# ---- Basic Data Generation Fixtures ----

@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def bivariate_sigma() -> np.ndarray:
    """Residual covariance with unit variances and correlation 0.5."""
    return np.array([[1.0, 0.5], [0.5, 1.0]])


@pytest.fixture
def bivariate_var(bivariate_sigma: np.ndarray) -> ReducedFormVAR:
    """Stable bivariate VAR(1) without deterministic terms."""
    a1 = np.array([[0.5, 0.1], [0.2, 0.3]])
    return ReducedFormVAR.from_lag_matrices([a1], sigma=bivariate_sigma)


@pytest.fixture
def trivariate_var2() -> ReducedFormVAR:
    """Stable trivariate VAR(2) with an intercept."""
    a1 = np.array([
        [0.5, 0.1, 0.0],
        [0.1, 0.4, 0.1],
        [0.0, 0.2, 0.3]
    ])
    a2 = np.array([
        [0.1, 0.0, 0.05],
        [0.0, 0.1, 0.0],
        [0.05, 0.0, 0.1]
    ])
    sigma = np.array([
        [1.0, 0.3, 0.2],
        [0.3, 0.8, 0.1],
        [0.2, 0.1, 0.5]
    ])
    return ReducedFormVAR.from_lag_matrices(
        [a1, a2],
        sigma=sigma,
        intercept=np.array([0.1, 0.0, -0.1]),
        var_names=["output", "prices", "rate"]
    )


def simulate_var(rng: np.random.Generator,
                 lag_matrices: np.ndarray,
                 impact: np.ndarray,
                 nobs: int,
                 burn: int = 100) -> Tuple[np.ndarray, np.ndarray]:
    """Simulate a VAR driven by structural shocks; returns (data, shocks)."""
    nlag, nvar = lag_matrices.shape[0], lag_matrices.shape[1]
    total = nobs + burn
    shocks = rng.standard_normal((total, nvar))
    resid = shocks @ impact.T
    y = np.zeros((total, nvar))
    for t in range(nlag, total):
        y[t] = resid[t]
        for j in range(nlag):
            y[t] += lag_matrices[j] @ y[t - j - 1]
    return y[burn:], shocks[burn:]


@pytest.fixture
def statsmodels_var(rng: np.random.Generator):
    """statsmodels VAR(2) fitted to simulated trivariate data."""
    lag_matrices = np.array([
        [[0.5, 0.1, 0.0], [0.1, 0.4, 0.1], [0.0, 0.2, 0.3]],
        [[0.1, 0.0, 0.05], [0.0, 0.1, 0.0], [0.05, 0.0, 0.1]]
    ])
    impact = np.array([[1.0, 0.0, 0.0], [0.4, 0.8, 0.0], [0.2, 0.1, 0.6]])
    data, _ = simulate_var(rng, lag_matrices, impact, nobs=400)
    frame = pd.DataFrame(data, columns=["gdp", "cpi", "ffr"])
    return sm.tsa.VAR(frame).fit(2)
