# tests/test_variance_decomposition.py
"""
Tests for the forecast error variance decomposition.
"""

import warnings

import numpy as np
import pytest
from numpy.testing import assert_allclose
from hypothesis import HealthCheck, given, settings, strategies as st

from svar.core.config import set_config
from svar.core.exceptions import (
    DataError, DegenerateForecastVarianceError, DimensionError, NumericWarning,
    PartialIdentificationError
)
from svar.models.structural.identification import long_run_impact, recursive_impact
from svar.models.structural.multipliers import compute_multipliers
from svar.models.structural.variance_decomposition import (
    VarianceDecompositionResult, compute_variance_decomposition
)


def multipliers_for(var, nsteps):
    return compute_multipliers(var.coefficients, var.nlag, var.nvar, var.const, nsteps)


class TestComputeVarianceDecomposition:
    """Tests for the decomposition shares and forecast standard errors."""

    def test_shares_sum_to_100(self, trivariate_var2):
        B = recursive_impact(trivariate_var2.sigma)
        result = compute_variance_decomposition(
            B, multipliers_for(trivariate_var2, 20), trivariate_var2.sigma, 20
        )
        assert result.fevd.shape == (20, 3, 3)
        assert_allclose(result.fevd.sum(axis=1), 100.0, rtol=1e-10)
        assert result.degenerate_cells == []

    def test_impact_horizon(self, bivariate_var):
        """At horizon 0 the share is the squared impact over the variance."""
        sigma = bivariate_var.sigma
        B = recursive_impact(sigma)
        result = compute_variance_decomposition(B, multipliers_for(bivariate_var, 4), sigma, 4)
        for v in range(2):
            for m in range(2):
                assert_allclose(result.fevd[0, m, v], 100.0 * B[v, m] ** 2 / sigma[v, v])
        assert_allclose(result.fevd[0, :, 0], [100.0, 0.0], atol=1e-12)

    def test_forecast_standard_errors(self, trivariate_var2):
        sigma = trivariate_var2.sigma
        psi = multipliers_for(trivariate_var2, 5)
        result = compute_variance_decomposition(recursive_impact(sigma), psi, sigma, 5)
        assert_allclose(result.forecast_se[0], np.sqrt(np.diag(sigma)))
        expected = np.sqrt(np.diag(sum(psi[k] @ sigma @ psi[k].T for k in range(3))))
        assert_allclose(result.forecast_se[2], expected)
        assert np.all(np.diff(result.forecast_se, axis=0) >= 0)

    def test_single_variable(self):
        psi = compute_multipliers(np.array([[0.7]]), 1, 1, 0, 6)
        result = compute_variance_decomposition(np.array([[1.3]]), psi, np.array([[1.69]]), 6)
        assert_allclose(result.fevd[:, 0, 0], 100.0)

    def test_long_run_shares_sum_to_100(self, bivariate_var):
        B = long_run_impact(bivariate_var.sigma, bivariate_var.companion)
        result = compute_variance_decomposition(
            B, multipliers_for(bivariate_var, 10), bivariate_var.sigma, 10
        )
        assert_allclose(result.fevd.sum(axis=1), 100.0, rtol=1e-9)

    @given(st.integers(min_value=1, max_value=4), st.integers(min_value=0, max_value=10_000))
    @settings(max_examples=20, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_shares_property(self, nvar, seed):
        """Property: shares lie in [0, 100] and sum to 100 for any covariance."""
        rng = np.random.default_rng(seed)
        X = rng.standard_normal((nvar, nvar))
        sigma = X @ X.T + nvar * np.eye(nvar)
        coefficients = 0.2 * rng.standard_normal((nvar, nvar)) / nvar
        psi = compute_multipliers(coefficients, 1, nvar, 0, 8)
        result = compute_variance_decomposition(recursive_impact(sigma), psi, sigma, 8)
        assert np.all(result.fevd >= -1e-9)
        assert np.all(result.fevd <= 100.0 + 1e-9)
        assert_allclose(result.fevd.sum(axis=1), 100.0, rtol=1e-9)

    def test_numpy_path_matches_numba(self, trivariate_var2):
        sigma = trivariate_var2.sigma
        B = recursive_impact(sigma)
        psi = multipliers_for(trivariate_var2, 12)
        fast = compute_variance_decomposition(B, psi, sigma, 12)
        set_config("core", "enable_numba", False)
        plain = compute_variance_decomposition(B, psi, sigma, 12)
        assert_allclose(fast.fevd, plain.fevd, rtol=1e-10)
        assert_allclose(fast.forecast_se, plain.forecast_se, rtol=1e-12)

    def test_short_multipliers(self, bivariate_var):
        B = recursive_impact(bivariate_var.sigma)
        with pytest.raises(DimensionError):
            compute_variance_decomposition(B, multipliers_for(bivariate_var, 3), bivariate_var.sigma, 5)


class TestDegenerateVariance:
    """Tests for variables with zero forecast error variance."""

    @pytest.fixture
    def degenerate_inputs(self):
        sigma = np.diag([1.0, 0.0])
        B = np.array([[1.0, 0.0], [0.0, 0.0]])
        psi = compute_multipliers(np.diag([0.5, 0.0]), 1, 2, 0, 3)
        return B, psi, sigma

    def test_reported_as_nan(self, degenerate_inputs):
        B, psi, sigma = degenerate_inputs
        with pytest.warns(NumericWarning):
            result = compute_variance_decomposition(B, psi, sigma, 3)
        assert result.degenerate_cells == [(0, 1), (1, 1), (2, 1)]
        assert np.all(np.isnan(result.fevd[:, :, 1]))
        assert_allclose(result.fevd[:, 0, 0], 100.0)
        assert_allclose(result.forecast_se[:, 1], 0.0)

    def test_strict_raises(self, degenerate_inputs):
        B, psi, sigma = degenerate_inputs
        with pytest.raises(DegenerateForecastVarianceError) as excinfo:
            compute_variance_decomposition(B, psi, sigma, 3, strict=True)
        assert (0, 1) in excinfo.value.cells

    def test_no_warning_when_regular(self, bivariate_var):
        B = recursive_impact(bivariate_var.sigma)
        with warnings.catch_warnings():
            warnings.simplefilter("error", NumericWarning)
            compute_variance_decomposition(B, multipliers_for(bivariate_var, 3), bivariate_var.sigma, 3)


class TestIdentificationCoverage:
    """Tests for impact matrices with unidentified columns."""

    def test_unidentified_column(self, bivariate_var):
        B = np.array([[1.0, np.nan], [0.5, np.nan]])
        with pytest.raises(PartialIdentificationError) as excinfo:
            compute_variance_decomposition(B, multipliers_for(bivariate_var, 3), bivariate_var.sigma, 3)
        assert excinfo.value.identified_shocks == (0,)

    def test_stray_non_finite_value(self, bivariate_var):
        B = np.array([[1.0, 0.0], [0.5, np.inf]])
        with pytest.raises(DataError):
            compute_variance_decomposition(B, multipliers_for(bivariate_var, 3), bivariate_var.sigma, 3)


class TestVarianceDecompositionResult:
    """Tests for the results container."""

    def test_to_pandas(self, trivariate_var2):
        sigma = trivariate_var2.sigma
        result = compute_variance_decomposition(
            recursive_impact(sigma), multipliers_for(trivariate_var2, 4), sigma, 4,
            var_names=list(trivariate_var2.var_names), scheme="recursive"
        )
        frames = result.to_pandas()
        assert set(frames) == {"fevd_output", "fevd_prices", "fevd_rate", "forecast_se"}
        assert frames["fevd_rate"].shape == (4, 3)
        assert_allclose(frames["fevd_rate"].sum(axis=1).to_numpy(), 100.0)
        assert list(frames["forecast_se"].columns) == ["output", "prices", "rate"]

    def test_summary(self, bivariate_var):
        result = compute_variance_decomposition(
            recursive_impact(bivariate_var.sigma), multipliers_for(bivariate_var, 5),
            bivariate_var.sigma, 5, scheme="recursive"
        )
        text = result.summary()
        assert "Forecast Error Variance Decomposition" in text
        assert "Identification: recursive" in text
        assert "Horizon 4" in text

    def test_rejects_wrong_rank(self):
        with pytest.raises(DimensionError):
            VarianceDecompositionResult(fevd=np.zeros((3, 2)), forecast_se=np.zeros((3, 2)))
