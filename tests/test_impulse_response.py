# tests/test_impulse_response.py
"""
Tests for structural impulse responses.
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from svar.core.config import set_config
from svar.core.exceptions import (
    DimensionError, MissingConfigurationError, NumericError, ParameterError
)
from svar.models.structural.base import IdentificationConfig, Recursion, ReducedFormVAR, ShockSize
from svar.models.structural.identification import recursive_impact
from svar.models.structural.impulse_response import (
    ImpulseResponseResult, compute_impulse_response, impulse_vectors, propagate
)
from svar.models.structural.multipliers import compute_multipliers


def multipliers_for(var, nsteps):
    return compute_multipliers(var.coefficients, var.nlag, var.nvar, var.const, nsteps)


class TestImpulseVectors:
    """Tests for the impact normalisation."""

    def test_one_std_dev(self):
        B = np.array([[2.0, 0.0], [1.0, 0.5]])
        assert_array_equal(impulse_vectors(B, ShockSize.ONE_STD_DEV), B)

    def test_unit(self):
        B = np.array([[2.0, 0.0], [1.0, 0.5]])
        vectors = impulse_vectors(B, ShockSize.UNIT)
        assert_allclose(np.diag(vectors), [1.0, 1.0])
        assert_allclose(vectors[:, 0], [1.0, 0.5])

    def test_unit_with_zero_diagonal(self):
        B = np.array([[0.0, 1.0], [1.0, 0.0]])
        with pytest.raises(NumericError):
            impulse_vectors(B, ShockSize.UNIT)

    def test_selected_shocks(self):
        vectors = impulse_vectors(np.eye(3), ShockSize.ONE_STD_DEV, shocks=[1])
        assert_array_equal(vectors[:, 1], [0.0, 1.0, 0.0])
        assert np.all(np.isnan(vectors[:, [0, 2]]))


class TestComputeImpulseResponse:
    """Tests for full response tensors."""

    def test_single_horizon_is_impact(self, bivariate_var):
        B = recursive_impact(bivariate_var.sigma)
        config = IdentificationConfig(nsteps=1)
        result = compute_impulse_response(B, config, multipliers=multipliers_for(bivariate_var, 1))
        assert result.irf.shape == (1, 2, 2)
        assert_allclose(result.irf[0], B)

    def test_wold_responses(self, trivariate_var2):
        B = recursive_impact(trivariate_var2.sigma)
        psi = multipliers_for(trivariate_var2, 10)
        result = compute_impulse_response(B, IdentificationConfig(nsteps=10), multipliers=psi)
        for h in range(10):
            assert_allclose(result.irf[h], psi[h] @ B, atol=1e-12)
        assert result.nsteps == 10

    def test_unit_shock_diagonal(self, trivariate_var2):
        B = recursive_impact(trivariate_var2.sigma)
        config = IdentificationConfig(nsteps=5, impact="unit")
        result = compute_impulse_response(B, config, multipliers=multipliers_for(trivariate_var2, 5))
        assert_allclose(np.diag(result.irf[0]), np.ones(3))
        assert result.impact == ShockSize.UNIT

    def test_companion_matches_wold(self, trivariate_var2):
        B = recursive_impact(trivariate_var2.sigma)
        wold = compute_impulse_response(
            B, IdentificationConfig(nsteps=12), multipliers=multipliers_for(trivariate_var2, 12)
        )
        companion = compute_impulse_response(
            B, IdentificationConfig(nsteps=12, recursion="companion"), companion=trivariate_var2.companion
        )
        assert_allclose(companion.irf, wold.irf, atol=1e-12)

    def test_shut_wold(self, trivariate_var2):
        """Under the Wold recursion only the impact row is shut."""
        B = recursive_impact(trivariate_var2.sigma)
        psi = multipliers_for(trivariate_var2, 6)
        open_ = compute_impulse_response(B, IdentificationConfig(nsteps=6), multipliers=psi)
        shut = compute_impulse_response(B, IdentificationConfig(nsteps=6, shut=1), multipliers=psi)
        assert_array_equal(shut.irf[0, 1, :], 0.0)
        assert_allclose(shut.irf[0, [0, 2], :], open_.irf[0, [0, 2], :])
        assert_allclose(shut.irf[1:], open_.irf[1:])
        assert shut.shut == 1

    def test_shut_companion(self, trivariate_var2):
        """Under the companion recursion the shut variable stays at zero."""
        B = recursive_impact(trivariate_var2.sigma)
        config = IdentificationConfig(nsteps=8, shut=0, recursion="companion")
        result = compute_impulse_response(B, config, companion=trivariate_var2.companion)
        assert_allclose(result.irf[:, 0, :], 0.0, atol=1e-15)
        # The bundle's companion matrix is left untouched
        assert np.any(trivariate_var2.companion[0] != 0.0)

    def test_shut_out_of_range(self, bivariate_var):
        B = recursive_impact(bivariate_var.sigma)
        config = IdentificationConfig(nsteps=3, shut=5)
        with pytest.raises(ParameterError):
            compute_impulse_response(B, config, multipliers=multipliers_for(bivariate_var, 3))

    def test_missing_inputs(self, bivariate_var):
        B = recursive_impact(bivariate_var.sigma)
        with pytest.raises(MissingConfigurationError):
            compute_impulse_response(B, IdentificationConfig(nsteps=4))
        with pytest.raises(MissingConfigurationError):
            compute_impulse_response(B, IdentificationConfig(nsteps=4, recursion="companion"))
        with pytest.raises(DimensionError):
            compute_impulse_response(B, IdentificationConfig(nsteps=4),
                                     multipliers=multipliers_for(bivariate_var, 3))
        with pytest.raises(DimensionError):
            compute_impulse_response(np.ones((2, 3)), IdentificationConfig(nsteps=1))

    def test_unidentified_columns_nan(self, bivariate_var):
        B = np.array([[1.0, np.nan], [0.5, np.nan]])
        result = compute_impulse_response(
            B, IdentificationConfig(nsteps=4), multipliers=multipliers_for(bivariate_var, 4)
        )
        assert result.identified_shocks == (0,)
        assert np.all(np.isfinite(result.irf[:, :, 0]))
        assert np.all(np.isnan(result.irf[:, :, 1]))

    def test_numpy_path_matches_numba(self, trivariate_var2):
        B = recursive_impact(trivariate_var2.sigma)
        psi = multipliers_for(trivariate_var2, 10)
        fast = compute_impulse_response(B, IdentificationConfig(nsteps=10), multipliers=psi)
        set_config("core", "enable_numba", False)
        plain = compute_impulse_response(B, IdentificationConfig(nsteps=10), multipliers=psi)
        assert_allclose(fast.irf, plain.irf, rtol=1e-12, atol=1e-14)

    def test_matches_statsmodels(self, statsmodels_var):
        """Recursive responses equal the statsmodels orthogonalised responses."""
        var = ReducedFormVAR.from_statsmodels(statsmodels_var)
        periods = 10
        B = recursive_impact(var.sigma)
        result = compute_impulse_response(
            B, IdentificationConfig(nsteps=periods + 1), multipliers=multipliers_for(var, periods + 1)
        )
        expected = statsmodels_var.irf(periods).orth_irfs
        assert_allclose(result.irf, expected, rtol=1e-8, atol=1e-10)


class TestPropagate:
    """Tests for propagation of arbitrary impact vectors."""

    def test_single_column(self, bivariate_var):
        psi = multipliers_for(bivariate_var, 5)
        vector = np.array([[1.0], [0.0]])
        resp = propagate(vector, 5, multipliers=psi)
        assert resp.shape == (5, 2, 1)
        assert_allclose(resp[3, :, 0], np.linalg.matrix_power(bivariate_var.lag_matrices[0], 3)[:, 0])

    def test_companion(self, bivariate_var):
        vector = np.array([[1.0], [1.0]])
        resp = propagate(vector, 4, recursion=Recursion.COMPANION, companion=bivariate_var.companion)
        A = bivariate_var.lag_matrices[0]
        assert_allclose(resp[2], A @ A @ vector)


class TestImpulseResponseResult:
    """Tests for the results container."""

    def test_to_pandas(self, trivariate_var2):
        B = recursive_impact(trivariate_var2.sigma)
        result = compute_impulse_response(
            B, IdentificationConfig(nsteps=6), multipliers=multipliers_for(trivariate_var2, 6),
            var_names=list(trivariate_var2.var_names)
        )
        frames = result.to_pandas()
        assert set(frames) == {"irf_shock_output", "irf_shock_prices", "irf_shock_rate"}
        frame = frames["irf_shock_prices"]
        assert isinstance(frame, pd.DataFrame)
        assert frame.shape == (6, 3)
        assert frame.index.name == "Horizon"
        assert_allclose(frame["Response of rate"].to_numpy(), result.irf[:, 2, 1])

    def test_default_names_and_summary(self):
        result = ImpulseResponseResult(irf=np.zeros((3, 2, 2)), scheme="recursive")
        assert result.var_names == ["y1", "y2"]
        assert result.identified_shocks == (0, 1)
        text = result.summary()
        assert "Structural Impulse Response Analysis" in text
        assert "Response of y2 to shock y1" in text

    def test_rejects_wrong_rank(self):
        with pytest.raises(DimensionError):
            ImpulseResponseResult(irf=np.zeros((3, 2)))
