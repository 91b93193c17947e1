# tests/test_multipliers.py
"""
Tests for Wold multipliers and the cumulative long-run multiplier.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from hypothesis import HealthCheck, given, settings, strategies as st

from svar.core.config import set_config
from svar.core.exceptions import DimensionError, LongRunSingularityError, ParameterError
from svar.models.structural.base import ReducedFormVAR, build_companion
from svar.models.structural.multipliers import compute_multipliers, cumulative_multiplier


class TestComputeMultipliers:
    """Tests for the Wold multiplier recursion."""

    def test_first_multiplier_is_identity(self, trivariate_var2):
        var = trivariate_var2
        psi = compute_multipliers(var.coefficients, var.nlag, var.nvar, var.const, 10)
        assert psi.shape == (10, 3, 3)
        assert_allclose(psi[0], np.eye(3))

    def test_single_step(self, bivariate_var):
        """nsteps = 1 returns only the identity."""
        var = bivariate_var
        psi = compute_multipliers(var.coefficients, 1, 2, 0, 1)
        assert psi.shape == (1, 2, 2)
        assert_allclose(psi[0], np.eye(2))

    def test_var1_powers(self, bivariate_var):
        """For a VAR(1) the multipliers are powers of the lag matrix."""
        A = bivariate_var.lag_matrices[0]
        psi = compute_multipliers(bivariate_var.coefficients, 1, 2, 0, 6)
        for h in range(6):
            assert_allclose(psi[h], np.linalg.matrix_power(A, h), atol=1e-14)

    def test_var2_recursion(self, trivariate_var2):
        """psi[2] combines the squared first lag and the second lag."""
        var = trivariate_var2
        A1, A2 = var.lag_matrices
        psi = compute_multipliers(var.coefficients, 2, 3, 1, 4)
        assert_allclose(psi[1], A1)
        assert_allclose(psi[2], psi[1] @ A1 + A2)
        assert_allclose(psi[3], psi[2] @ A1 + psi[1] @ A2)

    def test_deterministic_columns_ignored(self, bivariate_var):
        """Leading deterministic columns do not enter the recursion."""
        A = bivariate_var.lag_matrices[0]
        with_const = np.column_stack([np.array([3.0, -1.0]), A])
        psi_const = compute_multipliers(with_const, 1, 2, 1, 5)
        psi_plain = compute_multipliers(A, 1, 2, 0, 5)
        assert_allclose(psi_const, psi_plain)

    def test_invalid_inputs(self, bivariate_var):
        A = bivariate_var.lag_matrices[0]
        with pytest.raises(DimensionError):
            compute_multipliers(A, 2, 2, 0, 5)
        with pytest.raises(DimensionError):
            compute_multipliers(A, 1, 3, 0, 5)
        with pytest.raises(ParameterError):
            compute_multipliers(A, 1, 2, 0, 0)
        with pytest.raises(ParameterError):
            compute_multipliers(A, 0, 2, 0, 5)

    def test_numpy_path_matches_numba(self, trivariate_var2):
        var = trivariate_var2
        psi_numba = compute_multipliers(var.coefficients, 2, 3, 1, 12)
        set_config("core", "enable_numba", False)
        psi_numpy = compute_multipliers(var.coefficients, 2, 3, 1, 12)
        assert_allclose(psi_numba, psi_numpy, rtol=1e-12, atol=1e-14)

    def test_matches_statsmodels(self, statsmodels_var):
        """Multipliers agree with the statsmodels moving-average representation."""
        var = ReducedFormVAR.from_statsmodels(statsmodels_var)
        nsteps = 15
        psi = compute_multipliers(var.coefficients, var.nlag, var.nvar, var.const, nsteps)
        expected = statsmodels_var.ma_rep(maxn=nsteps - 1)
        assert_allclose(psi, expected, rtol=1e-10, atol=1e-12)

    def test_matches_companion_powers(self, trivariate_var2):
        """psi[h] is the leading block of companion**h."""
        var = trivariate_var2
        psi = compute_multipliers(var.coefficients, 2, 3, 1, 8)
        for h in range(8):
            block = np.linalg.matrix_power(var.companion, h)[:3, :3]
            assert_allclose(psi[h], block, atol=1e-12)

    @given(st.integers(min_value=1, max_value=4), st.integers(min_value=1, max_value=3),
           st.integers(min_value=0, max_value=10_000))
    @settings(max_examples=20, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_exact_length(self, nvar, nlag, seed):
        """Property: the sequence has exactly nsteps entries for any system."""
        rng = np.random.default_rng(seed)
        coefficients = 0.1 * rng.standard_normal((nvar, nvar * nlag))
        nsteps = int(rng.integers(1, 20))
        psi = compute_multipliers(coefficients, nlag, nvar, 0, nsteps)
        assert psi.shape == (nsteps, nvar, nvar)
        assert_allclose(psi[0], np.eye(nvar))


class TestCumulativeMultiplier:
    """Tests for the infinite-horizon multiplier."""

    def test_scalar(self):
        """AR(1) with coefficient 0.5 has long-run multiplier 2."""
        finf = cumulative_multiplier(np.array([[0.5]]), 1)
        assert_allclose(finf, np.array([[2.0]]))

    def test_equals_sum_of_multipliers(self, trivariate_var2):
        var = trivariate_var2
        psi = compute_multipliers(var.coefficients, 2, 3, 1, 400)
        finf = cumulative_multiplier(var.companion, 3)
        assert_allclose(finf, psi.sum(axis=0), rtol=1e-8)

    def test_unit_root_raises(self):
        companion = build_companion(np.array([[[1.0, 0.0], [0.0, 0.5]]]))
        with pytest.raises(LongRunSingularityError) as excinfo:
            cumulative_multiplier(companion, 2)
        assert excinfo.value.max_modulus == pytest.approx(1.0)
