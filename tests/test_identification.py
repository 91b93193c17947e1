# tests/test_identification.py
"""
Tests for structural identification: scheme parsing, the recursive and
long-run schemes, and the dispatch through ``identify``.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal
from hypothesis import HealthCheck, given, settings, strategies as st

from svar.core.exceptions import (
    DimensionError, InvalidSchemeError, LongRunSingularityError, MissingConfigurationError,
    NotPositiveDefiniteError, ParameterError
)
from svar.models.structural.base import (
    ExternalInstrument, IdentificationConfig, LongRun, Recursion, Recursive,
    ReducedFormVAR, ShockSize, SignRestriction, parse_scheme
)
from svar.models.structural.identification import (
    identify, long_run_impact, recursive_impact
)
from svar.models.structural.multipliers import cumulative_multiplier


# ---- Scheme Parsing Tests ----

class TestSchemeParsing:
    """Tests for scheme tags and configuration validation."""

    @pytest.mark.parametrize("tag, expected", [
        ("recursive", Recursive),
        ("rec", Recursive),
        ("short", Recursive),
        ("long-run", LongRun),
        ("bq", LongRun),
        ("LONG", LongRun),
        ("sign", SignRestriction),
        ("sr", SignRestriction),
        ("instrument", ExternalInstrument),
        ("iv", ExternalInstrument),
    ])
    def test_tags(self, tag, expected):
        assert isinstance(parse_scheme(tag), expected)

    def test_variant_passes_through(self):
        scheme = SignRestriction(signs=np.ones((2, 2)))
        assert parse_scheme(scheme) is scheme

    def test_unknown_tag(self):
        with pytest.raises(InvalidSchemeError) as excinfo:
            parse_scheme("cholesky")
        assert "recursive" in excinfo.value.valid_options

    def test_config_defaults(self):
        config = IdentificationConfig()
        assert isinstance(config.scheme, Recursive)
        assert config.nsteps == 40
        assert config.impact == ShockSize.ONE_STD_DEV
        assert config.recursion == Recursion.WOLD
        assert config.shut is None

    def test_config_coerces_strings(self):
        config = IdentificationConfig(scheme="bq", impact="unit", recursion="companion")
        assert isinstance(config.scheme, LongRun)
        assert config.impact == ShockSize.UNIT
        assert config.recursion == Recursion.COMPANION

    def test_config_rejects_invalid(self):
        with pytest.raises(ParameterError):
            IdentificationConfig(impact="two-std-dev")
        with pytest.raises(ParameterError):
            IdentificationConfig(recursion="forward")
        with pytest.raises(ParameterError):
            IdentificationConfig(nsteps=0)
        with pytest.raises(ParameterError):
            IdentificationConfig(shut=-1)
        with pytest.raises(InvalidSchemeError):
            IdentificationConfig(scheme="unknown")

    def test_shut_out_of_range(self, bivariate_var):
        config = IdentificationConfig(scheme="recursive", shut=2)
        with pytest.raises(ParameterError):
            identify(bivariate_var, config)

    def test_sign_scheme_options(self):
        with pytest.raises(ParameterError):
            SignRestriction(signs=np.ones((2, 2)), horizon=0)
        with pytest.raises(ParameterError):
            SignRestriction(signs=np.ones((2, 1)), fixed_columns=np.ones((2, 1)))


# ---- Recursive Scheme Tests ----

class TestRecursive:
    """Tests for zero contemporaneous restrictions."""

    def test_bivariate(self, bivariate_var):
        result = identify(bivariate_var, IdentificationConfig(scheme="recursive"))
        expected = np.array([[1.0, 0.0], [0.5, np.sqrt(0.75)]])
        assert_allclose(result.impact_matrix, expected)
        assert result.scheme == "recursive"
        assert result.identified_shocks == (0, 1)
        assert not result.is_partial

    def test_not_positive_definite(self):
        var = ReducedFormVAR.from_lag_matrices([np.zeros((2, 2))], sigma=[[1.0, 2.0], [2.0, 1.0]])
        with pytest.raises(NotPositiveDefiniteError):
            identify(var, IdentificationConfig(scheme="recursive"))

    def test_asymmetric_covariance(self):
        """A covariance that is not symmetric is rejected rather than averaged."""
        var = ReducedFormVAR.from_lag_matrices([np.zeros((2, 2))], sigma=[[2.0, 1.0], [0.0, 2.0]])
        for scheme in ("recursive", "long-run"):
            with pytest.raises(NotPositiveDefiniteError):
                identify(var, IdentificationConfig(scheme=scheme))

    def test_deterministic(self, trivariate_var2):
        config = IdentificationConfig(scheme="recursive")
        first = identify(trivariate_var2, config).impact_matrix
        second = identify(trivariate_var2, config).impact_matrix
        assert_array_equal(first, second)

    def test_does_not_modify_bundle(self, trivariate_var2):
        sigma_before = trivariate_var2.sigma.copy()
        result = identify(trivariate_var2, IdentificationConfig(scheme="recursive"))
        result.impact_matrix[0, 0] = 99.0
        assert_array_equal(trivariate_var2.sigma, sigma_before)

    @given(st.integers(min_value=1, max_value=5), st.integers(min_value=0, max_value=10_000))
    @settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_reproduces_covariance(self, nvar, seed):
        """Property: B @ B.T equals sigma and B is lower triangular."""
        rng = np.random.default_rng(seed)
        X = rng.standard_normal((nvar, nvar))
        sigma = X @ X.T + nvar * np.eye(nvar)
        B = recursive_impact(sigma)
        assert_allclose(B @ B.T, sigma, rtol=1e-10, atol=1e-10)
        assert_allclose(np.triu(B, 1), 0.0)

    def test_summary(self, bivariate_var):
        text = identify(bivariate_var, IdentificationConfig()).summary()
        assert "Structural Identification" in text
        assert "recursive" in text


# ---- Long-Run Scheme Tests ----

class TestLongRun:
    """Tests for zero long-run restrictions."""

    def test_long_run_response_is_triangular(self, bivariate_var):
        result = identify(bivariate_var, IdentificationConfig(scheme="long-run"))
        B = result.impact_matrix
        finf = cumulative_multiplier(bivariate_var.companion, 2)
        long_run = finf @ B
        assert abs(long_run[0, 1]) < 1e-10
        assert_allclose(B @ B.T, bivariate_var.sigma, atol=1e-10)
        assert result.scheme == "long-run"

    def test_var2(self, trivariate_var2):
        B = long_run_impact(trivariate_var2.sigma, trivariate_var2.companion)
        finf = cumulative_multiplier(trivariate_var2.companion, 3)
        assert_allclose(np.triu(finf @ B, 1), 0.0, atol=1e-10)
        assert_allclose(B @ B.T, trivariate_var2.sigma, atol=1e-10)

    def test_unit_root(self, bivariate_sigma):
        var = ReducedFormVAR.from_lag_matrices([[[1.0, 0.0], [0.0, 0.5]]], sigma=bivariate_sigma)
        with pytest.raises(LongRunSingularityError):
            identify(var, IdentificationConfig(scheme="long-run"))


# ---- Scheme Input Tests ----

class TestSchemeInputs:
    """Tests for schemes whose inputs are missing or precomputed."""

    def test_bare_sign_tag(self, bivariate_var):
        with pytest.raises(MissingConfigurationError) as excinfo:
            identify(bivariate_var, IdentificationConfig(scheme="sign"))
        assert excinfo.value.scheme == "sign"

    def test_bare_instrument_tag(self, bivariate_var):
        with pytest.raises(MissingConfigurationError):
            identify(bivariate_var, IdentificationConfig(scheme="iv"))

    def test_instrument_without_residuals(self, bivariate_var):
        scheme = ExternalInstrument(instrument=np.arange(10.0))
        with pytest.raises(MissingConfigurationError) as excinfo:
            identify(bivariate_var, IdentificationConfig(scheme=scheme))
        assert excinfo.value.scheme == "instrument"

    def test_precomputed_sign_matrix(self, bivariate_var):
        B = np.array([[0.8, 0.6], [0.9, -0.4]])
        result = identify(bivariate_var, IdentificationConfig(scheme=SignRestriction(impact_matrix=B)))
        assert_array_equal(result.impact_matrix, B)
        assert result.scheme == "sign"
        assert result.sign_search is None

        # The result is a copy of the supplied matrix
        result.impact_matrix[0, 0] = 0.0
        assert B[0, 0] == 0.8

    def test_precomputed_wrong_shape(self, bivariate_var):
        scheme = SignRestriction(impact_matrix=np.eye(3))
        with pytest.raises(DimensionError):
            identify(bivariate_var, IdentificationConfig(scheme=scheme))
