# svar/models/structural/base.py

"""
Shared containers for structural VAR analysis.

This module defines the immutable reduced-form input bundle consumed by every
structural component, the identification scheme variants, and the options
object that steers identification and shock propagation.

Classes:
    ReducedFormVAR: Estimated reduced-form VAR (coefficients, covariance, companion)
    ShockSize: Impact normalisation of the structural shock
    Recursion: How responses beyond the impact horizon are propagated
    Recursive, LongRun, SignRestriction, ExternalInstrument: Identification schemes
    IdentificationConfig: Options for identification and propagation

Functions:
    build_companion: Companion matrix from stacked lag blocks
    parse_scheme: Map a string tag onto a scheme variant
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from svar.core.config import get_defaults_config
from svar.core.exceptions import (
    InvalidSchemeError, ParameterError, raise_dimension_error, raise_parameter_error
)
from svar.core.types import CompanionMatrix, InstrumentData, Matrix, RandomState, Tensor3D
from svar.core.validation import (
    validate_finite, validate_index, validate_matrix_shape, validate_non_negative_int,
    validate_positive_int, validate_square_matrix
)

# Set up module-level logger
logger = logging.getLogger("svar.models.structural.base")


def _frozen_copy(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=np.float64, copy=True)
    array.setflags(write=False)
    return array


def build_companion(lag_matrices: Tensor3D) -> CompanionMatrix:
    """
    Build the companion matrix of a VAR(p) from its lag matrices.

    Args:
        lag_matrices: Array of shape (nlag, nvar, nvar) holding A_1, ..., A_p

    Returns:
        np.ndarray: Companion matrix of shape (nvar*nlag, nvar*nlag)
    """
    lag_matrices = np.asarray(lag_matrices, dtype=np.float64)
    if lag_matrices.ndim != 3 or lag_matrices.shape[1] != lag_matrices.shape[2]:
        raise_dimension_error(
            "lag_matrices must have shape (nlag, nvar, nvar)",
            array_name="lag_matrices",
            expected_shape="(nlag, nvar, nvar)",
            actual_shape=lag_matrices.shape
        )

    p, k = lag_matrices.shape[0], lag_matrices.shape[1]
    companion = np.zeros((k * p, k * p))

    # First block row holds the coefficient matrices
    for i in range(p):
        companion[:k, i*k:(i+1)*k] = lag_matrices[i]

    # Sub-diagonal identity blocks shift the lagged state
    for i in range(1, p):
        companion[i*k:(i+1)*k, (i-1)*k:i*k] = np.eye(k)

    return companion


@dataclass(frozen=True, eq=False)
class ReducedFormVAR:
    """
    Immutable bundle holding an already-estimated reduced-form VAR.

    Arrays are copied and marked read-only on construction, so the bundle can
    be shared between identification, impulse response and variance
    decomposition calls without any of them altering it.

    Attributes:
        coefficients: Coefficient matrix (nvar x (const + nvar*nlag)); row i is
            equation i, the first ``const`` columns hold deterministic terms and
            the rest the lag blocks [A_1 | A_2 | ... | A_p]
        sigma: Residual covariance matrix (nvar x nvar)
        nlag: Lag order p
        const: Number of deterministic columns preceding the lag blocks
        residuals: Reduced-form residuals (T x nvar), needed by the instrument scheme
        companion: Companion matrix; built from the lag blocks when omitted
        ntotcoeff: Coefficients per equation, for degrees-of-freedom corrections
        var_names: Variable names (defaults to y1..yn)
    """

    coefficients: Matrix
    sigma: Matrix
    nlag: int
    const: int = 0
    residuals: Optional[Matrix] = None
    companion: Optional[CompanionMatrix] = None
    ntotcoeff: Optional[int] = None
    var_names: Optional[Sequence[str]] = None

    def __post_init__(self) -> None:
        """Validate shapes and freeze the arrays."""
        nlag = validate_positive_int(self.nlag, "nlag")
        if isinstance(self.const, bool) or not isinstance(self.const, (int, np.integer)) or self.const < 0:
            raise ParameterError(
                "const must be a non-negative integer",
                param_name="const",
                param_value=self.const,
                constraint="const >= 0"
            )
        const = int(self.const)

        coefficients = validate_matrix_shape(self.coefficients, (None, None), "coefficients")
        nvar = coefficients.shape[0]
        if coefficients.shape[1] != const + nvar * nlag:
            raise_dimension_error(
                "coefficients must have const + nvar*nlag columns",
                array_name="coefficients",
                expected_shape=(nvar, const + nvar * nlag),
                actual_shape=coefficients.shape
            )
        validate_finite(coefficients, "coefficients")

        sigma = validate_square_matrix(self.sigma, "sigma", size=nvar)
        validate_finite(sigma, "sigma")

        object.__setattr__(self, "nlag", nlag)
        object.__setattr__(self, "const", const)
        object.__setattr__(self, "coefficients", _frozen_copy(coefficients))
        object.__setattr__(self, "sigma", _frozen_copy(sigma))

        if self.companion is None:
            companion = build_companion(self.lag_matrices)
        else:
            companion = validate_square_matrix(self.companion, "companion", size=nvar * nlag)
        object.__setattr__(self, "companion", _frozen_copy(companion))

        if self.residuals is not None:
            residuals = np.asarray(self.residuals, dtype=np.float64)
            residuals = validate_matrix_shape(residuals, (None, nvar), "residuals")
            validate_finite(residuals, "residuals")
            object.__setattr__(self, "residuals", _frozen_copy(residuals))

        if self.ntotcoeff is None:
            object.__setattr__(self, "ntotcoeff", const + nvar * nlag)
        else:
            object.__setattr__(self, "ntotcoeff", validate_positive_int(self.ntotcoeff, "ntotcoeff"))

        if self.var_names is None:
            names: Tuple[str, ...] = tuple(f"y{i+1}" for i in range(nvar))
        else:
            names = tuple(str(name) for name in self.var_names)
            if len(names) != nvar:
                raise_parameter_error(
                    f"var_names must have {nvar} entries",
                    param_name="var_names",
                    param_value=len(names),
                    constraint=f"len(var_names) == {nvar}"
                )
        object.__setattr__(self, "var_names", names)

    @property
    def nvar(self) -> int:
        """Number of variables."""
        return self.coefficients.shape[0]

    @property
    def lag_matrices(self) -> Tensor3D:
        """Lag coefficient matrices A_1..A_p as an (nlag, nvar, nvar) array."""
        k = self.coefficients.shape[0]
        blocks = self.coefficients[:, self.const:].reshape(k, self.nlag, k)
        return blocks.transpose(1, 0, 2).copy()

    @property
    def eigenvalues(self) -> np.ndarray:
        """Eigenvalues of the companion matrix."""
        return np.linalg.eigvals(self.companion)

    @property
    def is_stable(self) -> bool:
        """True when every companion eigenvalue lies strictly inside the unit circle."""
        return bool(np.all(np.abs(self.eigenvalues) < 1.0))

    @classmethod
    def from_lag_matrices(cls,
                          lag_matrices: Union[Tensor3D, Sequence[Matrix]],
                          sigma: Matrix,
                          intercept: Optional[np.ndarray] = None,
                          residuals: Optional[Matrix] = None,
                          var_names: Optional[Sequence[str]] = None) -> "ReducedFormVAR":
        """
        Construct the bundle from a sequence of lag matrices.

        Args:
            lag_matrices: A_1, ..., A_p, each nvar x nvar
            sigma: Residual covariance matrix
            intercept: Optional intercept vector (adds one deterministic column)
            residuals: Optional reduced-form residuals
            var_names: Optional variable names

        Returns:
            ReducedFormVAR: The assembled bundle
        """
        lag_matrices = np.asarray(lag_matrices, dtype=np.float64)
        if lag_matrices.ndim == 2:
            lag_matrices = lag_matrices[None, :, :]
        if lag_matrices.ndim != 3 or lag_matrices.shape[1] != lag_matrices.shape[2]:
            raise_dimension_error(
                "lag_matrices must have shape (nlag, nvar, nvar)",
                array_name="lag_matrices",
                expected_shape="(nlag, nvar, nvar)",
                actual_shape=lag_matrices.shape
            )

        nlag, nvar = lag_matrices.shape[0], lag_matrices.shape[1]
        blocks = np.hstack(list(lag_matrices))

        if intercept is not None:
            intercept = np.asarray(intercept, dtype=np.float64).reshape(-1, 1)
            if intercept.shape[0] != nvar:
                raise_dimension_error(
                    f"intercept must have {nvar} entries",
                    array_name="intercept",
                    expected_shape=(nvar,),
                    actual_shape=(intercept.shape[0],)
                )
            coefficients = np.hstack([intercept, blocks])
            const = 1
        else:
            coefficients = blocks
            const = 0

        return cls(
            coefficients=coefficients,
            sigma=sigma,
            nlag=nlag,
            const=const,
            residuals=residuals,
            var_names=var_names
        )

    @classmethod
    def from_statsmodels(cls, results: Any) -> "ReducedFormVAR":
        """
        Construct the bundle from a fitted ``statsmodels`` VAR.

        Uses ``params`` (deterministic terms first, then the lag blocks),
        ``sigma_u``, ``resid``, ``k_ar`` and ``names`` of
        ``statsmodels.tsa.vector_ar.var_model.VARResults``.

        Args:
            results: Fitted statsmodels VARResults

        Returns:
            ReducedFormVAR: The assembled bundle
        """
        params = np.asarray(results.params, dtype=np.float64)
        nlag = int(results.k_ar)
        nvar = params.shape[1]
        const = params.shape[0] - nvar * nlag

        logger.debug(f"Importing statsmodels VAR({nlag}) with {nvar} variables and {const} deterministic terms")

        return cls(
            coefficients=params.T,
            sigma=np.asarray(results.sigma_u, dtype=np.float64),
            nlag=nlag,
            const=const,
            residuals=np.asarray(results.resid, dtype=np.float64),
            ntotcoeff=params.shape[0],
            var_names=list(results.names)
        )


class ShockSize(str, Enum):
    """Impact normalisation of a structural shock."""
    ONE_STD_DEV = "one-std-dev"
    UNIT = "unit"


class Recursion(str, Enum):
    """Propagation of responses beyond the impact horizon."""
    WOLD = "wold"
    COMPANION = "companion"


def _coerce_enum(enum_cls: Any, value: Any, param_name: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        raise ParameterError(
            f"{param_name} must be one of {[member.value for member in enum_cls]}",
            param_name=param_name,
            param_value=value,
            constraint=" | ".join(member.value for member in enum_cls)
        ) from None


@dataclass(frozen=True)
class Recursive:
    """Zero contemporaneous restrictions: B is the lower Cholesky root of sigma."""
    name: ClassVar[str] = "recursive"


@dataclass(frozen=True)
class LongRun:
    """Zero long-run restrictions: shock j has no cumulative effect on variable i < j."""
    name: ClassVar[str] = "long-run"


@dataclass(frozen=True, eq=False)
class SignRestriction:
    """
    Sign restrictions on the impact (or horizon-stacked) responses.

    Either supply ``impact_matrix`` (a B found elsewhere) or ``signs`` so a
    rotation search is run. ``fixed_columns`` and ``covariance`` start the
    search from an already identified first block, e.g. the column recovered
    by an external instrument and its ``sigma_b``.

    Attributes:
        signs: Sign pattern (nvar x nrestricted), entries in {-1, 0, 1}
        impact_matrix: Precomputed impact matrix
        horizon: Number of horizons checked (None uses ``defaults.sign_horizon``)
        max_rotations: Rotation cap (None uses ``defaults.max_rotations``)
        fixed_columns: Pre-identified leading columns of B
        covariance: Covariance matching ``fixed_columns``
    """
    signs: Optional[np.ndarray] = None
    impact_matrix: Optional[np.ndarray] = None
    horizon: Optional[int] = None
    max_rotations: Optional[int] = None
    fixed_columns: Optional[np.ndarray] = None
    covariance: Optional[np.ndarray] = None

    name: ClassVar[str] = "sign"

    def __post_init__(self) -> None:
        if self.horizon is not None:
            validate_positive_int(self.horizon, "horizon")
        if self.max_rotations is not None:
            validate_positive_int(self.max_rotations, "max_rotations")
        if (self.fixed_columns is None) != (self.covariance is None):
            raise ParameterError(
                "fixed_columns and covariance must be supplied together",
                param_name="fixed_columns",
                constraint="both or neither of fixed_columns, covariance"
            )


@dataclass(frozen=True, eq=False)
class ExternalInstrument:
    """
    External instrument (proxy) identification of the first structural shock.

    Attributes:
        instrument: Instrument series (T or T + nlag rows, one or more columns)
    """
    instrument: Optional[InstrumentData] = None

    name: ClassVar[str] = "instrument"


Scheme = Union[Recursive, LongRun, SignRestriction, ExternalInstrument]

_SCHEME_TAGS: Dict[str, Any] = {
    "recursive": Recursive,
    "rec": Recursive,
    "short": Recursive,
    "long-run": LongRun,
    "bq": LongRun,
    "long": LongRun,
    "sign": SignRestriction,
    "sr": SignRestriction,
    "instrument": ExternalInstrument,
    "iv": ExternalInstrument,
}


def parse_scheme(scheme: Union[str, Scheme]) -> Scheme:
    """
    Map an identification tag onto its scheme variant.

    Variants pass through unchanged. Tags for the sign and instrument schemes
    produce variants without payload; identifying with them raises
    ``MissingConfigurationError``.

    Raises:
        InvalidSchemeError: If the tag is not recognised
    """
    if isinstance(scheme, (Recursive, LongRun, SignRestriction, ExternalInstrument)):
        return scheme

    if isinstance(scheme, str) and scheme.strip().lower() in _SCHEME_TAGS:
        return _SCHEME_TAGS[scheme.strip().lower()]()

    valid = sorted(_SCHEME_TAGS)
    raise InvalidSchemeError(
        f"Unknown identification scheme {scheme!r}; valid tags are: {', '.join(valid)}",
        scheme=scheme,
        valid_options=valid
    )


@dataclass
class IdentificationConfig:
    """
    Options for structural identification and shock propagation.

    Attributes:
        scheme: Scheme variant or string tag
        nsteps: Number of horizons (horizon index 0 is the impact period)
        impact: Impact normalisation; None uses ``defaults.impact``
        shut: Optional 0-based variable whose channel is shut down
        recursion: Propagation mode; None uses ``defaults.recursion``
        random_state: Seed or generator for the sign-restriction search
    """

    scheme: Union[str, Scheme] = "recursive"
    nsteps: int = 40
    impact: Optional[Union[str, ShockSize]] = None
    shut: Optional[int] = None
    recursion: Optional[Union[str, Recursion]] = None
    random_state: RandomState = None

    def __post_init__(self) -> None:
        """Validate and normalise the options."""
        defaults = get_defaults_config()
        self.scheme = parse_scheme(self.scheme)
        self.nsteps = validate_positive_int(self.nsteps, "nsteps")
        self.impact = _coerce_enum(ShockSize, defaults.impact if self.impact is None else self.impact, "impact")
        self.recursion = _coerce_enum(
            Recursion, defaults.recursion if self.recursion is None else self.recursion, "recursion"
        )
        if self.shut is not None:
            self.shut = validate_non_negative_int(self.shut, "shut")

    def validate_for(self, nvar: int) -> None:
        """Check the options against a system with ``nvar`` variables."""
        if self.shut is not None:
            validate_index(self.shut, nvar, "shut")
