# svar/models/structural/identification.py

"""
Identification of the structural impact matrix.

Recovers B with ``B @ B.T == sigma`` (or, for the instrument scheme, only its
first column) under one of four schemes:

- Recursive: lower Cholesky root of sigma
- LongRun: the cumulative response of variable i to shock j > i is zero
- SignRestriction: a precomputed B, or a rotation search against a sign pattern
- ExternalInstrument: first column from a two-stage regression on a proxy

Columns a scheme leaves unidentified are NaN, never zero.

Classes:
    IdentificationResult: Impact matrix and scheme diagnostics

Functions:
    recursive_impact: B under zero contemporaneous restrictions
    long_run_impact: B under zero long-run restrictions
    identify: Dispatch on the configured scheme
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from svar.core.config import get_defaults_config
from svar.core.exceptions import MissingConfigurationError, RestrictionsUnsatisfiableError
from svar.core.types import CompanionMatrix, CovarianceMatrix, ImpactMatrix, MultiplierSequence
from svar.core.validation import validate_square_matrix
from svar.models.structural.base import (
    ExternalInstrument, IdentificationConfig, LongRun, Recursion, Recursive, ReducedFormVAR,
    SignRestriction
)
from svar.models.structural.instrument import InstrumentDiagnostics, instrument_identification
from svar.models.structural.multipliers import compute_multipliers, cumulative_multiplier
from svar.models.structural.sign_restrictions import SignSearchResult, sign_restriction_search
from svar.utils.matrix_ops import checked_solve, cholesky_lower

# Set up module-level logger
logger = logging.getLogger("svar.models.structural.identification")


@dataclass
class IdentificationResult:
    """
    Structural impact matrix and the diagnostics of the scheme that produced it.

    Attributes:
        impact_matrix: Structural impact matrix B; unidentified columns are NaN
        scheme: Name of the identification scheme
        identified_shocks: Indices of the identified columns of B
        instrument: First/second-stage diagnostics (instrument scheme)
        sign_search: Rotation search outcome (sign scheme with a search)
    """
    impact_matrix: ImpactMatrix
    scheme: str
    identified_shocks: Tuple[int, ...]
    instrument: Optional[InstrumentDiagnostics] = None
    sign_search: Optional[SignSearchResult] = None

    @property
    def is_partial(self) -> bool:
        """True when some structural shocks are left unidentified."""
        return len(self.identified_shocks) < self.impact_matrix.shape[1]

    def summary(self) -> str:
        header = "Structural Identification\n"
        header += "=" * len(header) + "\n\n"

        info = f"Scheme: {self.scheme}\n"
        info += f"Identified shocks: {list(self.identified_shocks)}\n"
        if self.sign_search is not None:
            info += f"Rotations drawn: {self.sign_search.rotations}\n"
        if self.instrument is not None:
            info += f"First-stage F-statistic: {self.instrument.fstat:.4f}\n"
            info += f"First-stage R-squared: {self.instrument.rsquared:.4f}\n"
            info += f"Common sample: {self.instrument.nobs} observations\n"
        info += "\nImpact matrix:\n"
        info += np.array2string(self.impact_matrix, precision=6, suppress_small=True) + "\n"

        return header + info


def recursive_impact(sigma: CovarianceMatrix) -> ImpactMatrix:
    """
    Impact matrix under zero contemporaneous restrictions.

    Raises:
        NotPositiveDefiniteError: If sigma is not positive definite
    """
    return cholesky_lower(sigma, "sigma")


def long_run_impact(sigma: CovarianceMatrix, companion: CompanionMatrix) -> ImpactMatrix:
    """
    Impact matrix under zero long-run restrictions (Blanchard and Quah, 1989).

    With the cumulative multiplier ``Finf``, the long-run impact ``Finf @ B``
    is the lower Cholesky root of ``Finf @ sigma @ Finf.T``, so shock j has no
    cumulative effect on any variable ordered before it.

    Raises:
        LongRunSingularityError: If ``I - companion`` is not invertible
        NotPositiveDefiniteError: If the long-run covariance cannot be factored
    """
    sigma = validate_square_matrix(sigma, "sigma")
    nvar = sigma.shape[0]
    finf = cumulative_multiplier(companion, nvar)
    long_run = cholesky_lower(finf @ sigma @ finf.T, "long-run covariance")
    return checked_solve(finf, long_run, "cumulative multiplier")


def _identify_sign(var: ReducedFormVAR,
                   scheme: SignRestriction,
                   config: IdentificationConfig,
                   multipliers: Optional[MultiplierSequence]) -> IdentificationResult:
    nvar = var.nvar

    if scheme.impact_matrix is not None:
        impact_matrix = validate_square_matrix(scheme.impact_matrix, "impact_matrix", size=nvar).copy()
        logger.debug("Sign scheme: using the supplied impact matrix")
        return IdentificationResult(
            impact_matrix=impact_matrix,
            scheme=scheme.name,
            identified_shocks=tuple(range(nvar))
        )

    if scheme.signs is None:
        raise MissingConfigurationError(
            "Sign identification needs a sign pattern or a precomputed impact matrix",
            scheme=scheme.name,
            setting="signs"
        )

    horizon = get_defaults_config().sign_horizon if scheme.horizon is None else scheme.horizon
    if horizon > 1 and config.recursion == Recursion.WOLD:
        if multipliers is None or len(multipliers) < horizon:
            multipliers = compute_multipliers(var.coefficients, var.nlag, nvar, var.const, horizon)

    sigma = var.sigma if scheme.fixed_columns is None else scheme.covariance
    search = sign_restriction_search(
        sigma,
        scheme.signs,
        horizon=horizon,
        max_rotations=scheme.max_rotations,
        multipliers=multipliers,
        companion=var.companion,
        recursion=config.recursion,
        fixed_columns=scheme.fixed_columns,
        random_state=config.random_state
    )

    if not search.success:
        raise RestrictionsUnsatisfiableError(
            f"No rotation satisfied the sign restrictions within {search.max_rotations} draws",
            rotations=search.rotations,
            max_rotations=search.max_rotations,
            details="Relax the restrictions or raise max_rotations"
        )

    return IdentificationResult(
        impact_matrix=search.impact_matrix,
        scheme=scheme.name,
        identified_shocks=tuple(range(nvar)),
        sign_search=search
    )


def _identify_instrument(var: ReducedFormVAR, scheme: ExternalInstrument) -> IdentificationResult:
    if scheme.instrument is None or np.size(np.asarray(scheme.instrument)) == 0:
        raise MissingConfigurationError(
            "Instrument identification needs the instrument series",
            scheme=scheme.name,
            setting="instrument"
        )
    if var.residuals is None:
        raise MissingConfigurationError(
            "Instrument identification needs the reduced-form residuals",
            scheme=scheme.name,
            setting="residuals"
        )

    diagnostics = instrument_identification(var.residuals, scheme.instrument, var.nlag, var.ntotcoeff)

    impact_matrix = np.full((var.nvar, var.nvar), np.nan)
    impact_matrix[:, 0] = diagnostics.b

    return IdentificationResult(
        impact_matrix=impact_matrix,
        scheme=scheme.name,
        identified_shocks=(0,),
        instrument=diagnostics
    )


def identify(var: ReducedFormVAR,
             config: IdentificationConfig,
             multipliers: Optional[MultiplierSequence] = None) -> IdentificationResult:
    """
    Identify the structural impact matrix of a reduced-form VAR.

    Args:
        var: Reduced-form VAR bundle (never modified)
        config: Options; ``config.scheme`` selects the scheme
        multipliers: Precomputed Wold multipliers, reused by the sign search
            when it checks several horizons

    Returns:
        IdentificationResult: B and scheme diagnostics

    Raises:
        NotPositiveDefiniteError: If a covariance cannot be factored
        LongRunSingularityError: If the long-run multiplier does not exist
        MissingConfigurationError: If a scheme input is absent
        RestrictionsUnsatisfiableError: If the sign search exhausts its cap
        InsufficientOverlapError: If instrument and residuals barely overlap

    Examples:
        >>> import numpy as np
        >>> from svar.models.structural import ReducedFormVAR, IdentificationConfig, identify
        >>> var = ReducedFormVAR.from_lag_matrices([[[0.5, 0.0], [0.1, 0.4]]],
        ...                                        sigma=[[1.0, 0.5], [0.5, 1.0]])
        >>> identify(var, IdentificationConfig(scheme="recursive")).impact_matrix
        array([[1.       , 0.       ],
               [0.5      , 0.8660254]])
    """
    scheme = config.scheme
    config.validate_for(var.nvar)
    logger.debug(f"Identifying a {var.nvar}-variable VAR({var.nlag}) with the {scheme.name} scheme")

    if isinstance(scheme, Recursive):
        impact_matrix = recursive_impact(var.sigma)
    elif isinstance(scheme, LongRun):
        impact_matrix = long_run_impact(var.sigma, var.companion)
    elif isinstance(scheme, SignRestriction):
        return _identify_sign(var, scheme, config, multipliers)
    else:
        return _identify_instrument(var, scheme)

    return IdentificationResult(
        impact_matrix=impact_matrix,
        scheme=scheme.name,
        identified_shocks=tuple(range(var.nvar))
    )
