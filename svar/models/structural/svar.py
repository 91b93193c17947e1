# svar/models/structural/svar.py

"""
Structural VAR facade.

``StructuralVAR`` wraps a reduced-form bundle and chains multipliers,
identification, impulse responses and variance decompositions. Derived
quantities that do not depend on random draws are memoised in a cache owned by
the facade; the reduced-form bundle itself is never modified.

Concurrent calls on one facade are not safe. Use one facade per thread, or
share the immutable ``ReducedFormVAR`` between several facades.
"""

import logging
from dataclasses import replace
from typing import Dict, Optional

from svar.core.exceptions import PartialIdentificationError
from svar.core.types import MultiplierSequence
from svar.core.validation import validate_positive_int
from svar.models.structural.base import (
    IdentificationConfig, LongRun, Recursion, Recursive, ReducedFormVAR, SignRestriction
)
from svar.models.structural.identification import IdentificationResult, identify
from svar.models.structural.impulse_response import ImpulseResponseResult, compute_impulse_response
from svar.models.structural.multipliers import compute_multipliers
from svar.models.structural.variance_decomposition import (
    VarianceDecompositionResult, compute_variance_decomposition
)

# Set up module-level logger
logger = logging.getLogger("svar.models.structural.svar")


class StructuralVAR:
    """
    Structural analysis of an estimated reduced-form VAR.

    Attributes:
        var: The reduced-form bundle being analysed

    Examples:
        >>> import numpy as np
        >>> from svar import ReducedFormVAR, StructuralVAR, IdentificationConfig
        >>> var = ReducedFormVAR.from_lag_matrices([[[0.5, 0.0], [0.1, 0.4]]],
        ...                                        sigma=[[1.0, 0.5], [0.5, 1.0]])
        >>> model = StructuralVAR(var)
        >>> irf = model.impulse_response(IdentificationConfig(scheme="recursive", nsteps=12))
        >>> irf.irf.shape
        (12, 2, 2)
    """

    def __init__(self, var: ReducedFormVAR) -> None:
        if not isinstance(var, ReducedFormVAR):
            raise TypeError(f"var must be a ReducedFormVAR, got {type(var).__name__}")
        self.var = var
        self._multipliers: Optional[MultiplierSequence] = None
        self._identified: Dict[str, IdentificationResult] = {}

    def __repr__(self) -> str:
        return f"StructuralVAR(nvar={self.var.nvar}, nlag={self.var.nlag})"

    def clear_cache(self) -> None:
        """Drop every memoised multiplier sequence and impact matrix."""
        self._multipliers = None
        self._identified.clear()
        logger.debug("Cleared structural VAR cache")

    def multipliers(self, nsteps: int) -> MultiplierSequence:
        """
        Wold multipliers for ``nsteps`` horizons.

        The longest sequence computed so far is kept and shorter requests are
        served from its leading entries, which do not depend on the length.
        """
        nsteps = validate_positive_int(nsteps, "nsteps")
        if self._multipliers is None or self._multipliers.shape[0] < nsteps:
            var = self.var
            self._multipliers = compute_multipliers(var.coefficients, var.nlag, var.nvar, var.const, nsteps)
            self._multipliers.setflags(write=False)
        else:
            logger.debug(f"Serving {nsteps} multipliers from cache")
        return self._multipliers[:nsteps].copy()

    def _cache_key(self, config: IdentificationConfig) -> Optional[str]:
        scheme = config.scheme
        if isinstance(scheme, (Recursive, LongRun)):
            return scheme.name
        # Sign and instrument identifications depend on per-call inputs
        return None

    def identify(self, config: IdentificationConfig) -> IdentificationResult:
        """
        Identify the structural impact matrix.

        Recursive and long-run identifications are cached.

        Returns:
            IdentificationResult: A fresh copy the caller may modify
        """
        key = self._cache_key(config)
        if key is not None and key in self._identified:
            logger.debug(f"Serving {key} identification from cache")
            result = self._identified[key]
            return replace(result, impact_matrix=result.impact_matrix.copy())

        multipliers = None
        if isinstance(config.scheme, SignRestriction) and self._multipliers is not None:
            multipliers = self._multipliers

        result = identify(self.var, config, multipliers=multipliers)
        if key is not None:
            self._identified[key] = result
            result = replace(result, impact_matrix=result.impact_matrix.copy())

        return result

    def impulse_response(self,
                         config: IdentificationConfig,
                         identification: Optional[IdentificationResult] = None) -> ImpulseResponseResult:
        """
        Structural impulse responses.

        Args:
            config: Options for identification and propagation
            identification: A previous identification to reuse (e.g. an
                accepted sign-restriction draw); identified afresh when omitted

        Returns:
            ImpulseResponseResult: Responses indexed [horizon, response, shock]
        """
        if identification is None:
            identification = self.identify(config)

        multipliers = None
        if config.recursion == Recursion.WOLD:
            multipliers = self.multipliers(config.nsteps)

        result = compute_impulse_response(
            identification.impact_matrix,
            config,
            multipliers=multipliers,
            companion=self.var.companion,
            identified_shocks=identification.identified_shocks,
            var_names=list(self.var.var_names)
        )
        result.scheme = identification.scheme
        return result

    def variance_decomposition(self,
                               config: IdentificationConfig,
                               identification: Optional[IdentificationResult] = None,
                               strict: bool = False) -> VarianceDecompositionResult:
        """
        Forecast error variance decomposition.

        Args:
            config: Options; ``nsteps`` and the scheme are used
            identification: A previous identification to reuse
            strict: Raise instead of reporting degenerate cells

        Raises:
            PartialIdentificationError: Under a scheme that leaves shocks
                unidentified, such as the instrument scheme
            DegenerateForecastVarianceError: With ``strict=True`` on zero variances
        """
        if identification is None:
            identification = self.identify(config)

        if identification.is_partial:
            raise PartialIdentificationError(
                f"Variance decomposition is not available under the {identification.scheme} scheme",
                identified_shocks=identification.identified_shocks,
                details="Only some structural shocks are identified"
            )

        return compute_variance_decomposition(
            identification.impact_matrix,
            self.multipliers(config.nsteps),
            self.var.sigma,
            config.nsteps,
            strict=strict,
            var_names=list(self.var.var_names),
            scheme=identification.scheme
        )
