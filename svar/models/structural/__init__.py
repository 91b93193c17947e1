# svar/models/structural/__init__.py
"""
SVAR Toolbox Structural Module

Identification of structural shocks in an estimated reduced-form VAR and the
dynamic analysis built on it.

Key components:
- ReducedFormVAR bundle with companion form and a statsmodels adapter
- Wold multipliers and the long-run cumulative multiplier
- Recursive, long-run, sign-restriction and external-instrument identification
- Structural impulse responses (Wold or companion recursion)
- Forecast error variance decomposition and forecast standard errors
- StructuralVAR facade with a memoisation cache
"""

import logging

# Set up module-level logger
logger = logging.getLogger("svar.models.structural")

from .base import (
    ReducedFormVAR,
    ShockSize,
    Recursion,
    Recursive,
    LongRun,
    SignRestriction,
    ExternalInstrument,
    IdentificationConfig,
    build_companion,
    parse_scheme,
)
from .multipliers import compute_multipliers, cumulative_multiplier
from .sign_restrictions import SignSearchResult, sign_restriction_search
from .instrument import InstrumentDiagnostics, common_sample, instrument_identification
from .identification import IdentificationResult, identify, long_run_impact, recursive_impact
from .impulse_response import ImpulseResponseResult, compute_impulse_response
from .variance_decomposition import VarianceDecompositionResult, compute_variance_decomposition
from .svar import StructuralVAR

__all__ = [
    # Containers and options
    "ReducedFormVAR",
    "ShockSize",
    "Recursion",
    "Recursive",
    "LongRun",
    "SignRestriction",
    "ExternalInstrument",
    "IdentificationConfig",
    "build_companion",
    "parse_scheme",

    # Multipliers
    "compute_multipliers",
    "cumulative_multiplier",

    # Identification
    "SignSearchResult",
    "sign_restriction_search",
    "InstrumentDiagnostics",
    "common_sample",
    "instrument_identification",
    "IdentificationResult",
    "identify",
    "long_run_impact",
    "recursive_impact",

    # Propagation
    "ImpulseResponseResult",
    "compute_impulse_response",
    "VarianceDecompositionResult",
    "compute_variance_decomposition",

    # Facade
    "StructuralVAR",
]
