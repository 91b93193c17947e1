# svar/__init__.py
"""
SVAR Toolbox - Structural Vector Autoregression Analysis for Python

Structural analysis of an already estimated reduced-form VAR:

- Identification of the structural impact matrix (recursive, long-run,
  sign restrictions, external instrument)
- Wold multipliers and structural impulse responses
- Forecast error variance decompositions and forecast standard errors

VAR estimation itself is left to the caller; ``ReducedFormVAR.from_statsmodels``
imports a fitted ``statsmodels`` VAR.
"""

import logging

# Set up package-wide logger; handlers follow the ``logging`` configuration section
logger = logging.getLogger("svar")
logger.addHandler(logging.NullHandler())

from .version import __version__, __title__, __description__, __author__, __license__

# Import subpackages to make them available in the svar namespace
try:
    from . import core
    from . import utils
    from . import models
except ImportError as e:
    logger.error(f"Error importing SVAR Toolbox components: {e}")
    raise ImportError(
        "Failed to import SVAR Toolbox components. Please ensure the package "
        "is correctly installed. You can install it using: "
        "pip install svar-toolbox"
    ) from e

from .core.config import get_config, set_config, reset_config
from .models.structural import (
    ReducedFormVAR,
    IdentificationConfig,
    ShockSize,
    Recursion,
    Recursive,
    LongRun,
    SignRestriction,
    ExternalInstrument,
    StructuralVAR,
    compute_multipliers,
    identify,
    sign_restriction_search,
    instrument_identification,
    common_sample,
    compute_impulse_response,
    compute_variance_decomposition,
)
from .utils.matrix_ops import random_orthonormal

__all__ = [
    "__version__",
    "core",
    "utils",
    "models",
    "get_config",
    "set_config",
    "reset_config",
    "ReducedFormVAR",
    "IdentificationConfig",
    "ShockSize",
    "Recursion",
    "Recursive",
    "LongRun",
    "SignRestriction",
    "ExternalInstrument",
    "StructuralVAR",
    "compute_multipliers",
    "identify",
    "sign_restriction_search",
    "random_orthonormal",
    "instrument_identification",
    "common_sample",
    "compute_impulse_response",
    "compute_variance_decomposition",
]
