# svar/models/__init__.py
"""
SVAR Toolbox Models Module

Structural analysis of vector autoregressions: identification of the impact
matrix, impulse responses and forecast error variance decompositions.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("svar.models")

from . import structural
from .structural import (
    ReducedFormVAR,
    IdentificationConfig,
    StructuralVAR,
)

__all__ = [
    "structural",
    "ReducedFormVAR",
    "IdentificationConfig",
    "StructuralVAR",
]
