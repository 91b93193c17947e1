"""
SVAR Toolbox Utilities Module

Linear algebra kernel and small helpers used throughout the toolbox.

Key components:
- Matrix operations (Cholesky with diagnostics, checked inverse/solve,
  random orthonormal draws, matrix powers)
- Array and DataFrame coercion
- Random generator construction honouring the configured seed
"""

import logging

# Set up module-level logger
logger = logging.getLogger("svar.utils")

from .matrix_ops import (
    ensure_symmetric,
    is_positive_definite,
    cholesky_lower,
    checked_inverse,
    checked_solve,
    random_orthonormal,
    matrix_power,
)

from .misc import (
    ensure_array,
    ensure_dataframe,
    as_generator,
)

__all__ = [
    # Matrix operations
    "ensure_symmetric",
    "is_positive_definite",
    "cholesky_lower",
    "checked_inverse",
    "checked_solve",
    "random_orthonormal",
    "matrix_power",

    # Miscellaneous
    "ensure_array",
    "ensure_dataframe",
    "as_generator",
]
