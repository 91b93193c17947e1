# svar/core/types.py

"""
Core type aliases for the SVAR Toolbox.

These aliases document the expected shape and role of the arrays passed
between the identification, propagation and decomposition components. They
are plain ``np.ndarray`` aliases; shape checks live in ``svar.core.validation``.
"""

from pathlib import Path
from typing import Any, Dict, Literal, Union

import numpy as np
import pandas as pd

# NumPy array aliases
Vector = np.ndarray  # 1D array
Matrix = np.ndarray  # 2D array
Tensor3D = np.ndarray  # 3D array

# Specialised matrices
CovarianceMatrix = np.ndarray  # symmetric positive (semi-)definite, nvar x nvar
TriangularMatrix = np.ndarray  # lower triangular Cholesky root
OrthogonalMatrix = np.ndarray  # Q'Q = I
CompanionMatrix = np.ndarray  # (nvar*nlag) x (nvar*nlag)
ImpactMatrix = np.ndarray  # structural impact matrix B, nvar x nvar
SignPattern = np.ndarray  # entries in {-1, 0, 1}, rows = variables, columns = shocks

# Sequences of matrices indexed by horizon
MultiplierSequence = np.ndarray  # (nsteps, nvar, nvar)
ImpulseResponseTensor = np.ndarray  # (nsteps, nvar, nshock)
VarianceDecompositionTensor = np.ndarray  # (nsteps, nshock, nvar)

# Observed series
InstrumentData = Union[np.ndarray, pd.Series, pd.DataFrame]

# Randomness
RandomState = Union[None, int, np.random.Generator]

# Configuration
ConfigDict = Dict[str, Any]
ConfigPath = Union[str, Path]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
