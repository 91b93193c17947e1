# svar/models/structural/multipliers.py

"""
Wold multipliers of a reduced-form VAR.

Converts the lag coefficient matrix into the moving-average representation
truncated at a requested horizon, and computes the infinite-horizon cumulative
multiplier from the companion matrix.

Functions:
    compute_multipliers: Multiplier sequence psi[0..nsteps-1] with psi[0] = I
    cumulative_multiplier: First nvar x nvar block of inv(I - companion)
"""

import logging

import numpy as np

from svar.core.config import get_core_config
from svar.core.exceptions import LongRunSingularityError, NumericError, raise_dimension_error
from svar.core.types import CompanionMatrix, Matrix, MultiplierSequence
from svar.core.validation import validate_matrix_shape, validate_non_negative_int, validate_positive_int
from svar.models.structural._numba_core import wold_multipliers_numba
from svar.utils.matrix_ops import checked_inverse

# Set up module-level logger
logger = logging.getLogger("svar.models.structural.multipliers")


def _wold_multipliers_numpy(lag_blocks: np.ndarray, nsteps: int) -> np.ndarray:
    nlag, nvar = lag_blocks.shape[0], lag_blocks.shape[1]
    psi = np.zeros((nsteps, nvar, nvar))
    psi[0] = np.eye(nvar)

    for h in range(1, nsteps):
        for j in range(1, min(h, nlag) + 1):
            psi[h] += psi[h - j] @ lag_blocks[j - 1]

    return psi


def compute_multipliers(coefficients: Matrix,
                        nlag: int,
                        nvar: int,
                        const: int,
                        nsteps: int) -> MultiplierSequence:
    """
    Compute the Wold multiplier sequence of a VAR.

    The lag blocks A_1..A_p are sliced from the columns after the ``const``
    deterministic columns. Multipliers follow the convolution
    psi[h] = sum_{j=1}^{h} psi[h-j] @ A_j with A_j = 0 for j > nlag, so entries
    beyond the lag order only combine earlier multipliers.

    Args:
        coefficients: Coefficient matrix (nvar x (const + nvar*nlag))
        nlag: Lag order
        nvar: Number of variables
        const: Number of deterministic columns before the lag blocks
        nsteps: Number of multipliers to return

    Returns:
        np.ndarray: Multipliers (nsteps x nvar x nvar), exactly ``nsteps`` long

    Raises:
        DimensionError: If the coefficient matrix does not match nvar, nlag and const
        ParameterError: If nlag, nvar or nsteps are not positive integers

    Examples:
        >>> import numpy as np
        >>> from svar.models.structural.multipliers import compute_multipliers
        >>> psi = compute_multipliers(np.array([[0.5]]), nlag=1, nvar=1, const=0, nsteps=3)
        >>> psi[:, 0, 0]
        array([1.  , 0.5 , 0.25])
    """
    nlag = validate_positive_int(nlag, "nlag")
    nvar = validate_positive_int(nvar, "nvar")
    const = validate_non_negative_int(const, "const")
    nsteps = validate_positive_int(nsteps, "nsteps")

    coefficients = validate_matrix_shape(coefficients, (nvar, None), "coefficients")
    if coefficients.shape[1] < const + nvar * nlag:
        raise_dimension_error(
            "coefficients has fewer columns than const + nvar*nlag",
            array_name="coefficients",
            expected_shape=(nvar, const + nvar * nlag),
            actual_shape=coefficients.shape
        )

    blocks = coefficients[:, const:const + nvar * nlag].reshape(nvar, nlag, nvar)
    lag_blocks = np.ascontiguousarray(blocks.transpose(1, 0, 2))

    if get_core_config().enable_numba:
        psi = wold_multipliers_numba(lag_blocks, nsteps)
    else:
        psi = _wold_multipliers_numpy(lag_blocks, nsteps)

    logger.debug(f"Computed {nsteps} Wold multipliers for a VAR({nlag}) with {nvar} variables")
    return psi


def cumulative_multiplier(companion: CompanionMatrix, nvar: int) -> Matrix:
    """
    Infinite-horizon cumulative multiplier.

    Returns the first nvar x nvar block of ``inv(I - companion)``, the sum of
    all Wold multipliers of a stable VAR.

    Raises:
        LongRunSingularityError: If ``I - companion`` is singular or
            ill-conditioned (unit root or explosive dynamics)
    """
    companion = np.asarray(companion, dtype=np.float64)
    size = companion.shape[0]

    try:
        finf_big = checked_inverse(np.eye(size) - companion, "I - companion")
    except NumericError as e:
        max_modulus = float(np.max(np.abs(np.linalg.eigvals(companion))))
        raise LongRunSingularityError(
            "Long-run multiplier does not exist: I - companion is not invertible",
            max_modulus=max_modulus,
            details="A companion eigenvalue at or near one signals a unit root"
        ) from e

    return finf_big[:nvar, :nvar]
