# svar/utils/matrix_ops.py
"""
Matrix Operations Module

Linear algebra kernel shared by the structural components: symmetrisation,
positive-definiteness checks, a Cholesky factorisation that reports the
offending eigenvalue, condition-checked inversion and solves, random
orthonormal draws and companion matrix powers.

All routines work in double precision. Symmetry and positive-definiteness
checks tolerate accumulated rounding through ``numerical.symmetry_tol``
rather than testing for exact equality.

Functions:
    ensure_symmetric: Ensure a matrix is symmetric
    is_positive_definite: Check if a matrix is positive definite
    cholesky_lower: Lower Cholesky root, raising NotPositiveDefiniteError
    checked_inverse: Inverse with a condition number guard
    checked_solve: Linear solve with a condition number guard
    random_orthonormal: Haar-distributed orthonormal matrix via QR
    matrix_power: Integer power of a square matrix
"""

import logging
from typing import Optional

import numpy as np
from scipy import linalg

from svar.core.config import get_numerical_config
from svar.core.exceptions import NotPositiveDefiniteError, NumericError, raise_dimension_error
from svar.core.types import Matrix, OrthogonalMatrix, TriangularMatrix

# Set up module-level logger
logger = logging.getLogger("svar.utils.matrix_ops")


def _require_square(matrix: np.ndarray, matrix_name: str) -> None:
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise_dimension_error(
            f"{matrix_name} must be a square matrix",
            array_name=matrix_name,
            expected_shape="(n, n)",
            actual_shape=matrix.shape
        )


def ensure_symmetric(matrix: Matrix, tol: Optional[float] = None) -> Matrix:
    """
    Ensure a matrix is symmetric by averaging with its transpose.

    If the matrix is already symmetric within the tolerance it is returned
    unchanged.

    Args:
        matrix: Matrix to make symmetric
        tol: Tolerance for checking symmetry (defaults to ``numerical.symmetry_tol``)

    Returns:
        Symmetric matrix

    Raises:
        DimensionError: If the input matrix is not square

    Examples:
        >>> import numpy as np
        >>> from svar.utils.matrix_ops import ensure_symmetric
        >>> ensure_symmetric(np.array([[1, 2.000001], [2, 3]]))
        array([[1.       , 2.0000005],
               [2.0000005, 3.       ]])
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    _require_square(matrix, "matrix")

    if tol is None:
        tol = get_numerical_config().symmetry_tol

    if np.allclose(matrix, matrix.T, rtol=tol, atol=tol):
        return matrix

    return (matrix + matrix.T) / 2


def is_positive_definite(matrix: Matrix, tol: Optional[float] = None) -> bool:
    """
    Check if a matrix is positive definite.

    The matrix must be symmetric within ``tol`` and admit a Cholesky
    factorisation.

    Args:
        matrix: Matrix to check
        tol: Symmetry tolerance (defaults to ``numerical.symmetry_tol``)

    Returns:
        True if the matrix is positive definite, False otherwise
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        return False

    if tol is None:
        tol = get_numerical_config().symmetry_tol

    if not np.allclose(matrix, matrix.T, rtol=tol, atol=tol):
        return False

    try:
        linalg.cholesky(matrix, lower=True)
        return True
    except linalg.LinAlgError:
        return False


def cholesky_lower(matrix: Matrix, matrix_name: str = "sigma") -> TriangularMatrix:
    """
    Lower-triangular Cholesky root ``L`` with ``L @ L.T == matrix``.

    Asymmetry within ``numerical.symmetry_tol`` is averaged away so that
    covariances carrying rounding noise still factor; anything larger is
    rejected.

    Args:
        matrix: Symmetric positive definite matrix
        matrix_name: Name used in error messages

    Returns:
        Lower-triangular root

    Raises:
        DimensionError: If the matrix is not square
        NotPositiveDefiniteError: If the matrix is not symmetric or the factorisation fails
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    _require_square(matrix, matrix_name)

    if not np.all(np.isfinite(matrix)):
        raise NotPositiveDefiniteError(
            f"{matrix_name} contains non-finite values",
            matrix_name=matrix_name
        )

    tol = get_numerical_config().symmetry_tol
    if not np.allclose(matrix, matrix.T, rtol=tol, atol=tol):
        raise NotPositiveDefiniteError(
            f"{matrix_name} is not symmetric",
            matrix_name=matrix_name,
            details=f"Largest asymmetry {float(np.max(np.abs(matrix - matrix.T))):.3e} exceeds {tol:g}"
        )

    symmetric = ensure_symmetric(matrix, tol)
    try:
        return linalg.cholesky(symmetric, lower=True)
    except linalg.LinAlgError as e:
        min_eig = float(np.min(linalg.eigvalsh(symmetric)))
        raise NotPositiveDefiniteError(
            f"{matrix_name} is not positive definite",
            matrix_name=matrix_name,
            min_eigenvalue=min_eig,
            details=str(e)
        ) from e


def _check_condition(matrix: np.ndarray, matrix_name: str, operation: str) -> None:
    limit = get_numerical_config().condition_limit
    cond = np.linalg.cond(matrix)
    if not np.isfinite(cond) or cond > limit:
        raise NumericError(
            f"{matrix_name} is singular or ill-conditioned",
            operation=operation,
            values=float(cond),
            error_type="singular matrix",
            context={"Condition Limit": limit}
        )


def checked_inverse(matrix: Matrix, matrix_name: str = "matrix") -> Matrix:
    """
    Invert a square matrix, refusing singular or ill-conditioned input.

    Raises:
        DimensionError: If the matrix is not square
        NumericError: If the condition number exceeds ``numerical.condition_limit``
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    _require_square(matrix, matrix_name)
    _check_condition(matrix, matrix_name, "inverse")
    return linalg.inv(matrix)


def checked_solve(a: Matrix, b: Matrix, matrix_name: str = "matrix") -> Matrix:
    """
    Solve ``a @ x = b`` for ``x``, refusing a singular or ill-conditioned ``a``.

    Raises:
        DimensionError: If ``a`` is not square
        NumericError: If the condition number exceeds ``numerical.condition_limit``
    """
    a = np.asarray(a, dtype=np.float64)
    _require_square(a, matrix_name)
    _check_condition(a, matrix_name, "solve")
    return linalg.solve(a, np.asarray(b, dtype=np.float64))


def random_orthonormal(n: int, rng: np.random.Generator) -> OrthogonalMatrix:
    """
    Draw an ``n x n`` orthonormal matrix from the Haar measure.

    Takes the QR decomposition of a standard normal matrix and flips the sign
    of every column of Q whose matching diagonal entry of R is negative, so
    the orientation of the draw is unique.

    Args:
        n: Matrix dimension
        rng: Random number generator

    Returns:
        Orthonormal matrix with ``Q.T @ Q == I``
    """
    if n < 1:
        raise_dimension_error(
            "Orthonormal matrix dimension must be at least 1",
            array_name="n",
            expected_shape=">= 1",
            actual_shape=(n,)
        )

    q, r = linalg.qr(rng.standard_normal((n, n)))
    signs = np.where(np.diag(r) < 0, -1.0, 1.0)
    return q * signs


def matrix_power(matrix: Matrix, k: int) -> Matrix:
    """Integer power ``matrix**k`` (``k = 0`` gives the identity)."""
    matrix = np.asarray(matrix, dtype=np.float64)
    _require_square(matrix, "matrix")
    return np.linalg.matrix_power(matrix, k)
