# svar/core/validation.py

"""
Validation utilities for the SVAR Toolbox.

Shape and value checks shared by the structural components. Each validator
returns the (possibly converted) array so calls can be chained inline, and
raises ``DimensionError`` or ``ParameterError`` with the offending shape or
value attached.
"""

from typing import Any, Optional, Tuple

import numpy as np

from svar.core.exceptions import (
    DataError, raise_data_error, raise_dimension_error, raise_parameter_error
)


def validate_matrix_shape(
    matrix: Any,
    expected_shape: Tuple[Optional[int], Optional[int]],
    matrix_name: str = "matrix"
) -> np.ndarray:
    """Validate that an array is 2-D with the expected shape.

    Args:
        matrix: Array-like to validate
        expected_shape: Expected ``(rows, cols)``; ``None`` matches any size
        matrix_name: Name of the matrix for error messages

    Returns:
        np.ndarray: The validated matrix as float64

    Raises:
        DimensionError: If the matrix is not 2-D or its shape differs
    """
    matrix = np.asarray(matrix, dtype=np.float64)

    if matrix.ndim != 2:
        raise_dimension_error(
            f"{matrix_name} must be 2-dimensional, got {matrix.ndim} dimensions",
            array_name=matrix_name,
            expected_shape=str(expected_shape),
            actual_shape=matrix.shape
        )

    for axis, expected in enumerate(expected_shape):
        if expected is not None and matrix.shape[axis] != expected:
            raise_dimension_error(
                f"{matrix_name} has shape {matrix.shape}, expected {expected_shape}",
                array_name=matrix_name,
                expected_shape=str(expected_shape),
                actual_shape=matrix.shape
            )

    return matrix


def validate_square_matrix(
    matrix: Any,
    matrix_name: str = "matrix",
    size: Optional[int] = None
) -> np.ndarray:
    """Validate that a matrix is square (and optionally of a given size).

    Raises:
        DimensionError: If the matrix is not square or has the wrong size
    """
    matrix = np.asarray(matrix, dtype=np.float64)

    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise_dimension_error(
            f"{matrix_name} must be square, got shape {matrix.shape}",
            array_name=matrix_name,
            expected_shape="(n, n)",
            actual_shape=matrix.shape
        )

    if size is not None and matrix.shape[0] != size:
        raise_dimension_error(
            f"{matrix_name} must be {size}x{size}, got shape {matrix.shape}",
            array_name=matrix_name,
            expected_shape=(size, size),
            actual_shape=matrix.shape
        )

    return matrix


def validate_finite(array: np.ndarray, data_name: str = "array") -> np.ndarray:
    """Validate that an array holds no NaN or infinite values.

    Raises:
        DataError: If non-finite values are present
    """
    if not np.all(np.isfinite(array)):
        bad = np.argwhere(~np.isfinite(array))
        raise_data_error(
            f"{data_name} contains NaN or infinite values",
            data_name=data_name,
            issue="non-finite values",
            index=tuple(int(i) for i in bad[0])
        )
    return array


def validate_positive_int(value: Any, param_name: str) -> int:
    """Validate that a value is a strictly positive integer.

    Raises:
        ParameterError: If the value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise_parameter_error(
            f"{param_name} must be an integer",
            param_name=param_name,
            param_value=value,
            constraint="positive integer"
        )
    if value <= 0:
        raise_parameter_error(
            f"{param_name} must be positive",
            param_name=param_name,
            param_value=value,
            constraint="positive integer"
        )
    return int(value)


def validate_non_negative_int(value: Any, param_name: str) -> int:
    """Validate that a value is a non-negative integer.

    Raises:
        ParameterError: If the value is not a non-negative integer
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 0:
        raise_parameter_error(
            f"{param_name} must be a non-negative integer",
            param_name=param_name,
            param_value=value,
            constraint="non-negative integer"
        )
    return int(value)


def validate_index(value: Any, size: int, param_name: str) -> int:
    """Validate a 0-based index into an axis of length ``size``.

    Raises:
        ParameterError: If the index is not an integer in ``[0, size)``
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or not 0 <= value < size:
        raise_parameter_error(
            f"{param_name} must be an integer in [0, {size - 1}]",
            param_name=param_name,
            param_value=value,
            constraint=f"0 <= {param_name} < {size}"
        )
    return int(value)


def validate_sign_pattern(
    signs: Any,
    nrows: int,
    ncols: Optional[int] = None,
    pattern_name: str = "signs"
) -> np.ndarray:
    """Validate a sign restriction pattern.

    Entries must be -1, 0 or 1 (0 leaves the response unrestricted).

    Raises:
        DimensionError: If the pattern has the wrong shape
        ParameterError: If entries fall outside {-1, 0, 1}
    """
    signs = validate_matrix_shape(signs, (nrows, ncols), pattern_name)

    if not np.all(np.isin(signs, (-1.0, 0.0, 1.0))):
        raise_parameter_error(
            f"{pattern_name} entries must be -1, 0 or 1",
            param_name=pattern_name,
            param_value=np.unique(signs).tolist(),
            constraint="entries in {-1, 0, 1}"
        )

    return signs
