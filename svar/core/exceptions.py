'''
Custom exception classes for the SVAR Toolbox.

This module defines the exception hierarchy used throughout the SVAR Toolbox.
Every exception carries a primary message plus optional details and a context
dictionary, so that failures in identification or propagation report the
offending dimensions, tolerances or iteration counts alongside the message.

The hierarchy has general families (parameter, dimension, data, numeric,
configuration and model specification errors) and specialised subclasses for
the failure modes of structural identification:

- NotPositiveDefiniteError: a covariance matrix cannot be Cholesky-factored
- LongRunSingularityError: ``I - F`` is not invertible (unit root / explosive)
- MissingConfigurationError: a scheme-specific input was not supplied
- RestrictionsUnsatisfiableError: the sign search exhausted its rotation cap
- InsufficientOverlapError: instrument and residuals share too few observations
- DegenerateForecastVarianceError: a forecast error variance is (near) zero
- InvalidSchemeError: an identification tag is not recognised
- PartialIdentificationError: a computation needs columns a scheme leaves unidentified
'''

import inspect
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np


def _compose(message: str, details: Optional[str], context: Optional[Dict[str, Any]]) -> str:
    text = message
    if details:
        text += f"\n\nDetails: {details}"
    if context:
        text += "\n\nContext:\n" + "\n".join(f"  {k}: {v}" for k, v in context.items())
    return text


class SVARError(Exception):
    """Root of the SVAR Toolbox exception hierarchy.

    Attributes:
        message: Primary message
        details: Longer explanation or remedy
        context: Values describing the failure (shapes, tolerances, counts)
    """

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details
        self.context = context or {}

        full_message = _compose(message, details, context)

        # Caller location helps when the same check runs for several schemes
        frame = inspect.currentframe()
        if frame:
            try:
                frame = frame.f_back
                while frame is not None and frame.f_code.co_name == "__init__":
                    frame = frame.f_back
                if frame:
                    caller_info = inspect.getframeinfo(frame)
                    full_message += f"\n\nLocation: {Path(caller_info.filename).name}:{caller_info.lineno}"
            finally:
                del frame

        super().__init__(full_message)


class ParameterError(SVARError):
    """Raised for an option or argument outside its admissible range.

    Attributes:
        param_name: Offending argument, e.g. ``nsteps`` or ``max_rotations``
        param_value: Value that was supplied
        constraint: Admissible range, e.g. ``"> 0"``
    """

    def __init__(self,
                 message: str,
                 param_name: Optional[str] = None,
                 param_value: Optional[Any] = None,
                 constraint: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.param_name = param_name
        self.param_value = param_value
        self.constraint = constraint

        context_dict = context or {}
        if param_name:
            context_dict["Parameter"] = param_name
        if param_value is not None:
            context_dict["Value"] = param_value
        if constraint:
            context_dict["Constraint"] = constraint

        super().__init__(message, details, context_dict)


class DimensionError(SVARError):
    """Raised when coefficient, covariance or response arrays do not conform.

    Attributes:
        array_name: Which array failed the check
        expected_shape: Shape implied by nvar, nlag or nsteps
        actual_shape: Shape that was supplied
    """

    def __init__(self,
                 message: str,
                 array_name: Optional[str] = None,
                 expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                 actual_shape: Optional[Tuple[int, ...]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.array_name = array_name
        self.expected_shape = expected_shape
        self.actual_shape = actual_shape

        context_dict = context or {}
        if array_name:
            context_dict["Array"] = array_name
        if expected_shape is not None:
            context_dict["Expected Shape"] = expected_shape
        if actual_shape is not None:
            context_dict["Actual Shape"] = actual_shape

        super().__init__(message, details, context_dict)


class NumericError(SVARError):
    """Raised when a factorisation, solve or scaling step breaks down.

    Attributes:
        operation: Step that failed, e.g. ``"cholesky"``
        values: Input to that step (large arrays are summarised by shape)
        error_type: Short label for the failure
    """

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 values: Optional[Any] = None,
                 error_type: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.operation = operation
        self.values = values
        self.error_type = error_type

        context_dict = context or {}
        if operation:
            context_dict["Operation"] = operation
        if values is not None:
            if isinstance(values, np.ndarray) and values.size > 10:
                # Summarise large arrays
                context_dict["Values"] = f"Array with shape {values.shape}"
            else:
                context_dict["Values"] = values
        if error_type:
            context_dict["Error Type"] = error_type

        super().__init__(message, details, context_dict)


class DataError(SVARError):
    """Raised for unusable residual or instrument series.

    Attributes:
        data_name: Series that was rejected
        issue: What is wrong with it
        index: Row (or cell) where the problem was found
    """

    def __init__(self,
                 message: str,
                 data_name: Optional[str] = None,
                 issue: Optional[str] = None,
                 index: Optional[Union[int, Tuple[int, ...], str]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.data_name = data_name
        self.issue = issue
        self.index = index

        context_dict = context or {}
        if data_name:
            context_dict["Data"] = data_name
        if issue:
            context_dict["Issue"] = issue
        if index is not None:
            context_dict["Index"] = index

        super().__init__(message, details, context_dict)


class ConfigurationError(SVARError):
    """Raised for unreadable or inconsistent configuration.

    Attributes:
        config_file: File the settings were read from, if any
        setting: Section or option name
        value: Rejected value
        issue: Why it was rejected
    """

    def __init__(self,
                 message: str,
                 config_file: Optional[Union[str, Path]] = None,
                 setting: Optional[str] = None,
                 value: Optional[Any] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.config_file = config_file
        self.setting = setting
        self.value = value
        self.issue = issue

        context_dict = context or {}
        if config_file:
            context_dict["Config File"] = str(config_file)
        if setting:
            context_dict["Setting"] = setting
        if value is not None:
            context_dict["Value"] = value
        if issue:
            context_dict["Issue"] = issue

        super().__init__(message, details, context_dict)


class ModelSpecificationError(SVARError):
    """Raised when a structural model is specified inconsistently.

    Attributes:
        model_type: Model family, usually ``"SVAR"``
        parameter: Component at fault, e.g. ``scheme``
        valid_options: Accepted values for that component
    """

    def __init__(self,
                 message: str,
                 model_type: Optional[str] = None,
                 parameter: Optional[str] = None,
                 valid_options: Optional[List[Any]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.model_type = model_type
        self.parameter = parameter
        self.valid_options = valid_options

        context_dict = context or {}
        if model_type:
            context_dict["Model Type"] = model_type
        if parameter:
            context_dict["Parameter"] = parameter
        if valid_options:
            context_dict["Valid Options"] = valid_options

        super().__init__(message, details, context_dict)


class NotPositiveDefiniteError(NumericError):
    """Raised when a covariance matrix cannot be Cholesky-factored.

    This is fatal: it signals a misspecified or degenerate reduced-form
    covariance and is never retried.

    Attributes:
        matrix_name: Name of the matrix that failed the factorization
        min_eigenvalue: Smallest eigenvalue of the (symmetrized) matrix
    """

    def __init__(self,
                 message: str,
                 matrix_name: Optional[str] = None,
                 min_eigenvalue: Optional[float] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.matrix_name = matrix_name
        self.min_eigenvalue = min_eigenvalue

        context_dict = context or {}
        if matrix_name:
            context_dict["Matrix"] = matrix_name

        super().__init__(message,
                         operation="cholesky",
                         values=min_eigenvalue,
                         error_type="not positive definite",
                         details=details,
                         context=context_dict)


class LongRunSingularityError(NumericError):
    """Raised when ``I - F`` is singular so the long-run multiplier does not exist.

    Attributes:
        max_modulus: Largest eigenvalue modulus of the companion matrix
    """

    def __init__(self,
                 message: str,
                 max_modulus: Optional[float] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.max_modulus = max_modulus

        context_dict = context or {}
        if max_modulus is not None:
            context_dict["Max Eigenvalue Modulus"] = max_modulus

        super().__init__(message,
                         operation="inverse(I - companion)",
                         error_type="singular matrix",
                         details=details,
                         context=context_dict)


class MissingConfigurationError(ConfigurationError):
    """Raised when a scheme-specific input (B matrix, instrument) is absent.

    Attributes:
        scheme: Identification scheme that needed the input
    """

    def __init__(self,
                 message: str,
                 scheme: Optional[str] = None,
                 setting: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.scheme = scheme

        context_dict = context or {}
        if scheme:
            context_dict["Scheme"] = scheme

        super().__init__(message,
                         setting=setting,
                         issue="required input not supplied",
                         details=details,
                         context=context_dict)


class RestrictionsUnsatisfiableError(SVARError):
    """Raised when the sign-restriction search exhausts its rotation cap.

    The caller may retry with a higher cap or different restrictions.

    Attributes:
        rotations: Number of rotations drawn before giving up
        max_rotations: The configured cap
    """

    def __init__(self,
                 message: str,
                 rotations: Optional[int] = None,
                 max_rotations: Optional[int] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.rotations = rotations
        self.max_rotations = max_rotations

        context_dict = context or {}
        if rotations is not None:
            context_dict["Rotations"] = rotations
        if max_rotations is not None:
            context_dict["Max Rotations"] = max_rotations

        super().__init__(message, details, context_dict)


class InsufficientOverlapError(DataError):
    """Raised when instrument and residual samples share too few observations.

    Attributes:
        nobs: Length of the common sample
        required: Minimum length required
    """

    def __init__(self,
                 message: str,
                 nobs: Optional[int] = None,
                 required: Optional[int] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.nobs = nobs
        self.required = required

        context_dict = context or {}
        if nobs is not None:
            context_dict["Common Observations"] = nobs
        if required is not None:
            context_dict["Required"] = required

        super().__init__(message,
                         data_name="instrument",
                         issue="insufficient overlap with residuals",
                         details=details,
                         context=context_dict)


class DegenerateForecastVarianceError(NumericError):
    """Raised when FEVD denominators are zero or near zero.

    Attributes:
        cells: List of ``(horizon, variable)`` pairs with degenerate variance
    """

    def __init__(self,
                 message: str,
                 cells: Optional[Sequence[Tuple[int, int]]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.cells = list(cells) if cells is not None else []

        context_dict = context or {}
        if self.cells:
            context_dict["Cells"] = self.cells[:10] if len(self.cells) > 10 else self.cells

        super().__init__(message,
                         operation="variance decomposition",
                         error_type="zero forecast error variance",
                         details=details,
                         context=context_dict)


class InvalidSchemeError(ModelSpecificationError):
    """Raised for an unrecognised identification scheme tag."""

    def __init__(self,
                 message: str,
                 scheme: Optional[Any] = None,
                 valid_options: Optional[List[Any]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.scheme = scheme

        context_dict = context or {}
        if scheme is not None:
            context_dict["Scheme"] = scheme

        super().__init__(message,
                         model_type="SVAR",
                         parameter="scheme",
                         valid_options=valid_options,
                         details=details,
                         context=context_dict)


class PartialIdentificationError(ModelSpecificationError):
    """Raised when a computation needs structural columns that are unidentified.

    Attributes:
        identified_shocks: Column indices that the scheme does identify
    """

    def __init__(self,
                 message: str,
                 identified_shocks: Optional[Sequence[int]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.identified_shocks = tuple(identified_shocks) if identified_shocks is not None else ()

        context_dict = context or {}
        if identified_shocks is not None:
            context_dict["Identified Shocks"] = list(self.identified_shocks)

        super().__init__(message, model_type="SVAR", details=details, context=context_dict)


class SVARWarning(Warning):
    """Base warning class for all SVAR Toolbox warnings.

    Attributes:
        message: Primary message
        details: Longer explanation
        context: Values describing the condition
    """

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details
        self.context = context or {}

        full_message = _compose(message, details, context)

        super().__init__(full_message)


class NumericWarning(SVARWarning):
    """Warning raised for numerical issues that do not abort a computation.

    Attributes:
        operation: Computation that produced the suspect values
        issue: Short label, e.g. ``"zero forecast error variance"``
        value: Offending values or cells
    """

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 issue: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.operation = operation
        self.issue = issue
        self.value = value

        context_dict = context or {}
        if operation:
            context_dict["Operation"] = operation
        if issue:
            context_dict["Issue"] = issue
        if value is not None:
            context_dict["Value"] = value

        super().__init__(message, details, context_dict)


class ModelWarning(SVARWarning):
    """Warning raised for questionable model inputs, e.g. a weak instrument."""

    def __init__(self,
                 message: str,
                 model_type: Optional[str] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.model_type = model_type
        self.issue = issue

        context_dict = context or {}
        if model_type:
            context_dict["Model Type"] = model_type
        if issue:
            context_dict["Issue"] = issue

        super().__init__(message, details, context_dict)


# Shorthands used by the validation layer

def raise_parameter_error(message: str,
                          param_name: Optional[str] = None,
                          param_value: Optional[Any] = None,
                          constraint: Optional[str] = None,
                          details: Optional[str] = None,
                          context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a ParameterError."""
    raise ParameterError(message, param_name, param_value, constraint, details, context)


def raise_dimension_error(message: str,
                          array_name: Optional[str] = None,
                          expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                          actual_shape: Optional[Tuple[int, ...]] = None,
                          details: Optional[str] = None,
                          context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a DimensionError built from the shape arguments."""
    raise DimensionError(message, array_name, expected_shape, actual_shape, details, context)


def raise_data_error(message: str,
                     data_name: Optional[str] = None,
                     issue: Optional[str] = None,
                     index: Optional[Union[int, Tuple[int, ...], str]] = None,
                     details: Optional[str] = None,
                     context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a DataError pointing at the offending row."""
    raise DataError(message, data_name, issue, index, details, context)


def warn_numeric(message: str,
                 operation: Optional[str] = None,
                 issue: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
    """Warn about a suspect result without aborting."""
    warnings.warn(
        NumericWarning(message, operation, issue, value, details, context),
        stacklevel=2
    )


def warn_model(message: str,
               model_type: Optional[str] = None,
               issue: Optional[str] = None,
               details: Optional[str] = None,
               context: Optional[Dict[str, Any]] = None) -> None:
    """Warn about a questionable model input."""
    warnings.warn(
        ModelWarning(message, model_type, issue, details, context),
        stacklevel=2
    )
