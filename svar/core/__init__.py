"""
SVAR Toolbox Core Module

Exception hierarchy, configuration management, type aliases and validation
utilities shared by every structural component.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("svar.core")

from .exceptions import (
    SVARError,
    ParameterError,
    DimensionError,
    NumericError,
    DataError,
    ConfigurationError,
    ModelSpecificationError,
    NotPositiveDefiniteError,
    LongRunSingularityError,
    MissingConfigurationError,
    RestrictionsUnsatisfiableError,
    InsufficientOverlapError,
    DegenerateForecastVarianceError,
    InvalidSchemeError,
    PartialIdentificationError,
    SVARWarning,
    NumericWarning,
    ModelWarning,
)

from .config import (
    ConfigManager,
    SVARConfig,
    get_config,
    set_config,
    reset_config,
    save_config,
    get_config_manager,
    get_core_config,
    get_numerical_config,
    get_defaults_config,
    get_logging_config,
)

from .validation import (
    validate_matrix_shape,
    validate_square_matrix,
    validate_finite,
    validate_positive_int,
    validate_non_negative_int,
    validate_index,
    validate_sign_pattern,
)

__all__ = [
    # Exceptions
    "SVARError",
    "ParameterError",
    "DimensionError",
    "NumericError",
    "DataError",
    "ConfigurationError",
    "ModelSpecificationError",
    "NotPositiveDefiniteError",
    "LongRunSingularityError",
    "MissingConfigurationError",
    "RestrictionsUnsatisfiableError",
    "InsufficientOverlapError",
    "DegenerateForecastVarianceError",
    "InvalidSchemeError",
    "PartialIdentificationError",
    "SVARWarning",
    "NumericWarning",
    "ModelWarning",

    # Configuration
    "ConfigManager",
    "SVARConfig",
    "get_config",
    "set_config",
    "reset_config",
    "save_config",
    "get_config_manager",
    "get_core_config",
    "get_numerical_config",
    "get_defaults_config",
    "get_logging_config",

    # Validation
    "validate_matrix_shape",
    "validate_square_matrix",
    "validate_finite",
    "validate_positive_int",
    "validate_non_negative_int",
    "validate_index",
    "validate_sign_pattern",
]
