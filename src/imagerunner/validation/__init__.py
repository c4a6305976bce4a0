"""
Validation and error handling for the imagerunner package.

This module provides the closed failure taxonomy of a build, input
validation for configuration values and consistent error logging. The
user-facing classifier and reporter live in ``error_handler``.
"""

# Core exception classes and error handling
from .exceptions import (
    AggregateFailure,
    AnalysisError,
    BuildFailure,
    ConfigurationError,
    ErrorKind,
    ErrorSeverity,
    InterruptionSignal,
    ValidationError,
    handle_config_error,
    handle_error,
    kind_of,
)

# Validation functions
from .validators import (
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_string_list,
)

__all__ = [
    # Core functionality
    "AggregateFailure",
    "AnalysisError",
    "BuildFailure",
    "ConfigurationError",
    "ErrorKind",
    "ErrorSeverity",
    "InterruptionSignal",
    "ValidationError",
    "handle_config_error",
    "handle_error",
    "kind_of",
    # Validators
    "validate_enum_choice",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_string_list",
]
