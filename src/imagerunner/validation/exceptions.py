"""
Failure taxonomy and error handling helpers.

Every failure raised by the build lifecycle is a ``BuildFailure`` carrying an
``ErrorKind`` tag. Reporting code dispatches on that tag, never on the
exception class; the subclasses below only fix the tag and the shape of the
constructor arguments.
"""

import logging
from enum import Enum
from typing import Any, Iterable, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorKind(Enum):
    """Closed set of failure kinds a build can terminate with."""
    CONFIGURATION = "configuration"
    ANALYSIS = "analysis"
    AGGREGATE = "aggregate"
    INTERRUPTION = "interruption"
    FATAL_UNEXPECTED = "fatal_unexpected"


class BuildFailure(Exception):
    """
    Base failure value of the image build.

    Attributes:
        kind: Tag from the closed ``ErrorKind`` taxonomy
        messages: Ordered, human-readable messages
        cause: Optional wrapped exception
        failures: Sub-failures of an aggregate, empty otherwise
        reason: Optional reason of a cooperative interruption
    """

    kind: ErrorKind = ErrorKind.FATAL_UNEXPECTED

    def __init__(
        self,
        messages: Union[str, Iterable[str]] = (),
        kind: Optional[ErrorKind] = None,
        cause: Optional[BaseException] = None,
        failures: Sequence[BaseException] = (),
        reason: Optional[str] = None,
    ):
        if isinstance(messages, str):
            messages = (messages,)
        self.messages: Tuple[str, ...] = tuple(messages)
        if kind is not None:
            self.kind = kind
        self.cause = cause
        self.failures: Tuple[BaseException, ...] = tuple(failures)
        self.reason = reason
        super().__init__("\n".join(self.messages) if self.messages else (reason or ""))
        if cause is not None:
            self.__cause__ = cause


class ConfigurationError(BuildFailure):
    """Bad command line input or missing required configuration."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, *messages: str, cause: Optional[BaseException] = None):
        super().__init__(messages, cause=cause)


class AnalysisError(BuildFailure):
    """Internal inconsistency surfaced by the analysis phase."""

    kind = ErrorKind.ANALYSIS

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__((message,), cause=cause)


class AggregateFailure(BuildFailure):
    """Several failures collected from concurrently executed phase tasks."""

    kind = ErrorKind.AGGREGATE

    def __init__(self, failures: Sequence[BaseException]):
        super().__init__(
            (f"{len(failures)} failures in parallel execution",),
            failures=failures,
        )


class InterruptionSignal(BuildFailure):
    """Cooperative request to stop the build early and successfully."""

    kind = ErrorKind.INTERRUPTION

    def __init__(self, reason: Optional[str] = None):
        super().__init__((), reason=reason)


class ValidationError(ConfigurationError):
    """
    Exception raised when validation of a configuration value fails.

    This is the exception type used throughout the configuration validators.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


def kind_of(error: BaseException) -> ErrorKind:
    """Return the tag of a failure, FATAL_UNEXPECTED for anything untagged."""
    kind = getattr(error, "kind", None)
    if isinstance(kind, ErrorKind):
        return kind
    return ErrorKind.FATAL_UNEXPECTED


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    # Handle both enum and string severity values
    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)
