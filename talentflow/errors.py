"""
Error handling for talentflow.

Provides:
- Custom exception types for the session and preference layers
- A Result type for oracle responses
- Error boundary wrapper for fail-safe operations
- Log formatting for developer diagnostics

Nothing in here produces user-visible error messages: every failure in the
session guard or the preference store ends in a safe state (a redirect or a
default theme) and a log line.
"""

import logging
import traceback
from typing import Optional, Callable, TypeVar, Generic
from dataclasses import dataclass, field
from enum import Enum


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = "low"           # Degraded but fully usable
    MEDIUM = "medium"     # Feature lost for this mount/session
    HIGH = "high"         # Startup problem, e.g. bad configuration


class ErrorCategory(Enum):
    """Categories of errors for better handling."""
    CONFIGURATION = "configuration"
    AUTH = "auth"
    STORAGE = "storage"
    NETWORK = "network"
    USER_INPUT = "user_input"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Context information about an error."""
    category: ErrorCategory
    severity: ErrorSeverity
    operation: str
    technical_message: str
    recoverable: bool = True
    original_exception: Optional[BaseException] = None
    traceback_str: Optional[str] = None
    metadata: dict = field(default_factory=dict)


class TalentflowError(Exception):
    """Base exception for talentflow errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.recoverable = recoverable


class ConfigurationError(TalentflowError):
    """Configuration-related errors."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=kwargs.get("severity", ErrorSeverity.HIGH),
            **{k: v for k, v in kwargs.items() if k != "severity"}
        )


class VerificationError(TalentflowError):
    """The session oracle could not confirm a session (error or timeout)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.AUTH,
            severity=kwargs.get("severity", ErrorSeverity.MEDIUM),
            **{k: v for k, v in kwargs.items() if k != "severity"}
        )


class SubscriptionError(TalentflowError):
    """Registration for session change notifications failed."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.AUTH,
            severity=kwargs.get("severity", ErrorSeverity.MEDIUM),
            **{k: v for k, v in kwargs.items() if k != "severity"}
        )


class PersistenceError(TalentflowError):
    """Durable key-value storage is unavailable or rejected a write."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.STORAGE,
            severity=kwargs.get("severity", ErrorSeverity.LOW),
            **{k: v for k, v in kwargs.items() if k != "severity"}
        )


T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """
    A result type that can hold either a success value or an error.

    Session oracles return this from ``get_current_session`` so that a
    provider-reported error is an explicit value rather than an exception.
    """
    value: Optional[T] = None
    error: Optional[ErrorContext] = None

    @property
    def is_ok(self) -> bool:
        """Check if result is successful."""
        return self.error is None

    @property
    def is_err(self) -> bool:
        """Check if result is an error."""
        return self.error is not None

    def unwrap_or(self, default: T) -> T:
        """Get the value or a default."""
        return self.value if self.is_ok else default

    @staticmethod
    def ok(value: T) -> "Result[T]":
        """Create a success result."""
        return Result(value=value)

    @staticmethod
    def err(error: ErrorContext) -> "Result[T]":
        """Create an error result."""
        return Result(error=error)


class ErrorBoundary:
    """
    Error boundary for wrapping operations with graceful error handling.

    Usage:
        with ErrorBoundary("persist_theme", logger=logger) as boundary:
            storage.set(key, value)

        if boundary.has_error:
            ...

    Only ``Exception`` subclasses are absorbed; cancellation and
    ``KeyboardInterrupt`` always propagate.
    """

    def __init__(
        self,
        operation: str,
        on_error: Optional[Callable[[ErrorContext], None]] = None,
        logger: Optional[logging.Logger] = None,
        log_level: int = logging.WARNING,
        show_technical_details: bool = False,
        default_category: ErrorCategory = ErrorCategory.UNKNOWN,
        default_severity: ErrorSeverity = ErrorSeverity.MEDIUM
    ):
        """
        Initialize the error boundary.

        Args:
            operation: Name of the operation being wrapped
            on_error: Optional callback when error occurs
            logger: Logger that receives a formatted diagnostic line
            log_level: Level used for that diagnostic line
            show_technical_details: Whether to include traceback
            default_category: Default error category if not determined
            default_severity: Default error severity if not determined
        """
        self.operation = operation
        self.on_error = on_error
        self.logger = logger
        self.log_level = log_level
        self.show_technical_details = show_technical_details
        self.default_category = default_category
        self.default_severity = default_severity
        self.error_context: Optional[ErrorContext] = None

    @property
    def has_error(self) -> bool:
        """Check if an error occurred."""
        return self.error_context is not None

    def __enter__(self) -> "ErrorBoundary":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """
        Exit the error boundary, catching and processing any exception.

        Returns True to suppress the exception.
        """
        if exc_type is None:
            return False
        if not issubclass(exc_type, Exception):
            return False

        self.error_context = self._exception_to_context(exc_val, exc_tb)

        if self.logger is not None:
            self.logger.log(self.log_level, format_error_for_log(self.error_context))

        if self.on_error:
            self.on_error(self.error_context)

        return True

    def _exception_to_context(self, exc: Exception, exc_tb) -> ErrorContext:
        """Convert an exception to an ErrorContext."""
        return exception_to_context(
            exc,
            self.operation,
            default_category=self.default_category,
            default_severity=self.default_severity,
            exc_tb=exc_tb if self.show_technical_details else None,
        )


def exception_to_context(
    exc: BaseException,
    operation: str,
    default_category: ErrorCategory = ErrorCategory.UNKNOWN,
    default_severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    exc_tb=None,
) -> ErrorContext:
    """Classify an exception into an ErrorContext."""
    category = default_category
    severity = default_severity
    recoverable = True

    if isinstance(exc, TalentflowError):
        category = exc.category
        severity = exc.severity
        recoverable = exc.recoverable

    elif isinstance(exc, TimeoutError):
        category = ErrorCategory.NETWORK
        severity = ErrorSeverity.MEDIUM

    elif isinstance(exc, ConnectionError):
        category = ErrorCategory.NETWORK
        severity = ErrorSeverity.MEDIUM

    elif isinstance(exc, OSError):
        category = ErrorCategory.STORAGE
        severity = ErrorSeverity.LOW

    elif isinstance(exc, ValueError):
        category = ErrorCategory.USER_INPUT
        severity = ErrorSeverity.LOW

    traceback_str = None
    if exc_tb is not None:
        traceback_str = "".join(traceback.format_exception(type(exc), exc, exc_tb))

    return ErrorContext(
        category=category,
        severity=severity,
        operation=operation,
        technical_message=str(exc) or type(exc).__name__,
        recoverable=recoverable,
        original_exception=exc,
        traceback_str=traceback_str,
    )


def safe_execute(
    func: Callable[[], T],
    operation: str,
    on_error: Optional[Callable[[ErrorContext], None]] = None,
) -> Result[T]:
    """
    Execute a function safely and return a Result.

    Args:
        func: The function to execute
        operation: Name of the operation (for error context)
        on_error: Optional error callback

    Returns:
        Result containing either the return value or error context
    """
    with ErrorBoundary(operation, on_error=on_error) as boundary:
        result = func()

    if boundary.has_error:
        return Result.err(boundary.error_context)
    return Result.ok(result)


def format_error_for_log(context: ErrorContext) -> str:
    """
    Format an error context for logging.

    Args:
        context: The error context

    Returns:
        Formatted log message
    """
    lines = [
        f"[{context.severity.value.upper()}] {context.category.value}: {context.operation}",
        f"  Message: {context.technical_message}",
    ]

    if context.traceback_str:
        lines.append(f"  Traceback:\n{context.traceback_str}")

    return "\n".join(lines)
