"""Structured exception hierarchy for consistent error handling.

This module defines the exception system of the VATCalc backend. Every error
the application raises on purpose derives from :class:`VatCalcError`, which
carries a machine-readable code, a severity and structured context so that
the API layer can render a uniform error response and the logging layer can
choose an appropriate level.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for monitoring and alerting
- **VatCalcError**: Base exception with rich context and exception chaining
- **Specialized exceptions**: validation, busy saves, remote store failures,
  timeouts and the unrecoverable persistence failure

Remote store errors are normally absorbed by the settings synchronizer and
turned into the ``remote_available`` flag; only :class:`SaveInProgressError`
and :class:`PersistenceError` are meant to reach HTTP clients from a save.
"""

import traceback
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for the VATCalc application."""

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to invalid or malformed data."""

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    """The requested resource could not be found."""

    # Settings synchronization errors
    SAVE_IN_PROGRESS = "SAVE_IN_PROGRESS"
    """A settings save was requested while another one was still in flight."""

    OPERATION_TIMEOUT = "OPERATION_TIMEOUT"
    """A remote store operation did not complete within its time budget."""

    OPERATION_ABORTED = "OPERATION_ABORTED"
    """The caller of a remote operation went away before it completed."""

    REMOTE_UNAVAILABLE = "REMOTE_UNAVAILABLE"
    """The remote settings store could not be reached or rejected the call."""

    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    """Neither the remote store nor the local fallback could record a change."""

    # Site state
    MAINTENANCE_MODE = "MAINTENANCE_MODE"
    """The site is in maintenance mode and the public surface is closed."""


class Severity(Enum):
    """Severity levels for errors in the VATCalc application."""

    LOW = "LOW"
    """Expected errors caused by user input or normal contention."""

    MEDIUM = "MEDIUM"
    """Degraded operation that the application can work around."""

    HIGH = "HIGH"
    """Failures that lose data or leave the site misconfigured."""

    CRITICAL = "CRITICAL"
    """Failures requiring immediate attention."""


class VatCalcError(Exception):
    """Base exception class for all VATCalc application exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        # Capture stack trace at creation time
        self.stack_trace = traceback.format_stack()[:-1]

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    @property
    def is_expected(self) -> bool:
        """Whether the error is part of normal operation (LOW or MEDIUM severity).

        Returns:
            bool: True if the error is expected
        """
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    @property
    def should_alert(self) -> bool:
        """Whether the error should page someone (HIGH or CRITICAL severity).

        Returns:
            bool: True if the error should trigger alerts
        """
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        """Return a string representation of the exception.

        Returns:
            str: A formatted string containing the error code and message
        """
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception.

        Returns:
            str: Class name, error code, message, severity and context
        """
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(VatCalcError):
    """Exception raised when input validation fails.

    Used for calculator input out of range and for settings patches that
    break an aggregate invariant (unknown platform, duplicate link).
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.VALIDATION_ERROR,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class SaveInProgressError(VatCalcError):
    """Exception raised when a save is requested while another is in flight.

    The aggregate is left untouched; the caller is expected to retry.
    """

    def __init__(
        self,
        message: str = "A settings save is already in progress",
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(ErrorCode.SAVE_IN_PROGRESS, message, Severity.LOW, context)


class OperationTimeoutError(VatCalcError):
    """Exception raised when a remote operation exceeds its time budget."""

    def __init__(
        self,
        label: str,
        timeout_ms: float,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.label = label
        self.timeout_ms = timeout_ms
        super().__init__(
            ErrorCode.OPERATION_TIMEOUT,
            f"{label} timeout",
            Severity.MEDIUM,
            {"operation": label, "timeout_ms": timeout_ms, **(context or {})},
        )


class AbortedOperationError(VatCalcError):
    """Exception raised when an operation is abandoned because its caller left."""

    def __init__(
        self,
        label: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.OPERATION_ABORTED,
            f"{label} was aborted",
            Severity.LOW,
            {"operation": label, **(context or {})},
            cause,
        )


class RemoteStoreError(VatCalcError):
    """Exception raised when the remote settings store fails a call."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.REMOTE_UNAVAILABLE, message, Severity.MEDIUM, context, cause
        )


class PersistenceError(VatCalcError):
    """Exception raised when a change could not be recorded anywhere.

    Raised by a save when both the remote store and the local fallback
    failed; at that point no durable copy of the change exists.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.PERSISTENCE_FAILED, message, Severity.HIGH, context, cause
        )


class MaintenanceModeError(VatCalcError):
    """Exception raised for public routes while the site is under maintenance."""

    def __init__(
        self,
        message: str = (
            "Our website is currently under maintenance. Please check back soon."
        ),
    ) -> None:
        super().__init__(ErrorCode.MAINTENANCE_MODE, message, Severity.LOW)
