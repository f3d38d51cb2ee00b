"""Closed error taxonomy for consistent error handling.

This module defines every failure the application signals on purpose. Each
exception carries exactly one ``ErrorCode`` tag, and the HTTP layer maps
that tag to a status code through ``ERROR_STATUS_CODES``, so dispatch never
depends on the concrete exception class.

Key components:
- **ErrorCode enum**: The closed set of error kinds
- **Severity enum**: Error classification for monitoring and alerting
- **ItemKitError**: Base exception with context, fingerprinting and cause
- **Specialized exceptions**: One subclass per error kind

Features:
- **Error fingerprinting**: Automatic grouping of similar errors
- **Stack trace capture**: Full context at error creation time
- **Exception chaining**: Preserves original cause for debugging
- **Fixed messages**: Authentication and validation kinds never leak details
"""

import hashlib
import traceback
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Closed set of error kinds signalled by the application."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to invalid or malformed data."""

    NOT_FOUND = "NOT_FOUND"
    """The requested resource could not be found."""

    CONFLICT = "CONFLICT"
    """The request conflicts with the current state of the resource."""

    FORBIDDEN = "FORBIDDEN"
    """The caller is not allowed to perform this action."""

    TOKEN_MISSING = "TOKEN_MISSING"
    """A protected route was called without any token."""

    TOKEN_INVALID = "TOKEN_INVALID"
    """The token is malformed or its signature does not verify."""

    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    """The token verifies but is past its expiry horizon."""

    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    """The login credential does not match the configured hash."""

    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    """No database connection could be obtained in time."""


ERROR_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.TOKEN_MISSING: 401,
    ErrorCode.TOKEN_INVALID: 401,
    ErrorCode.TOKEN_EXPIRED: 401,
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
}


def status_code_for(error_code: ErrorCode) -> int:
    """Return the HTTP status code for an error kind.

    Args:
        error_code: The error kind.

    Returns:
        int: The mapped status code, 500 for anything unmapped.
    """
    return ERROR_STATUS_CODES.get(error_code, 500)


class Severity(Enum):
    """Severity levels for errors in the itemkit application."""

    LOW = "LOW"
    """Low severity errors that don't significantly impact functionality."""

    MEDIUM = "MEDIUM"
    """Medium severity errors that may affect some features but not critical ops."""

    HIGH = "HIGH"
    """High severity errors impacting critical functionality or data integrity."""

    CRITICAL = "CRITICAL"
    """Critical errors requiring immediate attention, may cause system failures."""


class ItemKitError(Exception):
    """Base exception class for all itemkit application exceptions.

    All custom exceptions in the application should inherit from this class
    to ensure consistent error handling and formatting.

    Args:
        error_code: The error kind this exception signals
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
        details: Structured, client-facing details (e.g. validation issues)
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        details: Any = None,  # noqa: ANN401 - any JSON-serializable payload
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause
        self.details = details

        # Capture stack trace at creation time
        self.stack_trace = traceback.format_stack()[:-1]  # Exclude this frame

        self.fingerprint = self._generate_fingerprint()

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    @property
    def status_code(self) -> int:
        """HTTP status code mapped from the error kind."""
        return status_code_for(self.error_code)

    def _generate_fingerprint(self) -> str:
        """Generate a fingerprint for error grouping.

        Returns:
            str: A hash string for error grouping
        """
        max_frames = 5
        relevant_frames = (
            self.stack_trace[-max_frames:]
            if len(self.stack_trace) > max_frames
            else self.stack_trace
        )

        fingerprint_data = f"{self.__class__.__name__}:{self.error_code.value}"

        for frame in relevant_frames:
            if "site-packages" not in frame and "itemkit/" in frame:
                lines = frame.strip().split("\n")
                if lines:
                    fingerprint_data += f":{lines[0]}"

        return hashlib.sha256(fingerprint_data.encode()).hexdigest()[:16]

    @property
    def is_expected(self) -> bool:
        """Whether this error occurs during normal operation (LOW or MEDIUM)."""
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    @property
    def should_alert(self) -> bool:
        """Whether this error should trigger alerts (HIGH or CRITICAL)."""
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        """Return a string representation of the exception."""
        return f"[{self.error_code.value}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception."""
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code.value}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(ItemKitError):
    """Raised when request data does not match its declared shape.

    The client-facing message is fixed; the violated constraints travel in
    ``issues`` (one ``{"path", "message"}`` entry per violation).

    Args:
        issues: Violated constraints
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    MESSAGE = "Invalid request data"

    def __init__(
        self,
        issues: list[dict[str, str]],
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.issues = issues
        super().__init__(
            ErrorCode.VALIDATION_ERROR,
            self.MESSAGE,
            Severity.LOW,
            context,
            cause,
            details=issues,
        )


class NotFoundError(ItemKitError):
    """Raised when a requested resource does not exist.

    Args:
        message: Description of what resource was not found
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.NOT_FOUND, message, Severity.LOW, context, cause)


class ConflictError(ItemKitError):
    """Raised when an operation conflicts with the stored state.

    Args:
        message: Description of the conflict
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.CONFLICT, message, Severity.MEDIUM, context, cause)


class ForbiddenError(ItemKitError):
    """Raised when the caller may not perform an action.

    Args:
        message: Description of the refused action
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.FORBIDDEN, message, Severity.MEDIUM, context, cause)


class UnauthorizedError(ItemKitError):
    """Base class for authentication failures.

    Subclasses fix both the error kind and the message, so nothing about
    the rejected token or credential reaches the client.
    """

    error_kind: ErrorCode = ErrorCode.TOKEN_INVALID
    default_message: str = "Unauthorized"

    def __init__(
        self,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            self.error_kind, self.default_message, Severity.MEDIUM, context, cause
        )


class TokenMissingError(UnauthorizedError):
    """Neither the Authorization header nor the cookie carried a token."""

    error_kind = ErrorCode.TOKEN_MISSING
    default_message = "Authentication token missing"


class TokenInvalidError(UnauthorizedError):
    """The token is malformed or its signature does not verify."""

    error_kind = ErrorCode.TOKEN_INVALID
    default_message = "Invalid token"


class TokenExpiredError(UnauthorizedError):
    """The token is authentic but past its expiry horizon."""

    error_kind = ErrorCode.TOKEN_EXPIRED
    default_message = "Token expired"


class InvalidCredentialsError(UnauthorizedError):
    """The login credential does not match the configured hash."""

    error_kind = ErrorCode.INVALID_CREDENTIALS
    default_message = "Invalid password"


class PoolExhaustedError(ItemKitError):
    """Raised when no database connection frees up within the pool timeout.

    Args:
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    MESSAGE = "Database connection pool exhausted"

    def __init__(
        self,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.SERVICE_UNAVAILABLE, self.MESSAGE, Severity.HIGH, context, cause
        )
