"""Exception hierarchy and stable error codes.

Every failure a handler raises on purpose should be one of the exceptions
defined here. The fault boundary at the edge of the request pipeline maps
them to HTTP status codes and to the ``code`` field of the error envelope,
so the codes in :class:`ErrorCode` are part of the public wire contract.

Built-in exceptions are also classified at the boundary (``ValueError`` is
treated as malformed input, ``PermissionError`` as access denied and
``KeyError`` as a lookup miss), which lets plain library code fail in a
caller-actionable way without wrapping every error.
"""

from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Machine-readable error codes returned in the error envelope."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """A required value was missing or an argument was malformed."""

    INVALID_OPERATION = "INVALID_OPERATION"
    """The operation is not valid for the current state of the resource."""

    UNAUTHORIZED = "UNAUTHORIZED"
    """The caller is not allowed to perform the action."""

    NOT_FOUND = "NOT_FOUND"
    """The requested resource does not exist."""

    MISSING_TENANT = "MISSING_TENANT"
    """The tenant header was absent or malformed."""


class Severity(Enum):
    """Severity levels used to pick log levels and alerting."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Gov2BizError(Exception):
    """Base exception class for all Gov2Biz application exceptions.

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

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    @property
    def is_expected(self) -> bool:
        """Whether the error is part of normal operation (LOW or MEDIUM)."""
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    @property
    def should_alert(self) -> bool:
        """Whether the error should page someone (HIGH or CRITICAL)."""
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(Gov2BizError):
    """Raised when an argument or input value is malformed.

    Args:
        message: Description of the validation failure
        error_code: Error code (defaults to VALIDATION_ERROR)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.VALIDATION_ERROR,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class MissingValueError(ValidationError):
    """Raised when a required argument was not provided.

    Args:
        name: Name of the missing argument or field
        message: Optional description, derived from ``name`` when omitted
        context: Additional context information about the error
    """

    def __init__(
        self,
        name: str,
        message: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        super().__init__(
            message or f"Value for '{name}' was not provided",
            context={"argument": name, **(context or {})},
        )


class InvalidOperationError(Gov2BizError):
    """Raised when an operation violates a business precondition.

    Args:
        message: Description of why the operation is not allowed
        error_code: Error code (defaults to INVALID_OPERATION)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.INVALID_OPERATION,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.MEDIUM, context, cause)


class TenantAlreadyResolvedError(InvalidOperationError):
    """Raised when a request context is asked to switch tenants."""

    def __init__(self, current: str, attempted: str) -> None:
        super().__init__(
            "Tenant is already resolved for this request",
            context={"current_tenant": current, "attempted_tenant": attempted},
        )


class UnauthorizedError(Gov2BizError):
    """Raised when the caller lacks permission for an action.

    Args:
        message: Description of the authorization failure
        error_code: Error code (defaults to UNAUTHORIZED)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.UNAUTHORIZED,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.HIGH, context, cause)


class NotFoundError(Gov2BizError):
    """Raised when a requested resource cannot be found.

    Args:
        message: Description of what resource was not found
        error_code: Error code (defaults to NOT_FOUND)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.NOT_FOUND,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)
