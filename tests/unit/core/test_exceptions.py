"""Unit tests for the exception hierarchy."""

import pytest

from gov2biz.core.exceptions import (
    ErrorCode,
    Gov2BizError,
    InvalidOperationError,
    MissingValueError,
    NotFoundError,
    Severity,
    TenantAlreadyResolvedError,
    UnauthorizedError,
    ValidationError,
)


@pytest.mark.unit
class TestErrorCode:
    """Test the wire error codes."""

    def test_codes_are_stable_strings(self) -> None:
        """Enum values are the strings sent to clients."""
        assert {code.value for code in ErrorCode} == {
            "INTERNAL_ERROR",
            "VALIDATION_ERROR",
            "INVALID_OPERATION",
            "UNAUTHORIZED",
            "NOT_FOUND",
            "MISSING_TENANT",
        }


@pytest.mark.unit
class TestGov2BizError:
    """Test the base exception."""

    def test_accepts_enum_or_string_code(self) -> None:
        """Error codes given as enums are stored as their value."""
        assert Gov2BizError(ErrorCode.NOT_FOUND, "gone").error_code == "NOT_FOUND"
        assert Gov2BizError("CUSTOM", "custom").error_code == "CUSTOM"

    def test_str_and_repr(self) -> None:
        """String forms include code, message and context."""
        error = Gov2BizError(
            ErrorCode.INTERNAL_ERROR, "boom", context={"operation": "renew"}
        )

        assert str(error) == "[INTERNAL_ERROR] boom"
        assert repr(error) == (
            "Gov2BizError(error_code='INTERNAL_ERROR', message='boom', "
            "severity=MEDIUM, context={'operation': 'renew'})"
        )

    def test_cause_is_chained(self) -> None:
        """The cause becomes the exception's __cause__."""
        cause = OSError("disk")
        error = Gov2BizError(ErrorCode.INTERNAL_ERROR, "boom", cause=cause)

        assert error.cause is cause
        assert error.__cause__ is cause

    @pytest.mark.parametrize(
        ("severity", "expected", "alert"),
        [
            (Severity.LOW, True, False),
            (Severity.MEDIUM, True, False),
            (Severity.HIGH, False, True),
            (Severity.CRITICAL, False, True),
        ],
    )
    def test_severity_properties(
        self, severity: Severity, expected: bool, alert: bool
    ) -> None:
        """is_expected and should_alert follow the severity."""
        error = Gov2BizError(ErrorCode.INTERNAL_ERROR, "x", severity=severity)

        assert error.is_expected is expected
        assert error.should_alert is alert


@pytest.mark.unit
class TestSubclasses:
    """Test the concrete exceptions."""

    @pytest.mark.parametrize(
        ("error", "code", "severity"),
        [
            (ValidationError("bad"), "VALIDATION_ERROR", Severity.LOW),
            (InvalidOperationError("no"), "INVALID_OPERATION", Severity.MEDIUM),
            (UnauthorizedError("denied"), "UNAUTHORIZED", Severity.HIGH),
            (NotFoundError("missing"), "NOT_FOUND", Severity.LOW),
        ],
    )
    def test_defaults(
        self, error: Gov2BizError, code: str, severity: Severity
    ) -> None:
        """Each subclass carries its default code and severity."""
        assert error.error_code == code
        assert error.severity is severity

    def test_missing_value_error(self) -> None:
        """MissingValueError names the argument and is a ValidationError."""
        error = MissingValueError("document_id")

        assert isinstance(error, ValidationError)
        assert error.name == "document_id"
        assert error.message == "Value for 'document_id' was not provided"
        assert error.context == {"argument": "document_id"}

    def test_missing_value_error_custom_message(self) -> None:
        """A custom message replaces the derived one."""
        error = MissingValueError("license", "License body is required")

        assert error.message == "License body is required"

    def test_tenant_already_resolved_is_invalid_operation(self) -> None:
        """Switching tenants is an invalid operation."""
        error = TenantAlreadyResolvedError("TEN-001", "TEN-002")

        assert isinstance(error, InvalidOperationError)
        assert error.error_code == "INVALID_OPERATION"
