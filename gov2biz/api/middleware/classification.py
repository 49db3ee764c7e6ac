"""Mapping of exceptions to HTTP status codes and error codes.

The table is ordered and the first matching rule wins, so more specific
exception types must come before their base classes (``MissingValueError``
before ``ValidationError``, which is itself a ``ValueError``).

Only 4xx rules may surface the exception message to the client. Anything
that matches no rule is a 500 with a fixed generic message.
"""

from dataclasses import dataclass
from typing import Final

from fastapi import status

from gov2biz.api.constants import (
    MISSING_VALUE_MESSAGE,
    NOT_FOUND_MESSAGE,
    UNAUTHORIZED_MESSAGE,
)
from gov2biz.core.constants import GENERIC_ERROR_MESSAGE
from gov2biz.core.exceptions import (
    ErrorCode,
    Gov2BizError,
    InvalidOperationError,
    MissingValueError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    """One row of the classification table.

    Attributes:
        exception_types: Exception classes matched by this row.
        status_code: HTTP status code to respond with.
        error_code: Error code for the envelope.
        message: Fixed client message, or None to expose the exception message.
    """

    exception_types: tuple[type[BaseException], ...]
    status_code: int
    error_code: ErrorCode
    message: str | None = None


@dataclass(frozen=True, slots=True)
class Classification:
    """Result of classifying one exception."""

    status_code: int
    error_code: ErrorCode
    message: str

    @property
    def is_server_error(self) -> bool:
        """Whether the failure is a 5xx."""
        return self.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR


DEFAULT_RULES: Final[tuple[ClassificationRule, ...]] = (
    ClassificationRule(
        (MissingValueError,),
        status.HTTP_400_BAD_REQUEST,
        ErrorCode.VALIDATION_ERROR,
        MISSING_VALUE_MESSAGE,
    ),
    ClassificationRule(
        (ValidationError, ValueError),
        status.HTTP_400_BAD_REQUEST,
        ErrorCode.VALIDATION_ERROR,
    ),
    ClassificationRule(
        (InvalidOperationError,),
        status.HTTP_400_BAD_REQUEST,
        ErrorCode.INVALID_OPERATION,
    ),
    ClassificationRule(
        (UnauthorizedError, PermissionError),
        status.HTTP_401_UNAUTHORIZED,
        ErrorCode.UNAUTHORIZED,
        UNAUTHORIZED_MESSAGE,
    ),
    ClassificationRule(
        (NotFoundError, KeyError),
        status.HTTP_404_NOT_FOUND,
        ErrorCode.NOT_FOUND,
        NOT_FOUND_MESSAGE,
    ),
)

UNCLASSIFIED: Final[Classification] = Classification(
    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    error_code=ErrorCode.INTERNAL_ERROR,
    message=GENERIC_ERROR_MESSAGE,
)


def _exception_message(exc: BaseException) -> str:
    if isinstance(exc, Gov2BizError):
        return exc.message
    return str(exc) or type(exc).__name__


class FaultClassifier:
    """Classifies exceptions using an ordered rule table.

    Args:
        rules: Rules checked in order; defaults to DEFAULT_RULES.
    """

    def __init__(self, rules: tuple[ClassificationRule, ...] = DEFAULT_RULES) -> None:
        self.rules = rules

    def classify(self, exc: BaseException) -> Classification:
        """Classify an exception.

        Args:
            exc: The exception raised by the pipeline or a handler.

        Returns:
            Classification: Status code, error code and client message.
        """
        for rule in self.rules:
            if isinstance(exc, rule.exception_types):
                return Classification(
                    status_code=rule.status_code,
                    error_code=rule.error_code,
                    message=rule.message or _exception_message(exc),
                )
        return UNCLASSIFIED
