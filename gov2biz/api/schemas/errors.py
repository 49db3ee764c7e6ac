"""Error envelope returned by every failed request.

Wire shape::

    {"error": {"message": "...", "code": "MISSING_TENANT", "traceId": "..."}}

``code`` is one of :class:`gov2biz.core.exceptions.ErrorCode` and ``traceId``
is the request correlation id, which also appears on every log line the
request produced.
"""

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Body of the ``error`` member of the envelope."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Missing or invalid X-Tenant-ID header"],
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=["MISSING_TENANT", "VALIDATION_ERROR", "NOT_FOUND"],
    )

    trace_id: str = Field(
        ...,
        alias="traceId",
        description="Request correlation ID for tracing and support",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )


class ErrorEnvelope(BaseModel):
    """Standardized error response model."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "examples": [
                {
                    "error": {
                        "message": "Missing or invalid X-Tenant-ID header",
                        "code": "MISSING_TENANT",
                        "traceId": "550e8400-e29b-41d4-a716-446655440000",
                    }
                },
                {
                    "error": {
                        "message": (
                            "An unexpected error occurred. Please contact "
                            "support if the problem persists."
                        ),
                        "code": "INTERNAL_ERROR",
                        "traceId": "550e8400-e29b-41d4-a716-446655440001",
                    }
                },
            ]
        },
    )

    error: ErrorDetail

    @classmethod
    def build(cls, message: str, code: str, trace_id: str) -> "ErrorEnvelope":
        """Create an envelope from its three fields."""
        return cls(error=ErrorDetail(message=message, code=code, trace_id=trace_id))
