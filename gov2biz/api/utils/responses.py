"""JSON responses serialized with orjson.

:class:`ORJSONResponse` is the default response class of the application,
and :func:`error_response` is the single place where the error envelope is
turned into an HTTP response, so every failure path emits the same shape.
"""

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from gov2biz.api.schemas.errors import ErrorEnvelope
from gov2biz.core.exceptions import ErrorCode


class ORJSONResponse(JSONResponse):
    """Response class using orjson for JSON serialization.

    Attributes:
        media_type: The media type for the response.
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - any JSON-serializable content
        """Render the content as JSON using orjson.

        Args:
            content: The content to serialize to JSON.

        Returns:
            bytes: The JSON-encoded bytes.
        """
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json", by_alias=True)

        return orjson.dumps(content, option=orjson.OPT_SORT_KEYS)


def error_response(
    status_code: int,
    code: str | ErrorCode,
    message: str,
    trace_id: str,
) -> ORJSONResponse:
    """Build an error envelope response.

    Args:
        status_code: HTTP status code.
        code: Error code for the ``code`` field.
        message: Client-safe message.
        trace_id: Request correlation id.

    Returns:
        ORJSONResponse: The rendered envelope.
    """
    envelope = ErrorEnvelope.build(
        message=message,
        code=code.value if isinstance(code, ErrorCode) else code,
        trace_id=trace_id,
    )
    return ORJSONResponse(status_code=status_code, content=envelope)
