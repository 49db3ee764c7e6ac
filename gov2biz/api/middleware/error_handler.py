"""Fault boundary of the request pipeline and framework exception handlers.

:class:`FaultBoundaryStage` is the outermost stage: any exception escaping
the other stages or the route handler is classified, logged in full for
operators and answered with the error envelope. 5xx responses only ever carry
a fixed generic message.

FastAPI itself turns routing errors and request validation failures into
responses before they can reach the pipeline. The handlers registered by
:func:`register_exception_handlers` render those in the same envelope so
clients see a single error shape.
"""

from http import HTTPStatus
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from loguru import logger
from starlette.exceptions import HTTPException
from starlette.requests import ClientDisconnect
from starlette.responses import Response

from gov2biz.api.constants import REQUEST_CONTEXT_STATE_KEY
from gov2biz.api.middleware.base import Handler, PipelineStage
from gov2biz.api.middleware.classification import FaultClassifier
from gov2biz.api.utils.responses import error_response
from gov2biz.core.constants import GENERIC_ERROR_MESSAGE
from gov2biz.core.context import RequestContext, generate_correlation_id
from gov2biz.core.error_context import sanitize_error_context, sanitize_headers
from gov2biz.core.exceptions import ErrorCode, Gov2BizError
from gov2biz.core.observability import add_span_attributes

if TYPE_CHECKING:
    from loguru import Logger


class FaultBoundaryStage(PipelineStage):
    """Pipeline stage converting exceptions into error envelopes.

    Only ``Exception`` subclasses are handled. Cancellation, client
    disconnects and interpreter exits propagate unchanged and never turn
    into a 500. Domain errors whose severity calls for an alert are logged
    at ERROR even when they map to a 4xx.

    Args:
        classifier: Classifier shared with the request logging stage.
    """

    def __init__(self, classifier: FaultClassifier) -> None:
        self.classifier = classifier

    async def handle(
        self,
        request: Request,
        context: RequestContext,
        call_next: Handler,
    ) -> Response:
        """Run the rest of the pipeline and shape any failure.

        Args:
            request: The incoming request.
            context: Context of the request being processed.
            call_next: The rest of the pipeline.

        Returns:
            Response: The downstream response, or an error envelope.
        """
        try:
            return await call_next(request, context)
        except ClientDisconnect:
            raise
        except Exception as exc:
            classification = self.classifier.classify(exc)

            error_context = sanitize_error_context(
                exc,
                {
                    "request_method": request.method,
                    "request_path": request.url.path,
                    "request_headers": sanitize_headers(dict(request.headers)),
                    "error_code": classification.error_code.value,
                    "status_code": classification.status_code,
                },
            )
            error_context.update(context.log_fields())
            should_alert = False
            if isinstance(exc, Gov2BizError):
                error_context["severity"] = exc.severity.value
                should_alert = exc.should_alert

            if classification.is_server_error:
                context.logger.opt(exception=exc).error(
                    "Unhandled exception: {exception_type}",
                    exception_type=type(exc).__name__,
                    **error_context,
                )
            else:
                context.logger.log(
                    "ERROR" if should_alert else "WARNING",
                    "Handled {exception_type}",
                    exception_type=type(exc).__name__,
                    **error_context,
                )

            add_span_attributes(
                {
                    "error.code": classification.error_code.value,
                    "error.status_code": classification.status_code,
                    "error.type": type(exc).__name__,
                }
            )

            return error_response(
                classification.status_code,
                classification.error_code,
                classification.message,
                context.correlation_id,
            )


def _context_for(request: Request) -> RequestContext | None:
    context = getattr(request.state, REQUEST_CONTEXT_STATE_KEY, None)
    return context if isinstance(context, RequestContext) else None


def _trace_id_for(request: Request) -> str:
    context = _context_for(request)
    return context.correlation_id if context else generate_correlation_id()


def _logger_for(request: Request) -> "Logger":
    context = _context_for(request)
    return context.logger if context else logger


def _error_code_for_status(status_code: int) -> ErrorCode:
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return ErrorCode.INTERNAL_ERROR
    if status_code in (
        status.HTTP_400_BAD_REQUEST,
        HTTPStatus.UNPROCESSABLE_ENTITY,
    ):
        return ErrorCode.VALIDATION_ERROR
    if status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        return ErrorCode.UNAUTHORIZED
    if status_code == status.HTTP_404_NOT_FOUND:
        return ErrorCode.NOT_FOUND
    return ErrorCode.INVALID_OPERATION


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Render Starlette HTTPException in the error envelope.

    Args:
        request: The request that caused the exception.
        exc: The HTTPException to handle.

    Returns:
        Response: Error envelope with the exception's status code.

    Raises:
        TypeError: If exc is not an HTTPException instance.
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    error_code = _error_code_for_status(exc.status_code)
    message = (
        GENERIC_ERROR_MESSAGE
        if error_code is ErrorCode.INTERNAL_ERROR
        else str(exc.detail)
    )

    _logger_for(request).warning(
        "HTTP exception",
        status_code=exc.status_code,
        method=request.method,
        path=request.url.path,
        detail=exc.detail,
    )

    response = error_response(
        exc.status_code, error_code, message, _trace_id_for(request)
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Render FastAPI request validation failures as a 400 envelope.

    Args:
        request: The request that failed validation.
        exc: The RequestValidationError to handle.

    Returns:
        Response: 400 VALIDATION_ERROR envelope naming the offending fields.

    Raises:
        TypeError: If exc is not a RequestValidationError instance.
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field_path = error.get("loc", ())
        field_name = ".".join(str(loc) for loc in field_path[1:]) or "root"
        field_errors.setdefault(field_name, []).append(
            error.get("msg", "Invalid value")
        )

    _logger_for(request).warning(
        "Request validation failed",
        method=request.method,
        path=request.url.path,
        validation_errors=field_errors,
    )

    message = "Request validation failed: " + "; ".join(
        f"{field}: {', '.join(messages)}" for field, messages in field_errors.items()
    )
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        ErrorCode.VALIDATION_ERROR,
        message,
        _trace_id_for(request),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the framework exception handlers with the application.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info("Exception handlers registered")
