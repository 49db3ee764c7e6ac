"""Request logging stage of the request pipeline.

Every request produces a "Request started" and a "Request completed" record
carrying the correlation id, tenant id, method and path. The completion
record is written from a ``finally`` block, so it is emitted on success, on
exceptions and on cancellation alike, and always carries the status code the
client will actually see:

- normal return: the response status;
- exception: the status the fault boundary maps it to (both stages share one
  classifier), never a default 200;
- cancellation or client disconnect: no status, flagged with
  ``cancelled=True``.

Small bodies of write requests are captured, redacted and logged at DEBUG.
Starlette caches the body once read, so the handler can still read it.
"""

import asyncio
import time

from fastapi import status
from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response

from gov2biz.api.middleware.base import Handler, PipelineStage
from gov2biz.api.middleware.classification import FaultClassifier
from gov2biz.core.config import LogConfig
from gov2biz.core.constants import MILLISECONDS_PER_SECOND
from gov2biz.core.context import RequestContext
from gov2biz.core.error_context import sanitize_body_snippet


class ObservabilityStage(PipelineStage):
    """Pipeline stage that logs request start and completion with timing.

    Args:
        log_config: Logging configuration (capture ceiling, methods, thresholds).
        classifier: Classifier shared with the fault boundary.
    """

    def __init__(self, log_config: LogConfig, classifier: FaultClassifier) -> None:
        self.log_config = log_config
        self.classifier = classifier
        self.capture_methods = frozenset(log_config.body_capture_methods)

    def _should_capture_body(self, request: Request) -> bool:
        if request.method not in self.capture_methods:
            return False
        content_length = request.headers.get("content-length")
        if content_length is None or not content_length.isdigit():
            return False
        return 0 < int(content_length) < self.log_config.max_body_capture_bytes

    async def _capture_body(self, request: Request, context: RequestContext) -> None:
        body = await request.body()
        if not body:
            return
        context.logger.debug(
            "Request body captured",
            body=sanitize_body_snippet(
                body,
                request.headers.get("content-type"),
                self.log_config.max_body_capture_bytes,
            ),
        )

    async def handle(
        self,
        request: Request,
        context: RequestContext,
        call_next: Handler,
    ) -> Response:
        """Log around the rest of the pipeline.

        Args:
            request: The incoming request.
            context: Context of the request being processed.
            call_next: The rest of the pipeline.

        Returns:
            Response: The downstream response, unchanged.

        Raises:
            Exception: Anything raised downstream is re-raised after logging.
        """
        method = request.method
        path = request.url.path

        context.logger.info(
            "Request started",
            method=method,
            path=path,
            query=request.url.query or None,
            **context.log_fields(),
        )

        start_time = time.perf_counter()
        status_code: int | None = None
        cancelled = False

        try:
            if self._should_capture_body(request):
                await self._capture_body(request, context)
            response = await call_next(request, context)
        except (asyncio.CancelledError, ClientDisconnect):
            cancelled = True
            raise
        except Exception as exc:
            status_code = self.classifier.classify(exc).status_code
            raise
        else:
            status_code = response.status_code
            return response
        finally:
            duration_ms = round(
                (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND, 2
            )
            self._log_completion(
                context,
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=duration_ms,
                cancelled=cancelled,
            )

    def _log_completion(
        self,
        context: RequestContext,
        *,
        method: str,
        path: str,
        status_code: int | None,
        duration_ms: float,
        cancelled: bool,
    ) -> None:
        fields = {
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            **context.log_fields(),
        }
        if cancelled:
            context.logger.warning("Request completed", cancelled=True, **fields)
        elif (
            status_code is not None
            and status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
        ):
            context.logger.error("Request completed", **fields)
        else:
            context.logger.info("Request completed", **fields)

        if duration_ms > self.log_config.slow_request_threshold_ms:
            context.logger.warning(
                "Slow request detected",
                duration_ms=duration_ms,
                threshold_ms=self.log_config.slow_request_threshold_ms,
            )
