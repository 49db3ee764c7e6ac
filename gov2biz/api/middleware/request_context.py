"""ASGI middleware hosting the tenant request pipeline.

The middleware owns the correlation id: it accepts a well-formed
``X-Correlation-ID`` from the caller (generating one otherwise), runs the
pipeline with the rest of the application as the final handler, and echoes
the id back in the response so clients can quote it to support.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from gov2biz.api.constants import CORRELATION_ID_HEADER
from gov2biz.api.middleware.pipeline import TenantPipeline
from gov2biz.core.context import RequestContext, accept_correlation_id


class TenantPipelineMiddleware(BaseHTTPMiddleware):
    """Middleware running every HTTP request through a TenantPipeline.

    Args:
        app: The ASGI application.
        pipeline: The composed pipeline.
    """

    def __init__(self, app: ASGIApp, *, pipeline: TenantPipeline) -> None:
        super().__init__(app)
        self.pipeline = pipeline

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process the request through the pipeline.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: Response with correlation ID header.
        """
        correlation_id = accept_correlation_id(
            request.headers.get(CORRELATION_ID_HEADER)
        )

        async def endpoint(request: Request, _context: RequestContext) -> Response:
            return await call_next(request)

        response = await self.pipeline.handle(request, endpoint, correlation_id)
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
