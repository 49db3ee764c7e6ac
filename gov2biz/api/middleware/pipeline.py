"""Composition of the request pipeline stages.

The order of the stages is fixed by :func:`compose_pipeline`::

    FaultBoundaryStage -> ObservabilityStage -> TenantResolutionStage -> handler

- The fault boundary is outermost so that no failure escapes unshaped.
- Request logging wraps tenant resolution and the handler so the completion
  record sees the final status code, including error paths.
- Tenant resolution sits directly in front of the handler so no
  tenant-scoped code runs without a validated tenant.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import partial
from typing import TYPE_CHECKING

from starlette.requests import Request
from starlette.responses import Response

from gov2biz.api.constants import REQUEST_CONTEXT_STATE_KEY
from gov2biz.api.middleware.base import Handler, PipelineStage
from gov2biz.api.middleware.classification import FaultClassifier
from gov2biz.api.middleware.error_handler import FaultBoundaryStage
from gov2biz.api.middleware.request_logging import ObservabilityStage
from gov2biz.api.middleware.tenant import TenantResolutionStage
from gov2biz.core.context import RequestContext, generate_correlation_id

if TYPE_CHECKING:
    from loguru import Logger

    from gov2biz.core.config import Settings


class TenantPipeline:
    """An ordered chain of pipeline stages in front of a handler.

    Args:
        stages: Stages from outermost to innermost.
        logger: Base logger every request logger is derived from.
    """

    def __init__(self, stages: Sequence[PipelineStage], logger: Logger) -> None:
        self.stages = tuple(stages)
        self.logger = logger

    def build(self, handler: Handler) -> Handler:
        """Wrap a handler in all stages.

        Args:
            handler: The innermost callable.

        Returns:
            Handler: A callable running every stage, then the handler.
        """
        chain = handler
        for stage in reversed(self.stages):
            chain = partial(stage.handle, call_next=chain)
        return chain

    async def handle(
        self,
        request: Request,
        handler: Handler,
        correlation_id: str | None = None,
    ) -> Response:
        """Run one request through the pipeline.

        Args:
            request: The incoming request.
            handler: The downstream handler.
            correlation_id: Correlation id chosen by the host, if any.

        Returns:
            Response: The response to send.
        """
        context = RequestContext(
            correlation_id or generate_correlation_id(), self.logger
        )
        setattr(request.state, REQUEST_CONTEXT_STATE_KEY, context)
        return await self.build(handler)(request, context)


def compose_pipeline(settings: Settings, logger: Logger) -> TenantPipeline:
    """Build the pipeline used by every Gov2Biz service.

    Args:
        settings: Application settings.
        logger: Logger created at startup for the pipeline.

    Returns:
        TenantPipeline: Fault boundary, request logging and tenant resolution,
            in that order.
    """
    classifier = FaultClassifier()
    return TenantPipeline(
        [
            FaultBoundaryStage(classifier),
            ObservabilityStage(settings.log_config, classifier),
            TenantResolutionStage(settings.tenant_config),
        ],
        logger,
    )
