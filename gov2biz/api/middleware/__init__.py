"""The multi-tenant request pipeline.

Stages, from outermost to innermost:

1. **FaultBoundaryStage**: classifies any escaping exception and answers
   with the error envelope
2. **ObservabilityStage**: logs request start and completion with timing
3. **TenantResolutionStage**: validates the tenant header or rejects the
   request with 400 ``MISSING_TENANT``

``compose_pipeline`` fixes that order and ``TenantPipelineMiddleware`` hosts
the composed pipeline in a Starlette/FastAPI application.
"""

from gov2biz.api.middleware.pipeline import TenantPipeline, compose_pipeline
from gov2biz.api.middleware.request_context import TenantPipelineMiddleware

__all__ = ["TenantPipeline", "TenantPipelineMiddleware", "compose_pipeline"]
