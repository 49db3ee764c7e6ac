"""FastAPI application factory for a Gov2Biz service.

This module handles:
- Application lifecycle management (startup/shutdown logging)
- Registration of the framework exception handlers
- Installation of the tenant request pipeline
- Health probes and the tenant context endpoint
- OpenTelemetry instrumentation

Every service in the system is built the same way; the service name comes
from ``APP_NAME``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from loguru import logger

from gov2biz.api.dependencies import RequestContextDep, TenantDep
from gov2biz.api.middleware import TenantPipelineMiddleware, compose_pipeline
from gov2biz.api.middleware.error_handler import register_exception_handlers
from gov2biz.api.utils.responses import ORJSONResponse
from gov2biz.core.config import Settings, get_settings
from gov2biz.core.logging import get_logger, setup_logging
from gov2biz.core.observability import instrument_app, setup_tracing


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Log application startup and shutdown.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.
    """
    logger.info(
        "Application startup complete - {} v{}",
        app_instance.title,
        app_instance.version,
    )

    yield

    logger.info("Application shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings)
    setup_tracing(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    register_exception_handlers(application)

    application.add_middleware(
        TenantPipelineMiddleware,
        pipeline=compose_pipeline(settings, get_logger("gov2biz.pipeline")),
    )

    def health_payload() -> dict[str, Any]:
        return {
            "status": "Healthy",
            "service": settings.app_name,
            "timestamp": datetime.now(UTC),
        }

    @application.get("/healthz")
    async def healthz() -> dict[str, Any]:
        """Liveness probe; reachable without a tenant header."""
        return health_payload()

    @application.get("/health")
    async def health() -> dict[str, Any]:
        """Health check for load balancers; reachable without a tenant header."""
        return health_payload()

    @application.get("/api/tenant/context")
    async def tenant_context(
        tenant: TenantDep,
        context: RequestContextDep,
    ) -> dict[str, str]:
        """Describe the tenant and correlation id of the current request.

        Args:
            tenant: Tenant resolved by the pipeline.
            context: Context of the current request.

        Returns:
            dict[str, str]: Tenant id, trace id and service name.
        """
        context.logger.info("Tenant context requested")
        return {
            "tenantId": tenant.value,
            "traceId": context.correlation_id,
            "service": settings.app_name,
        }

    instrument_app(application, settings)

    return application
