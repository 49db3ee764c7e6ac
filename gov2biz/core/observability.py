"""Distributed tracing with OpenTelemetry.

Development traces are written through Loguru so they share the log
format; other environments export over OTLP to a collector. The request
pipeline adds the tenant and error classification to the active server span
through :func:`add_span_attributes`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from loguru import logger
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from fastapi import FastAPI

    from gov2biz.core.config import Settings
    from gov2biz.core.types import AsgiScope

SERVICE_NAME_KEY: Final[str] = "service.name"
SERVICE_VERSION_KEY: Final[str] = "service.version"
ENVIRONMENT_KEY: Final[str] = "deployment.environment"

# Spans that add noise without telling anything about the request
NOISY_SPAN_NAMES: Final[frozenset[str]] = frozenset(
    {"http send", "http receive", "connect"}
)


class LoguruSpanExporter(SpanExporter):
    """Span exporter that writes finished spans through Loguru."""

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        """Log each finished span at DEBUG level."""
        for span in spans:
            span_context = span.get_span_context()
            if not span_context or span.name in NOISY_SPAN_NAMES:
                continue

            duration_ms = None
            if span.end_time and span.start_time:
                duration_ms = (span.end_time - span.start_time) // 1_000_000

            attributes = dict(span.attributes or {})
            logger.bind(
                trace_id=f"0x{span_context.trace_id:032x}",
                span_id=f"0x{span_context.span_id:016x}",
                correlation_id=attributes.get("correlation_id"),
                tenant_id=attributes.get("tenant.id"),
                span_name=span.name,
                duration_ms=duration_ms,
                status=span.status.status_code.name,
            ).debug("Trace span completed: {}", span.name)

        return SpanExportResult.SUCCESS


def get_span_exporter(settings: Settings) -> SpanExporter | None:
    """Get the span exporter for the configured exporter type.

    Args:
        settings: Application settings.

    Returns:
        SpanExporter | None: Configured exporter or None if disabled.
    """
    config = settings.observability_config

    if config.exporter_type == "console":
        logger.info("Using Loguru span exporter for development")
        return LoguruSpanExporter()

    if config.exporter_type == "otlp":
        endpoint = config.exporter_endpoint or "http://localhost:4317"
        logger.info("Using OTLP exporter at {}", endpoint)
        return OTLPSpanExporter(
            endpoint=endpoint,
            insecure=settings.environment == "development",
        )

    logger.info("Trace export explicitly disabled")
    return None


def setup_tracing(settings: Settings) -> None:
    """Install the global tracer provider.

    Args:
        settings: Application settings.
    """
    config = settings.observability_config
    if not config.enable_tracing:
        logger.info("Tracing disabled by configuration")
        return

    resource = Resource.create(
        {
            SERVICE_NAME_KEY: settings.app_name,
            SERVICE_VERSION_KEY: settings.app_version,
            ENVIRONMENT_KEY: settings.environment,
        }
    )
    tracer_provider = TracerProvider(
        resource=resource,
        sampler=TraceIdRatioBased(config.trace_sample_rate),
    )

    if exporter := get_span_exporter(settings):
        tracer_provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(tracer_provider)

    logger.info(
        "Tracing configured",
        exporter_type=config.exporter_type,
        sample_rate=config.trace_sample_rate,
    )


def instrument_app(app: FastAPI, settings: Settings) -> None:
    """Instrument a FastAPI application for tracing.

    Tenant-exempt paths (health probes) are not traced.

    Args:
        app: FastAPI application to instrument.
        settings: Application settings.
    """
    if not settings.observability_config.enable_tracing:
        return

    excluded = [
        prefix
        for prefix in settings.tenant_config.exempt_path_prefixes
        if prefix.startswith("/health")
    ]
    FastAPIInstrumentor.instrument_app(
        app,
        excluded_urls=",".join([*excluded, "/docs", "/redoc", "/openapi.json"]),
        server_request_hook=make_server_request_hook(
            settings.tenant_config.header_name
        ),
    )
    logger.info("Application instrumented for tracing")


def make_server_request_hook(
    tenant_header: str,
) -> Callable[[trace.Span, AsgiScope], None]:
    """Build a hook that copies correlation headers onto the server span.

    The hook runs before the request pipeline, so it reads raw headers; the
    validated tenant is added later by the tenant resolution stage.

    Args:
        tenant_header: Name of the tenant header.

    Returns:
        Callable[[trace.Span, AsgiScope], None]: The request hook.
    """
    tenant_key = tenant_header.lower().encode("latin-1")

    def hook(span: trace.Span, scope: AsgiScope) -> None:
        if not span or not span.is_recording():
            return
        headers = dict(scope.get("headers", []))
        if correlation_id := headers.get(b"x-correlation-id", b"").decode("latin-1"):
            span.set_attribute("correlation_id", correlation_id)
        if raw_tenant := headers.get(tenant_key, b"").decode("latin-1"):
            span.set_attribute("tenant.header", raw_tenant[:64])

    return hook


def add_span_attributes(attributes: dict[str, str | int | float | bool]) -> None:
    """Add attributes to the current span, if one is recording.

    Args:
        attributes: Attribute names (dotted OpenTelemetry style) and values.
    """
    span = trace.get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)
