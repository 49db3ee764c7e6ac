"""Tenant resolution stage of the request pipeline.

Every request outside the exempt paths must name its tenant in the tenant
header (``X-Tenant-ID`` by default). A missing or malformed header stops the
request with a 400 ``MISSING_TENANT`` envelope before any tenant-scoped code
runs; there is no fallback tenant and no best guess.

Exempt paths (health probes, authentication) pass through untouched because
they have to be reachable before a tenant is known.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, TypeAlias

from fastapi import status
from starlette.requests import Request
from starlette.responses import Response

from gov2biz.api.middleware.base import Handler, PipelineStage
from gov2biz.api.utils.responses import error_response
from gov2biz.core.config import TenantConfig
from gov2biz.core.context import RequestContext
from gov2biz.core.exceptions import ErrorCode
from gov2biz.core.observability import add_span_attributes
from gov2biz.core.tenancy import TenantIdentity, is_valid_tenant_id

# Longest slice of a rejected header value written to the log
MAX_LOGGED_HEADER_LENGTH = 64


@dataclass(frozen=True, slots=True)
class Exempt:
    """The path does not require a tenant."""


@dataclass(frozen=True, slots=True)
class Resolved:
    """The tenant header was present and valid."""

    tenant: TenantIdentity


@dataclass(frozen=True, slots=True)
class Rejected:
    """The tenant header was missing or malformed."""

    reason: Literal["missing", "invalid"]
    raw_value: str | None = None


TenantResolution: TypeAlias = Exempt | Resolved | Rejected


def is_exempt_path(path: str, prefixes: list[str]) -> bool:
    """Check whether a path falls under one of the exempt prefixes.

    Matching is by path segment: ``/health`` covers ``/health`` and
    ``/health/live`` but not ``/healthcheck``.

    Args:
        path: Request path.
        prefixes: Normalized prefixes without trailing slashes.

    Returns:
        bool: True if the path is exempt from tenant resolution.
    """
    for prefix in prefixes:
        if prefix == "/":
            return True
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


def resolve_tenant(
    headers: Mapping[str, str], path: str, config: TenantConfig
) -> TenantResolution:
    """Decide which tenant a request belongs to.

    Args:
        headers: Request headers. Must look up names case-insensitively
            (Starlette's ``Headers`` does).
        path: Request path.
        config: Tenant configuration.

    Returns:
        TenantResolution: Exempt, Resolved or Rejected.
    """
    if is_exempt_path(path, config.exempt_path_prefixes):
        return Exempt()

    raw_value = headers.get(config.header_name)
    if raw_value is None:
        return Rejected(reason="missing")

    if not is_valid_tenant_id(raw_value):
        return Rejected(reason="invalid", raw_value=raw_value)

    return Resolved(tenant=TenantIdentity(value=raw_value))


class TenantResolutionStage(PipelineStage):
    """Pipeline stage that resolves the tenant or rejects the request.

    Args:
        config: Tenant configuration (header name and exempt prefixes).
    """

    def __init__(self, config: TenantConfig) -> None:
        self.config = config
        self.rejection_message = f"Missing or invalid {config.header_name} header"

    async def handle(
        self,
        request: Request,
        context: RequestContext,
        call_next: Handler,
    ) -> Response:
        """Resolve the tenant, then continue or short-circuit.

        Args:
            request: The incoming request.
            context: Context of the request being processed.
            call_next: The rest of the pipeline.

        Returns:
            Response: The downstream response, or a 400 envelope on rejection.
        """
        resolution = resolve_tenant(request.headers, request.url.path, self.config)

        match resolution:
            case Exempt():
                return await call_next(request, context)

            case Resolved(tenant=tenant):
                context.set_tenant(tenant)
                add_span_attributes({"tenant.id": tenant.value})
                context.logger.debug("Tenant resolved")
                return await call_next(request, context)

            case Rejected(reason=reason, raw_value=raw_value):
                context.logger.warning(
                    "Tenant resolution rejected request",
                    reason=reason,
                    header=self.config.header_name,
                    header_value=(
                        raw_value[:MAX_LOGGED_HEADER_LENGTH] if raw_value else None
                    ),
                    path=request.url.path,
                )
                return error_response(
                    status.HTTP_400_BAD_REQUEST,
                    ErrorCode.MISSING_TENANT,
                    self.rejection_message,
                    context.correlation_id,
                )
