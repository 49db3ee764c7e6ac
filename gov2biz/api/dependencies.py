"""FastAPI dependencies exposing the request context to route handlers."""

from typing import Annotated

from fastapi import Depends, Request

from gov2biz.api.constants import REQUEST_CONTEXT_STATE_KEY
from gov2biz.core.context import RequestContext
from gov2biz.core.exceptions import InvalidOperationError
from gov2biz.core.tenancy import TenantIdentity


def get_request_context(request: Request) -> RequestContext:
    """Return the context created by the request pipeline.

    Args:
        request: The current request.

    Returns:
        RequestContext: Context of the request being processed.

    Raises:
        RuntimeError: If the pipeline middleware is not installed.
    """
    context = getattr(request.state, REQUEST_CONTEXT_STATE_KEY, None)
    if not isinstance(context, RequestContext):
        msg = "Request context is missing; is TenantPipelineMiddleware installed?"
        raise RuntimeError(msg)
    return context


def get_tenant(
    context: Annotated[RequestContext, Depends(get_request_context)],
) -> TenantIdentity:
    """Return the tenant resolved for the current request.

    Args:
        context: Context of the request being processed.

    Returns:
        TenantIdentity: The validated tenant.

    Raises:
        InvalidOperationError: If the route is reachable without a tenant.
    """
    if context.tenant is None:
        msg = "No tenant is associated with this request"
        raise InvalidOperationError(msg)
    return context.tenant


RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]
TenantDep = Annotated[TenantIdentity, Depends(get_tenant)]
