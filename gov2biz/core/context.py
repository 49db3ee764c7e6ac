"""Per-request context carrying the correlation id and resolved tenant.

A :class:`RequestContext` is created once per inbound request by the request
pipeline and handed explicitly to each stage and to the downstream handler.
Nothing here is stored in globals, thread-locals or context variables, so
concurrent requests can never observe each other's tenant.
"""

from __future__ import annotations

import re
import uuid
from typing import TYPE_CHECKING, Final

from gov2biz.core.constants import CORRELATION_ID_PATTERN, UNKNOWN_TENANT
from gov2biz.core.exceptions import TenantAlreadyResolvedError

if TYPE_CHECKING:
    from loguru import Logger

    from gov2biz.core.tenancy import TenantIdentity
    from gov2biz.core.types import LogContext

_CORRELATION_ID_RE: Final = re.compile(CORRELATION_ID_PATTERN)


class RequestContext:
    """Request-scoped holder of the correlation id and tenant identity.

    The context also owns the request logger. It starts bound to the
    correlation id and is rebound with ``tenant_id`` once the tenant is
    resolved, so every later record written through :attr:`logger` carries
    the tenant without it being passed around.

    Args:
        correlation_id: Identifier unique to this request.
        logger: Base logger the request logger is derived from.
    """

    def __init__(self, correlation_id: str, logger: Logger) -> None:
        self.correlation_id = correlation_id
        self._tenant: TenantIdentity | None = None
        self._logger = logger.bind(correlation_id=correlation_id)

    @property
    def tenant(self) -> TenantIdentity | None:
        """The resolved tenant, or None until resolution succeeds."""
        return self._tenant

    @property
    def tenant_id(self) -> str | None:
        """The resolved tenant identifier as a string."""
        return self._tenant.value if self._tenant else None

    @property
    def logger(self) -> Logger:
        """Logger enriched with this request's correlation fields."""
        return self._logger

    def set_tenant(self, tenant: TenantIdentity) -> None:
        """Record the tenant for this request.

        Args:
            tenant: The validated tenant identity.

        Raises:
            TenantAlreadyResolvedError: If a tenant was already set.
        """
        if self._tenant is not None:
            raise TenantAlreadyResolvedError(self._tenant.value, tenant.value)
        self._tenant = tenant
        self._logger = self._logger.bind(tenant_id=tenant.value)

    def log_fields(self) -> LogContext:
        """Correlation fields for explicit inclusion in a log record."""
        return {
            "correlation_id": self.correlation_id,
            "tenant_id": self.tenant_id or UNKNOWN_TENANT,
        }

    def __repr__(self) -> str:
        return (
            f"RequestContext(correlation_id='{self.correlation_id}', "
            f"tenant_id={self.tenant_id!r})"
        )


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracking.

    Returns:
        str: A string representation of a UUID4.

    Examples:
        >>> correlation_id = generate_correlation_id()
        >>> len(correlation_id)
        36
    """
    return str(uuid.uuid4())


def accept_correlation_id(value: str | None) -> str:
    """Return a caller-supplied correlation id if it is safe, else a new one.

    Caller values end up in every log line and in error responses, so only
    short tokens without whitespace or control characters are trusted.

    Args:
        value: Raw header value, possibly None.

    Returns:
        str: The accepted or freshly generated correlation id.
    """
    if value and _CORRELATION_ID_RE.fullmatch(value):
        return value
    return generate_correlation_id()
