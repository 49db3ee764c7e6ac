"""Tenant identifier value type and format validation.

A tenant identifier is a short ASCII token (letters, digits, ``-`` and
``_``, 1 to 50 characters). Anything else is rejected outright: the request
pipeline fails closed on an identifier it cannot validate.
"""

import re
from typing import Final

from pydantic import BaseModel, ConfigDict, field_validator

from gov2biz.core.constants import TENANT_ID_MAX_LENGTH, TENANT_ID_PATTERN

_TENANT_ID_RE: Final = re.compile(TENANT_ID_PATTERN)


def is_valid_tenant_id(value: str | None) -> bool:
    """Check whether a value is a well-formed tenant identifier.

    Args:
        value: Candidate identifier, typically a raw header value.

    Returns:
        bool: True if the value is 1-50 characters of ``[A-Za-z0-9_-]``.

    Examples:
        >>> is_valid_tenant_id("TEN-001")
        True
        >>> is_valid_tenant_id("TEN 001")
        False
    """
    if not value or len(value) > TENANT_ID_MAX_LENGTH:
        return False
    return _TENANT_ID_RE.fullmatch(value) is not None


class TenantIdentity(BaseModel):
    """Validated, immutable tenant identifier for the current request."""

    model_config = ConfigDict(frozen=True)

    value: str

    @field_validator("value", mode="after")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Reject identifiers that do not match the tenant id format."""
        if not is_valid_tenant_id(v):
            msg = (
                "Tenant id must be 1-50 characters of letters, digits, "
                "dashes or underscores"
            )
            raise ValueError(msg)
        return v

    def __str__(self) -> str:
        return self.value
