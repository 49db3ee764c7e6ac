"""Core application constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Tenant identifiers
TENANT_ID_MAX_LENGTH = 50
TENANT_ID_PATTERN = r"[A-Za-z0-9_-]{1,50}"
UNKNOWN_TENANT = "unknown"

# Correlation ids accepted from callers
CORRELATION_ID_PATTERN = r"[A-Za-z0-9._:-]{1,128}"

# Client-facing message for unclassified failures
GENERIC_ERROR_MESSAGE = (
    "An unexpected error occurred. Please contact support if the problem persists."
)

# Security and redaction
REDACTED = "[REDACTED]"
TRUNCATED_SUFFIX = "... [truncated]"
