"""API-related constants."""

# HTTP headers
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Key under ``request.state`` holding the RequestContext
REQUEST_CONTEXT_STATE_KEY = "request_context"

# Client messages for classified failures
MISSING_VALUE_MESSAGE = "Required value was not provided"
UNAUTHORIZED_MESSAGE = "You are not authorized to perform this action"
NOT_FOUND_MESSAGE = "The requested resource was not found"
