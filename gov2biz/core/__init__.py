"""Core building blocks shared by every Gov2Biz service.

- **config**: Settings loaded from the environment with pydantic-settings
- **tenancy**: Tenant identifier value type and format validation
- **context**: Per-request context carrying the correlation id and tenant
- **exceptions**: Exception hierarchy and stable error codes
- **error_context**: Redaction of sensitive values before they are logged
- **logging**: Loguru configuration and formatters
- **observability**: OpenTelemetry tracing setup
- **types**: Type aliases for loosely structured data
"""
