"""Type aliases for loosely structured data passed around the pipeline.

All types defined here should be JSON-serializable so they can be written
to structured logs and error responses.
"""

from typing import Any, TypeAlias

# Fields attached to a structured log record
LogContext: TypeAlias = dict[str, Any]  # JSON-serializable values

# ASGI scope type, used by the tracing request hook
AsgiScope: TypeAlias = dict[str, Any]
