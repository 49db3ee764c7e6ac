"""Response helpers shared by the pipeline stages and exception handlers."""
