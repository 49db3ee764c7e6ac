"""HTTP layer of a Gov2Biz service.

- **main**: Application factory, lifespan and routes
- **dependencies**: FastAPI dependencies exposing the request context
- **middleware**: The multi-tenant request pipeline
  - Fault boundary mapping every failure to the error envelope
  - Request logging with timing and body capture
  - Tenant resolution from the tenant header
- **schemas**: Pydantic models for the wire error contract
- **utils**: orjson response class and envelope helper
"""
