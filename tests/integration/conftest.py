"""Shared fixtures for integration tests.

The application under test is the real service built by ``create_app`` with
a few extra routes standing in for tenant-scoped business endpoints.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from gov2biz.api.main import create_app
from gov2biz.core.config import ObservabilityConfig, Settings
from tests.integration.routes import DocumentRoute, add_business_routes


@pytest.fixture
def test_settings() -> Settings:
    """Provide settings for the application under test."""
    return Settings(
        app_name="TestService",
        environment="development",
        debug=False,
        observability_config=ObservabilityConfig(enable_tracing=False),
    )


@pytest.fixture
def document_route() -> DocumentRoute:
    """Provide the controllable document endpoint behaviour."""
    return DocumentRoute()


@pytest.fixture
def app(test_settings: Settings, document_route: DocumentRoute) -> FastAPI:
    """Create the application with extra tenant-scoped routes."""
    application = create_app(test_settings)
    add_business_routes(application, document_route)
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Provide an async HTTP client bound to the application."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as async_client:
        yield async_client


@pytest.fixture
def log_records(
    app: FastAPI, log_records: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Collect Loguru records only once the application has configured logging.

    Creating the application replaces every Loguru sink, so the collector has
    to be attached afterwards.
    """
    _ = app
    return log_records
