"""Root conftest.py for the Gov2Biz test suite.

This file contains project-wide fixtures and pytest configuration.
"""

from collections.abc import Generator
from typing import Any

import pytest
from loguru import logger

from gov2biz.core.config import get_settings
from gov2biz.core.error_context import _get_sensitive_fields

# Intercepted standard library records that would only add noise
THIRD_PARTY_LOGGERS: dict[str | None, str | int | bool] = {
    "asyncio": False,
    "anyio": False,
    "httpcore": False,
    "httpx": False,
}


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    """Clear cached settings before and after each test."""
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()
    yield
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()


@pytest.fixture
def log_records() -> Generator[list[dict[str, Any]]]:
    """Collect Loguru records emitted during a test.

    Yields:
        list[dict[str, Any]]: Records in emission order.
    """
    records: list[dict[str, Any]] = []
    handler_id = logger.add(
        lambda message: records.append(message.record),
        level="DEBUG",
        format="{message}",
        filter=THIRD_PARTY_LOGGERS,
    )
    yield records
    logger.remove(handler_id)
