"""Shared fixtures for unit tests."""

from collections.abc import Callable

import pytest
from loguru import logger
from starlette.requests import Request
from starlette.types import Message

from gov2biz.core.config import ObservabilityConfig, Settings
from gov2biz.core.context import RequestContext


@pytest.fixture
def test_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Provide Settings with test defaults and tracing disabled.

    Returns:
        Settings: Settings object with test values.
    """
    monkeypatch.setenv("APP_NAME", "TestService")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("DEBUG", "false")
    return Settings(observability_config=ObservabilityConfig(enable_tracing=False))


@pytest.fixture
def request_context() -> RequestContext:
    """Provide a fresh request context with a fixed correlation id."""
    return RequestContext("corr-test-0001", logger)


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Provide a factory building Starlette requests from raw parts.

    Returns:
        Callable[..., Request]: Factory accepting path, method, headers,
            body and query string. With ``disconnected=True`` the client is
            gone before any body arrives.
    """

    def factory(
        path: str = "/api/documents/5",
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: bytes = b"",
        query_string: bytes = b"",
        disconnected: bool = False,
    ) -> Request:
        raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ]
        if body and not any(name == b"content-length" for name, _ in raw_headers):
            raw_headers.append((b"content-length", str(len(body)).encode()))

        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "path": path,
            "raw_path": path.encode(),
            "query_string": query_string,
            "headers": raw_headers,
            "client": ("127.0.0.1", 50000),
            "server": ("testserver", 80),
            "state": {},
        }
        sent = False

        async def receive() -> Message:
            nonlocal sent
            if sent or disconnected:
                return {"type": "http.disconnect"}
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        return Request(scope, receive)

    return factory
