"""End-to-end tests of the tenant request pipeline."""

import asyncio
from typing import Any

import orjson
import pytest
from fastapi import status
from httpx import AsyncClient

from gov2biz.core.constants import GENERIC_ERROR_MESSAGE
from gov2biz.core.exceptions import MissingValueError, NotFoundError

from tests.integration.routes import DocumentRoute

TENANT = {"X-Tenant-ID": "TEN-001"}


@pytest.mark.integration
class TestTenantResolution:
    """Tenant header handling through the full application."""

    async def test_health_check_without_tenant(self, client: AsyncClient) -> None:
        """Health probes answer without a tenant header."""
        response = await client.get("/healthz")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["status"] == "Healthy"
        assert body["service"] == "TestService"
        assert "timestamp" in body
        assert response.headers["X-Correlation-ID"]

    async def test_malformed_tenant_is_rejected(
        self, client: AsyncClient, document_route: DocumentRoute
    ) -> None:
        """A tenant id with a space never reaches the handler."""
        response = await client.get(
            "/api/documents/5", headers={"X-Tenant-ID": "TEN 001"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "error": {
                "message": "Missing or invalid X-Tenant-ID header",
                "code": "MISSING_TENANT",
                "traceId": response.headers["X-Correlation-ID"],
            }
        }
        assert document_route.calls == []

    async def test_missing_tenant_is_rejected(
        self, client: AsyncClient, document_route: DocumentRoute
    ) -> None:
        """Requests without a tenant header are rejected."""
        response = await client.get("/api/documents/5")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "MISSING_TENANT"
        assert document_route.calls == []

    async def test_valid_tenant_reaches_handler(
        self, client: AsyncClient, document_route: DocumentRoute
    ) -> None:
        """The handler runs once and sees the tenant."""
        response = await client.get("/api/documents/5", headers=TENANT)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"documentId": 5, "tenantId": "TEN-001"}
        assert document_route.calls == ["TEN-001"]

    async def test_lowercase_header_name(self, client: AsyncClient) -> None:
        """Header names are matched case-insensitively."""
        response = await client.get(
            "/api/tenant/context", headers={"x-tenant-id": "TEN-001"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["tenantId"] == "TEN-001"

    async def test_exempt_auth_path(self, client: AsyncClient) -> None:
        """Authentication routes are reachable without a tenant."""
        response = await client.get("/api/auth/ping")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"tenantId": None}

    async def test_unknown_route_without_tenant_is_rejected(
        self, client: AsyncClient
    ) -> None:
        """Tenant resolution runs before routing."""
        response = await client.get("/api/unknown")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "MISSING_TENANT"


@pytest.mark.integration
class TestFaultHandling:
    """Exception classification through the full application."""

    async def test_missing_value_maps_to_validation_error(
        self, client: AsyncClient, document_route: DocumentRoute
    ) -> None:
        """A missing argument is a 400 with the fixed message."""
        document_route.failure = MissingValueError("document_id")

        response = await client.get("/api/documents/5", headers=TENANT)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == {
            "message": "Required value was not provided",
            "code": "VALIDATION_ERROR",
            "traceId": response.headers["X-Correlation-ID"],
        }

    async def test_not_found_maps_to_404(
        self, client: AsyncClient, document_route: DocumentRoute
    ) -> None:
        """Lookup misses are a 404 with the fixed message."""
        document_route.failure = NotFoundError("Document 5 of tenant TEN-001")

        response = await client.get("/api/documents/5", headers=TENANT)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == (
            "The requested resource was not found"
        )

    async def test_unclassified_failure_hides_details(
        self,
        client: AsyncClient,
        document_route: DocumentRoute,
        log_records: list[dict[str, Any]],
    ) -> None:
        """Unexpected failures are a generic 500; the log keeps the details."""
        document_route.failure = RuntimeError(
            "connection string Server=db;Password=hunter2"
        )

        response = await client.get("/api/documents/5", headers=TENANT)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
        assert response.json()["error"]["message"] == GENERIC_ERROR_MESSAGE
        assert "hunter2" not in response.text

        fault = next(
            r
            for r in log_records
            if r["message"] == "Unhandled exception: RuntimeError"
        )
        assert "hunter2" in fault["extra"]["error_message"]
        assert fault["exception"] is not None

    async def test_unknown_route_with_tenant(
        self, client: AsyncClient, log_records: list[dict[str, Any]]
    ) -> None:
        """Routing misses use the envelope and the request logger."""
        response = await client.get("/api/unknown", headers=TENANT)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        error = response.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert error["traceId"] == response.headers["X-Correlation-ID"]

        http_log = next(r for r in log_records if r["message"] == "HTTP exception")
        assert http_log["extra"]["correlation_id"] == error["traceId"]
        assert http_log["extra"]["tenant_id"] == "TEN-001"

    async def test_method_not_allowed(self, client: AsyncClient) -> None:
        """Wrong methods are reported as invalid operations."""
        response = await client.post("/healthz")

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert response.json()["error"]["code"] == "INVALID_OPERATION"

    async def test_request_validation_failure(self, client: AsyncClient) -> None:
        """Body validation failures are a 400 naming the field."""
        response = await client.post(
            "/api/licenses", headers=TENANT, json={"holder": "Ada"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"].startswith("Request validation failed: license_type")
        assert error["traceId"] == response.headers["X-Correlation-ID"]


@pytest.mark.integration
class TestObservability:
    """Logging and correlation through the full application."""

    async def test_log_sequence_for_unhandled_failure(
        self,
        client: AsyncClient,
        document_route: DocumentRoute,
        log_records: list[dict[str, Any]],
    ) -> None:
        """Start, tenant, completion with the mapped status, then the fault."""
        document_route.failure = RuntimeError("boom")

        response = await client.get(
            "/api/documents/5", headers={**TENANT, "X-Correlation-ID": "abc-123"}
        )

        pipeline_messages = [
            r["message"]
            for r in log_records
            if r["extra"].get("correlation_id") == "abc-123"
        ]
        assert pipeline_messages == [
            "Request started",
            "Tenant resolved",
            "Request completed",
            "Unhandled exception: RuntimeError",
        ]
        completed = next(r for r in log_records if r["message"] == "Request completed")
        assert completed["extra"]["status_code"] == response.status_code == 500
        assert completed["extra"]["tenant_id"] == "TEN-001"

    async def test_correlation_id_is_echoed(self, client: AsyncClient) -> None:
        """A well-formed caller correlation id is reused."""
        response = await client.get(
            "/api/tenant/context",
            headers={**TENANT, "X-Correlation-ID": "abc-123"},
        )

        assert response.headers["X-Correlation-ID"] == "abc-123"
        assert response.json() == {
            "tenantId": "TEN-001",
            "traceId": "abc-123",
            "service": "TestService",
        }

    async def test_unsafe_correlation_id_is_replaced(
        self, client: AsyncClient
    ) -> None:
        """Caller ids with unsafe characters are replaced."""
        response = await client.get(
            "/healthz", headers={"X-Correlation-ID": "bad id <script>"}
        )

        assert response.headers["X-Correlation-ID"] != "bad id <script>"
        assert len(response.headers["X-Correlation-ID"]) == 36

    async def test_captured_body_is_still_readable(
        self, client: AsyncClient, log_records: list[dict[str, Any]]
    ) -> None:
        """The handler reads the full body after it was captured for logging."""
        body = orjson.dumps({"holder": "Ada", "password": "hunter2"})

        response = await client.post(
            "/api/echo",
            headers={**TENANT, "Content-Type": "application/json"},
            content=body,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.content == body

        captured = next(
            r for r in log_records if r["message"] == "Request body captured"
        )
        assert captured["extra"]["body"] == {
            "holder": "Ada",
            "password": "[REDACTED]",
        }

    async def test_large_body_is_not_captured(
        self, client: AsyncClient, log_records: list[dict[str, Any]]
    ) -> None:
        """Bodies at or above the ceiling are passed through untouched."""
        body = b"x" * 4096

        response = await client.post(
            "/api/echo",
            headers={**TENANT, "Content-Type": "text/plain"},
            content=body,
        )

        assert response.content == body
        assert all(r["message"] != "Request body captured" for r in log_records)


@pytest.mark.integration
class TestConcurrency:
    """Concurrent requests never observe each other's tenant."""

    async def test_concurrent_tenants_are_isolated(self, client: AsyncClient) -> None:
        """Each response names the tenant of its own request."""
        tenants = [f"TEN-{index:03d}" for index in range(25)]

        responses = await asyncio.gather(
            *(
                client.get("/api/tenant/context", headers={"X-Tenant-ID": tenant})
                for tenant in tenants
            )
        )

        assert [r.json()["tenantId"] for r in responses] == tenants
        assert len({r.json()["traceId"] for r in responses}) == len(tenants)
