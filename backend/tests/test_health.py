"""Health endpoint smoke tests."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.asyncio


async def test_healthcheck_reports_database(app_context: dict[str, object]) -> None:
    client = app_context["client"]

    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["database"] == "ok"
    assert payload["service"] == "Cabin Booking API"
    assert len(payload["booking_today"]) == 10


async def test_security_headers_are_applied(app_context: dict[str, object]) -> None:
    client = app_context["client"]

    response = await client.get("/api/v1/health", headers={"X-Request-ID": "abc123def456"})

    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("X-Request-ID")
