"""Liveness and readiness probe tests."""

from __future__ import annotations

from datetime import datetime

from fastapi import FastAPI
from fastapi.testclient import TestClient

from servicekit.health import create_health_router


def _parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_health_reports_liveness(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["environment"] == "test"
    assert body["version"] == "9.9.9"
    assert body["uptime"] >= 0
    assert _parse_iso(body["timestamp"]).tzinfo is not None


def test_health_is_stable_across_calls(client: TestClient) -> None:
    first = client.get("/health").json()
    second = client.get("/health").json()

    assert second["uptime"] >= first["uptime"]
    assert _parse_iso(second["timestamp"]) >= _parse_iso(first["timestamp"])


def test_ready_reports_placeholder_checks(client: TestClient) -> None:
    response = client.get("/ready")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ready"
    assert body["checks"] == {"database": "ok", "redis": "ok", "external_apis": "ok"}
    _parse_iso(body["timestamp"])


def _probe_app(checks) -> TestClient:
    app = FastAPI()
    app.include_router(
        create_health_router(environment="dev", version="1.0.0", readiness_checks=checks)
    )
    return TestClient(app)


def test_ready_fails_when_a_check_fails() -> None:
    async def cache() -> bool:
        return False

    async def store() -> bool:
        return True

    response = _probe_app({"cache": cache, "store": store}).get("/ready")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "unavailable"
    assert body["checks"] == {"cache": "failing", "store": "ok"}


def test_ready_reports_check_errors() -> None:
    async def broker() -> bool:
        raise ConnectionError("refused")

    response = _probe_app({"broker": broker}).get("/ready")

    assert response.status_code == 503
    assert response.json()["checks"] == {"broker": "error: refused"}


def test_ready_with_no_checks_is_ready() -> None:
    response = _probe_app({}).get("/ready")

    assert response.status_code == 200
    assert response.json()["checks"] == {}
