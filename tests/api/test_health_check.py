"""Tests for the system HTTP endpoints."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from community_server.app import create_app
from community_server.container import ServiceContainer


def build_client(*, fail: bool = False) -> TestClient:
    """Create a client for an app whose container has already been initialized."""
    container = ServiceContainer()
    container.register("database", lambda _: "db")
    container.register("cache", lambda _: "cache", dependencies=["database"])
    container.register("reports", lambda _: "reports", lazy=True)
    if fail:

        def broken(_):
            raise ConnectionError("search cluster unreachable")

        container.register("search", broken)

    asyncio.run(container.initialize_all())
    return TestClient(create_app(container))


def test_ping():
    client = build_client()
    response = client.get("/ping")

    assert response.status_code == 200
    assert response.json() == {"ping": "pong"}


def test_health_check_ok():
    client = build_client()
    response = client.get("/health-check")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["version_info"]["distribution"] == "community-server"
    states = {service["name"]: service["state"] for service in body["services"]}
    assert states == {"database": "ready", "cache": "ready", "reports": "uninitialized"}


def test_health_check_degraded():
    client = build_client(fail=True)
    response = client.get("/health-check")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "degraded"
    search = next(service for service in body["services"] if service["name"] == "search")
    assert search["state"] == "failed"
    assert search["error"] == "search cluster unreachable"
    assert search["error_type"] == "ConnectionError"


def test_service_health():
    client = build_client()
    response = client.get("/health-check/services/cache")

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "cache"
    assert body["state"] == "ready"
    assert body["dependencies"] == ["database"]


@pytest.mark.parametrize("name", ["ghost", "unknown.service"])
def test_service_health_unknown(name: str):
    client = build_client()
    response = client.get(f"/health-check/services/{name}")

    assert response.status_code == 404
    assert response.json() == {"detail": f"Service {name} is not registered"}
