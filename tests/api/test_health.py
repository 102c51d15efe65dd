from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from elearn.db import engine as db_engine


def test_health_reports_unconfigured_dependencies(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "checks": {"database": "not_configured", "redis": "not_configured"},
    }


def test_ready_without_dependencies(client: TestClient) -> None:
    assert client.get("/ready").status_code == 200


def test_database_down_degrades_health_and_fails_ready(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def _down() -> bool:
        return False

    monkeypatch.setattr(db_engine, "engine", object())
    monkeypatch.setattr(db_engine, "ping_database", _down)

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "degraded"
    assert health.json()["checks"]["database"] == "down"
    assert client.get("/ready").status_code == 503
