from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")
    uuid.UUID(resp.headers["x-request-id"])


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    resp = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["x-request-id"] == "req-123"


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/v1/progress")  # no token -> 401
    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def test_summary_line_carries_route_and_user(
    client: TestClient, learner_headers, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="elearn.middleware.request_context"):
        client.get("/v1/progress", headers={**learner_headers, "X-Request-ID": "req-9"})

    records = [r for r in caplog.records if r.name == "elearn.middleware.request_context"]
    assert records
    record = records[-1]
    assert record.request_id == "req-9"
    assert record.route == "/v1/progress"
    assert record.user_id == "learner-1"
    assert record.status_code == 200
