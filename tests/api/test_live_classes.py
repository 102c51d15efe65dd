from __future__ import annotations

from datetime import UTC, datetime, timedelta

from fastapi.testclient import TestClient

from tests.conftest import auth, mint_token


def _schedule(client: TestClient, headers, *, hours: int = 1, seats: int = 2) -> dict:
    resp = client.post(
        "/v1/live-classes",
        json={
            "title": "Office hours",
            "scheduled_at": (datetime.now(UTC) + timedelta(hours=hours)).isoformat(),
            "duration": 60,
            "max_attendees": seats,
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_learner_cannot_schedule(client: TestClient, learner_headers) -> None:
    resp = client.post(
        "/v1/live-classes",
        json={
            "title": "t",
            "scheduled_at": datetime.now(UTC).isoformat(),
            "duration": 30,
        },
        headers=learner_headers,
    )
    assert resp.status_code == 403


def test_upcoming_excludes_past_classes(client: TestClient, instructor_headers) -> None:
    future = _schedule(client, instructor_headers, hours=2)
    _schedule(client, instructor_headers, hours=-2)

    upcoming = client.get("/v1/live-classes/upcoming").json()
    assert [c["id"] for c in upcoming] == [future["id"]]
    assert len(client.get("/v1/live-classes").json()) == 2


def test_join_is_idempotent(client: TestClient, instructor_headers, learner_headers) -> None:
    live = _schedule(client, instructor_headers)
    first = client.post(f"/v1/live-classes/{live['id']}/join", headers=learner_headers)
    again = client.post(f"/v1/live-classes/{live['id']}/join", headers=learner_headers)
    assert first.status_code == 201
    assert again.status_code == 200
    assert again.json()["id"] == first.json()["id"]


def test_full_class_rejects_join(client: TestClient, instructor_headers) -> None:
    live = _schedule(client, instructor_headers, seats=2)
    url = f"/v1/live-classes/{live['id']}/join"
    assert client.post(url, headers=auth(mint_token("a"))).status_code == 201
    assert client.post(url, headers=auth(mint_token("b"))).status_code == 201
    resp = client.post(url, headers=auth(mint_token("c")))
    assert resp.status_code == 409


def test_leaving_frees_a_seat(client: TestClient, instructor_headers) -> None:
    live = _schedule(client, instructor_headers, seats=1)
    a = auth(mint_token("a"))
    b = auth(mint_token("b"))
    assert client.post(f"/v1/live-classes/{live['id']}/join", headers=a).status_code == 201

    left = client.post(f"/v1/live-classes/{live['id']}/leave", headers=a)
    assert left.status_code == 200
    assert left.json()["left_at"] is not None
    assert client.post(f"/v1/live-classes/{live['id']}/join", headers=b).status_code == 201


def test_leave_without_joining_is_404(
    client: TestClient, instructor_headers, learner_headers
) -> None:
    live = _schedule(client, instructor_headers)
    resp = client.post(f"/v1/live-classes/{live['id']}/leave", headers=learner_headers)
    assert resp.status_code == 404


def test_join_unknown_class_is_404(client: TestClient, learner_headers) -> None:
    assert client.post("/v1/live-classes/missing/join", headers=learner_headers).status_code == 404
