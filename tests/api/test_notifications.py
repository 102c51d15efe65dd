from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from elearn.services import notification_service
from tests.conftest import auth, mint_token


def test_list_and_mark_read(client: TestClient, store, learner_headers) -> None:
    n = asyncio.run(
        notification_service.notify(
            store, "learner-1", title="Hi", message="Welcome", type="achievement"
        )
    )
    listed = client.get("/v1/notifications", headers=learner_headers).json()
    assert [x["id"] for x in listed] == [n.id]
    assert listed[0]["is_read"] is False

    resp = client.put(f"/v1/notifications/{n.id}/read", headers=learner_headers)
    assert resp.status_code == 200
    assert resp.json()["is_read"] is True


def test_cannot_mark_someone_elses_notification(client: TestClient, store) -> None:
    n = asyncio.run(
        notification_service.notify(
            store, "owner", title="Hi", message="Private", type="course_update"
        )
    )
    resp = client.put(
        f"/v1/notifications/{n.id}/read", headers=auth(mint_token("intruder"))
    )
    assert resp.status_code == 404
    assert client.get("/v1/notifications", headers=auth(mint_token("intruder"))).json() == []
