"""Per-user fixed-window limits on forum and review writes."""

from __future__ import annotations

from fastapi.testclient import TestClient

from elearn.services.rate_limiter import RateLimitConfig
from tests.conftest import auth, mint_token

LIMIT = RateLimitConfig().limit


def _category(client: TestClient, admin_headers) -> str:
    return client.post(
        "/v1/forum-categories", json={"name": "General"}, headers=admin_headers
    ).json()["id"]


def _post(client: TestClient, headers, category_id: str):
    return client.post(
        "/v1/discussions",
        json={"title": "t", "content": "c", "category_id": category_id},
        headers=headers,
    )


def test_rate_limit_headers_present(client: TestClient, admin_headers, learner_headers) -> None:
    resp = _post(client, learner_headers, _category(client, admin_headers))
    assert resp.status_code == 201
    assert resp.headers["x-ratelimit-limit"] == str(LIMIT)
    assert resp.headers["x-ratelimit-remaining"] == str(LIMIT - 1)


def test_over_limit_gets_429_with_retry_after(
    client: TestClient, admin_headers, learner_headers
) -> None:
    category_id = _category(client, admin_headers)
    statuses = [_post(client, learner_headers, category_id).status_code for _ in range(LIMIT)]
    assert set(statuses) == {201}

    resp = _post(client, learner_headers, category_id)
    assert resp.status_code == 429
    assert int(resp.headers["retry-after"]) > 0
    assert resp.headers["x-ratelimit-remaining"] == "0"


def test_users_have_separate_windows(client: TestClient, admin_headers) -> None:
    category_id = _category(client, admin_headers)
    a = auth(mint_token("user-a"))
    b = auth(mint_token("user-b"))
    for _ in range(LIMIT + 1):
        _post(client, a, category_id)
    assert _post(client, a, category_id).status_code == 429
    assert _post(client, b, category_id).status_code == 201


def test_reads_are_not_limited(client: TestClient, learner_headers) -> None:
    for _ in range(LIMIT + 5):
        assert client.get("/v1/notifications", headers=learner_headers).status_code == 200
