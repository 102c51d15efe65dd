"""Forum endpoints: categories, discussions, replies, counters."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth, mint_token


def _category(client: TestClient, admin_headers, name: str = "General") -> str:
    resp = client.post("/v1/forum-categories", json={"name": name}, headers=admin_headers)
    assert resp.status_code == 201
    return resp.json()["id"]


def _discussion(client: TestClient, headers, category_id: str, title: str = "Hello") -> dict:
    resp = client.post(
        "/v1/discussions",
        json={"title": title, "content": "First post", "category_id": category_id},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_only_admin_creates_forum_categories(client: TestClient, learner_headers) -> None:
    resp = client.post("/v1/forum-categories", json={"name": "x"}, headers=learner_headers)
    assert resp.status_code == 403


def test_discussion_in_unknown_category_rejected(client: TestClient, learner_headers) -> None:
    resp = client.post(
        "/v1/discussions",
        json={"title": "t", "content": "c", "category_id": "nope"},
        headers=learner_headers,
    )
    assert resp.status_code == 422


def test_three_fetches_count_three_views(
    client: TestClient, admin_headers, learner_headers
) -> None:
    discussion = _discussion(client, learner_headers, _category(client, admin_headers))
    assert discussion["view_count"] == 0

    counts = [
        client.get(f"/v1/discussions/{discussion['id']}").json()["view_count"]
        for _ in range(3)
    ]
    assert counts == [1, 2, 3]


def test_two_replies_count_two(client: TestClient, admin_headers, learner_headers) -> None:
    discussion = _discussion(client, learner_headers, _category(client, admin_headers))
    url = f"/v1/discussions/{discussion['id']}/replies"
    first = client.post(url, json={"content": "one"}, headers=learner_headers)
    second = client.post(
        url,
        json={"content": "two", "parent_reply_id": first.json()["id"]},
        headers=auth(mint_token("learner-2")),
    )
    assert first.status_code == 201
    assert second.status_code == 201

    thread = client.get(f"/v1/discussions/{discussion['id']}").json()
    assert thread["reply_count"] == 2
    assert [r["content"] for r in thread["replies"]] == ["one", "two"]
    assert thread["replies"][1]["parent_reply_id"] == first.json()["id"]


def test_reply_to_missing_discussion_is_404(client: TestClient, learner_headers) -> None:
    resp = client.post(
        "/v1/discussions/missing/replies", json={"content": "hi"}, headers=learner_headers
    )
    assert resp.status_code == 404


def test_reply_with_missing_parent_is_404(
    client: TestClient, admin_headers, learner_headers
) -> None:
    discussion = _discussion(client, learner_headers, _category(client, admin_headers))
    resp = client.post(
        f"/v1/discussions/{discussion['id']}/replies",
        json={"content": "hi", "parent_reply_id": "missing"},
        headers=learner_headers,
    )
    assert resp.status_code == 404


def test_reply_with_parent_from_other_discussion_rejected(
    client: TestClient, admin_headers, learner_headers
) -> None:
    category_id = _category(client, admin_headers)
    a = _discussion(client, learner_headers, category_id, "A")
    b = _discussion(client, learner_headers, category_id, "B")
    parent = client.post(
        f"/v1/discussions/{a['id']}/replies", json={"content": "in A"}, headers=learner_headers
    ).json()

    resp = client.post(
        f"/v1/discussions/{b['id']}/replies",
        json={"content": "in B", "parent_reply_id": parent["id"]},
        headers=learner_headers,
    )
    assert resp.status_code == 422
    thread = client.get(f"/v1/discussions/{b['id']}").json()
    assert thread["reply_count"] == 0


def test_list_discussions_by_category(
    client: TestClient, admin_headers, learner_headers
) -> None:
    general = _category(client, admin_headers, "General")
    help_ = _category(client, admin_headers, "Help")
    _discussion(client, learner_headers, general, "g1")
    _discussion(client, learner_headers, help_, "h1")
    _discussion(client, learner_headers, general, "g2")

    titles = [d["title"] for d in client.get(f"/v1/discussions?category_id={general}").json()]
    assert titles == ["g2", "g1"]
    assert len(client.get("/v1/discussions").json()) == 3
