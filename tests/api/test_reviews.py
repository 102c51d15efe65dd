from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tests.conftest import auth, create_course, mint_token


def _review(client: TestClient, course_id: str, user_id: str, rating: int):
    return client.post(
        f"/v1/courses/{course_id}/reviews",
        json={"rating": rating, "comment": "ok"},
        headers=auth(mint_token(user_id, given_name=user_id.title())),
    )


def test_reviews_update_course_rating(client: TestClient, instructor_headers) -> None:
    course = create_course(client, instructor_headers)
    for user_id, rating in (("ann", 5), ("bob", 4), ("cy", 4)):
        assert _review(client, course["id"], user_id, rating).status_code == 201

    detail = client.get(f"/v1/courses/{course['id']}").json()
    # mean(5, 4, 4) = 4.333... -> 4.33
    assert detail["rating"] == "4.33"
    assert len(detail["reviews"]) == 3


def test_reviews_listed_newest_first_with_author(
    client: TestClient, instructor_headers
) -> None:
    course = create_course(client, instructor_headers)
    _review(client, course["id"], "ann", 3)
    _review(client, course["id"], "bob", 5)

    reviews = client.get(f"/v1/courses/{course['id']}/reviews").json()
    assert [r["user_id"] for r in reviews] == ["bob", "ann"]
    assert reviews[0]["author"]["first_name"] == "Bob"


@pytest.mark.parametrize("rating", [0, 6])
def test_out_of_range_rating_rejected(
    client: TestClient, instructor_headers, rating: int
) -> None:
    course = create_course(client, instructor_headers)
    resp = _review(client, course["id"], "ann", rating)
    assert resp.status_code == 422

    detail = client.get(f"/v1/courses/{course['id']}").json()
    assert detail["rating"] == "0.00"
    assert detail["reviews"] == []


def test_review_of_unknown_course_rejected(client: TestClient) -> None:
    assert _review(client, "missing", "ann", 4).status_code == 422


def test_reviews_of_unknown_course_listing_is_404(client: TestClient) -> None:
    assert client.get("/v1/courses/missing/reviews").status_code == 404
