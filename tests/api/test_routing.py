from __future__ import annotations

from fastapi.testclient import TestClient

from elearn.main import app
from tests.conftest import create_course


def _routes() -> set[tuple[str, str]]:
    return {
        (method.upper(), path)
        for path, operations in app.openapi()["paths"].items()
        for method in operations
    }


def test_public_surface_is_registered() -> None:
    expected = {
        ("GET", "/v1/auth/user"),
        ("GET", "/v1/categories"),
        ("POST", "/v1/categories"),
        ("GET", "/v1/courses"),
        ("GET", "/v1/courses/mine"),
        ("GET", "/v1/courses/{course_id}"),
        ("POST", "/v1/courses"),
        ("PATCH", "/v1/courses/{course_id}"),
        ("DELETE", "/v1/courses/{course_id}"),
        ("POST", "/v1/courses/{course_id}/lessons"),
        ("PATCH", "/v1/lessons/{lesson_id}"),
        ("DELETE", "/v1/lessons/{lesson_id}"),
        ("GET", "/v1/courses/{course_id}/reviews"),
        ("POST", "/v1/courses/{course_id}/reviews"),
        ("GET", "/v1/courses/{course_id}/enrollments"),
        ("POST", "/v1/enrollments"),
        ("GET", "/v1/enrollments/mine"),
        ("PUT", "/v1/enrollments/{course_id}/progress"),
        ("POST", "/v1/lessons/{lesson_id}/complete"),
        ("GET", "/v1/progress"),
        ("GET", "/v1/live-classes"),
        ("POST", "/v1/live-classes"),
        ("GET", "/v1/live-classes/upcoming"),
        ("POST", "/v1/live-classes/{live_class_id}/join"),
        ("POST", "/v1/live-classes/{live_class_id}/leave"),
        ("GET", "/v1/forum-categories"),
        ("POST", "/v1/forum-categories"),
        ("GET", "/v1/discussions"),
        ("POST", "/v1/discussions"),
        ("GET", "/v1/discussions/{discussion_id}"),
        ("POST", "/v1/discussions/{discussion_id}/replies"),
        ("GET", "/v1/notifications"),
        ("PUT", "/v1/notifications/{notification_id}/read"),
        ("POST", "/v1/payments/intent"),
        ("POST", "/v1/payments/complete"),
        ("GET", "/health"),
        ("GET", "/ready"),
    }
    assert expected <= _routes()


def test_metrics_is_served_outside_the_schema(client: TestClient) -> None:
    assert client.get("/metrics").status_code == 200


def test_courses_mine_is_not_shadowed_by_course_id(
    client: TestClient, instructor_headers
) -> None:
    course = create_course(client, instructor_headers)
    resp = client.get("/v1/courses/mine", headers=instructor_headers)
    assert resp.status_code == 200
    assert [c["id"] for c in resp.json()] == [course["id"]]
