"""Enrollment, lesson completion and progress endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth, create_course, mint_token


def _enroll(client: TestClient, headers, course_id: str):
    return client.post("/v1/enrollments", json={"course_id": course_id}, headers=headers)


def test_enroll_creates_enrollment(
    client: TestClient, instructor_headers, learner_headers
) -> None:
    course = create_course(client, instructor_headers)
    resp = _enroll(client, learner_headers, course["id"])
    assert resp.status_code == 201
    body = resp.json()
    assert body["user_id"] == "learner-1"
    assert body["progress"] == "0.00"
    assert body["completed_at"] is None

    detail = client.get(f"/v1/courses/{course['id']}").json()
    assert detail["total_enrollments"] == 1


def test_second_enrollment_is_conflict_and_not_counted(
    client: TestClient, instructor_headers, learner_headers
) -> None:
    course = create_course(client, instructor_headers)
    assert _enroll(client, learner_headers, course["id"]).status_code == 201
    resp = _enroll(client, learner_headers, course["id"])
    assert resp.status_code == 409

    detail = client.get(f"/v1/courses/{course['id']}").json()
    assert detail["total_enrollments"] == 1


def test_enroll_in_unpublished_course_rejected(
    client: TestClient, instructor_headers, learner_headers
) -> None:
    course = create_course(client, instructor_headers, is_published=False)
    assert _enroll(client, learner_headers, course["id"]).status_code == 422


def test_enroll_in_unknown_course_rejected(client: TestClient, learner_headers) -> None:
    assert _enroll(client, learner_headers, "missing").status_code == 422


def test_my_enrollments_include_course(
    client: TestClient, instructor_headers, learner_headers
) -> None:
    course = create_course(client, instructor_headers, title="Rust")
    _enroll(client, learner_headers, course["id"])
    mine = client.get("/v1/enrollments/mine", headers=learner_headers).json()
    assert len(mine) == 1
    assert mine[0]["course"]["title"] == "Rust"


def test_progress_100_marks_completed(
    client: TestClient, instructor_headers, learner_headers
) -> None:
    course = create_course(client, instructor_headers)
    _enroll(client, learner_headers, course["id"])
    resp = client.put(
        f"/v1/enrollments/{course['id']}/progress",
        json={"progress": 100},
        headers=learner_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["progress"] == "100.00"
    assert resp.json()["completed_at"] is not None


def test_progress_out_of_range_rejected(
    client: TestClient, instructor_headers, learner_headers
) -> None:
    course = create_course(client, instructor_headers)
    _enroll(client, learner_headers, course["id"])
    resp = client.put(
        f"/v1/enrollments/{course['id']}/progress",
        json={"progress": 101},
        headers=learner_headers,
    )
    assert resp.status_code == 422


def test_progress_without_enrollment_is_404(
    client: TestClient, instructor_headers, learner_headers
) -> None:
    course = create_course(client, instructor_headers)
    resp = client.put(
        f"/v1/enrollments/{course['id']}/progress",
        json={"progress": 10},
        headers=learner_headers,
    )
    assert resp.status_code == 404


def test_complete_lessons_moves_progress(
    client: TestClient, instructor_headers, learner_headers
) -> None:
    course = create_course(client, instructor_headers)
    lessons = [
        client.post(
            f"/v1/courses/{course['id']}/lessons",
            json={"title": f"L{i}", "order": i},
            headers=instructor_headers,
        ).json()
        for i in range(4)
    ]
    _enroll(client, learner_headers, course["id"])

    resp = client.post(
        f"/v1/lessons/{lessons[0]['id']}/complete",
        json={"watch_time": 300},
        headers=learner_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["is_completed"] is True
    assert resp.json()["enrollment"]["progress"] == "25.00"

    # Completing the same lesson again does not count twice
    again = client.post(f"/v1/lessons/{lessons[0]['id']}/complete", headers=learner_headers)
    assert again.json()["enrollment"]["progress"] == "25.00"
    assert again.json()["watch_time"] == 300

    for lesson in lessons[1:]:
        last = client.post(f"/v1/lessons/{lesson['id']}/complete", headers=learner_headers)
    assert last.json()["enrollment"]["progress"] == "100.00"
    assert last.json()["enrollment"]["completed_at"] is not None


def test_complete_lesson_requires_enrollment(
    client: TestClient, instructor_headers, learner_headers
) -> None:
    course = create_course(client, instructor_headers)
    lesson = client.post(
        f"/v1/courses/{course['id']}/lessons",
        json={"title": "L0", "order": 0},
        headers=instructor_headers,
    ).json()
    resp = client.post(f"/v1/lessons/{lesson['id']}/complete", headers=learner_headers)
    assert resp.status_code == 422


def test_progress_summary_empty(client: TestClient, learner_headers) -> None:
    resp = client.get("/v1/progress", headers=learner_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "total_courses": 0,
        "completed_courses": 0,
        "total_hours": 0,
        "overall_progress": 0,
    }


def test_progress_summary_counts_completed_course(
    client: TestClient, instructor_headers
) -> None:
    course = create_course(client, instructor_headers)
    for order, minutes in ((0, 60), (1, 60)):
        client.post(
            f"/v1/courses/{course['id']}/lessons",
            json={"title": f"L{order}", "order": order, "duration": minutes},
            headers=instructor_headers,
        )
    headers = auth(mint_token("learner-9"))
    _enroll(client, headers, course["id"])
    client.put(
        f"/v1/enrollments/{course['id']}/progress",
        json={"progress": 100},
        headers=headers,
    )

    summary = client.get("/v1/progress", headers=headers).json()
    assert summary == {
        "total_courses": 1,
        "completed_courses": 1,
        "total_hours": 2,
        "overall_progress": 100,
    }
