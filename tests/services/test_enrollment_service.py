from __future__ import annotations

import asyncio

import pytest

from elearn.core.errors import DuplicateError, NotFoundError, ValidationError
from elearn.repos.store import InMemoryEntityStore
from elearn.services import enrollment_service
from tests.conftest import seed_course


def test_enroll_twice_is_rejected(store: InMemoryEntityStore) -> None:
    async def scenario():
        course = await seed_course(store)
        await enrollment_service.enroll(store, "u1", course.id)
        with pytest.raises(DuplicateError):
            await enrollment_service.enroll(store, "u1", course.id)
        return await store.courses.get_course(course.id)

    course = asyncio.run(scenario())
    assert course.total_enrollments == 1


def test_concurrent_double_enrollment_keeps_one(store: InMemoryEntityStore) -> None:
    async def scenario():
        course = await seed_course(store)
        results = await asyncio.gather(
            enrollment_service.enroll(store, "u1", course.id),
            enrollment_service.enroll(store, "u1", course.id),
            return_exceptions=True,
        )
        return course, results

    course, results = asyncio.run(scenario())
    assert sum(isinstance(r, DuplicateError) for r in results) == 1
    assert asyncio.run(store.enrollments.count_by_course(course.id)) == 1


def test_concurrent_enrollments_count_matches_rows(store: InMemoryEntityStore) -> None:
    async def scenario():
        course = await seed_course(store)
        await asyncio.gather(
            *(enrollment_service.enroll(store, f"user-{i}", course.id) for i in range(25))
        )
        return await store.courses.get_course(course.id)

    course = asyncio.run(scenario())
    assert course.total_enrollments == 25
    assert asyncio.run(store.enrollments.count_by_course(course.id)) == 25


def test_enroll_after_purchase_is_idempotent(store: InMemoryEntityStore) -> None:
    async def scenario():
        course = await seed_course(store)
        first = await enrollment_service.enroll_after_purchase(store, "u1", course.id)
        second = await enrollment_service.enroll_after_purchase(store, "u1", course.id)
        return course, first, second

    course, (e1, created1), (e2, created2) = asyncio.run(scenario())
    assert created1 is True
    assert created2 is False
    assert e1.id == e2.id
    assert asyncio.run(store.courses.get_course(course.id)).total_enrollments == 1


def test_enroll_unpublished_course_rejected(store: InMemoryEntityStore) -> None:
    async def scenario():
        course = await seed_course(store, is_published=False)
        await enrollment_service.enroll(store, "u1", course.id)

    with pytest.raises(ValidationError, match="not available"):
        asyncio.run(scenario())


def test_progress_completion_stamp_is_kept_then_cleared(store: InMemoryEntityStore) -> None:
    async def scenario():
        course = await seed_course(store)
        await enrollment_service.enroll(store, "u1", course.id)
        done = await enrollment_service.update_progress(store, "u1", course.id, 100)
        still = await enrollment_service.update_progress(store, "u1", course.id, "100.00")
        back = await enrollment_service.update_progress(store, "u1", course.id, 40.5)
        return done, still, back

    done, still, back = asyncio.run(scenario())
    assert done.completed_at is not None
    assert still.completed_at == done.completed_at
    assert back.completed_at is None
    assert str(back.progress) == "40.50"


def test_update_progress_without_enrollment(store: InMemoryEntityStore) -> None:
    async def scenario():
        course = await seed_course(store)
        await enrollment_service.update_progress(store, "ghost", course.id, 10)

    with pytest.raises(NotFoundError):
        asyncio.run(scenario())


def test_complete_lesson_ignores_deleted_lessons(store: InMemoryEntityStore) -> None:
    async def scenario():
        from elearn.models.principal import Principal
        from elearn.services import catalog_service

        course = await seed_course(store, lesson_minutes=(10, 10, 10))
        lessons = await store.courses.list_lessons(course.id)
        owner = Principal(user_id="instructor-1", roles=frozenset({"instructor"}))
        await catalog_service.delete_lesson(store, owner, lessons[2].id)
        await enrollment_service.enroll(store, "u1", course.id)
        result = await enrollment_service.complete_lesson(store, "u1", lessons[0].id)
        return result

    result = asyncio.run(scenario())
    assert str(result.enrollment.progress) == "50.00"


def test_progress_writers_lock_the_enrollment(
    store: InMemoryEntityStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    locked: list[bool] = []
    original_get = store.enrollments.get

    async def recording_get(user_id: str, course_id: str, *, for_update: bool = False):
        locked.append(for_update)
        return await original_get(user_id, course_id, for_update=for_update)

    async def scenario():
        course = await seed_course(store, lesson_minutes=(10, 10))
        lessons = await store.courses.list_lessons(course.id)
        await enrollment_service.enroll(store, "u1", course.id)
        monkeypatch.setattr(store.enrollments, "get", recording_get)
        await enrollment_service.complete_lesson(store, "u1", lessons[0].id)
        await enrollment_service.update_progress(store, "u1", course.id, 80)

    asyncio.run(scenario())
    assert locked == [True, True]


def test_concurrent_lesson_completions_count_every_lesson(
    store: InMemoryEntityStore,
) -> None:
    async def scenario():
        course = await seed_course(store, lesson_minutes=(10, 10, 10))
        lessons = await store.courses.list_lessons(course.id)
        await enrollment_service.enroll(store, "u1", course.id)
        await asyncio.gather(
            *(enrollment_service.complete_lesson(store, "u1", lesson.id) for lesson in lessons)
        )
        return course

    course = asyncio.run(scenario())
    enrollment = asyncio.run(store.enrollments.get("u1", course.id))
    assert str(enrollment.progress) == "100.00"
    assert enrollment.completed_at is not None
