from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from elearn.core.errors import DuplicateError
from elearn.models.base import utcnow
from elearn.models.enrollment import Enrollment, LessonProgress
from elearn.models.live_class import LiveClassAttendee
from elearn.models.notification import Notification
from elearn.repos.ordering import newest_first
from elearn.repos.store import InMemoryEntityStore


def test_newest_first_breaks_ties_by_insertion() -> None:
    same = utcnow()
    items = [("a", same), ("b", same), ("c", same - timedelta(seconds=1))]
    assert [name for name, _ in newest_first(items, key=lambda i: i[1])] == ["b", "a", "c"]


def test_duplicate_enrollment_rejected(store: InMemoryEntityStore) -> None:
    async def scenario():
        await store.enrollments.add(Enrollment.new(user_id="u1", course_id="c1"))
        await store.enrollments.add(Enrollment.new(user_id="u1", course_id="c1"))

    with pytest.raises(DuplicateError):
        asyncio.run(scenario())


def test_lesson_progress_upsert_merges(store: InMemoryEntityStore) -> None:
    async def scenario():
        first = await store.enrollments.upsert_lesson_progress(
            LessonProgress.new(user_id="u1", lesson_id="l1", watch_time=120, is_completed=True)
        )
        second = await store.enrollments.upsert_lesson_progress(
            LessonProgress.new(user_id="u1", lesson_id="l1", watch_time=30)
        )
        return first, second

    first, second = asyncio.run(scenario())
    assert second.id == first.id
    assert second.watch_time == 120
    assert second.is_completed is True
    assert second.completed_at == first.completed_at


def test_close_attendance_only_once(store: InMemoryEntityStore) -> None:
    attendee = LiveClassAttendee.new(live_class_id="lc1", user_id="u1")

    async def scenario():
        await store.live_classes.add_attendee(attendee)
        with pytest.raises(DuplicateError):
            await store.live_classes.add_attendee(
                LiveClassAttendee.new(live_class_id="lc1", user_id="u1")
            )
        closed = await store.live_classes.close_attendance(attendee.id, utcnow())
        again = await store.live_classes.close_attendance(attendee.id, utcnow())
        return closed, again, await store.live_classes.count_present("lc1")

    closed, again, present = asyncio.run(scenario())
    assert closed is not None and closed.left_at is not None
    assert again is None
    assert present == 0


def test_notifications_newest_first(store: InMemoryEntityStore) -> None:
    async def scenario():
        for title in ("one", "two", "three"):
            await store.notifications.add(
                Notification.new(user_id="u1", title=title, message="m", type="achievement")
            )
        return await store.notifications.list_by_user("u1")

    assert [n.title for n in asyncio.run(scenario())] == ["three", "two", "one"]


def test_transaction_rolls_back_every_repo(store: InMemoryEntityStore) -> None:
    async def scenario():
        with pytest.raises(RuntimeError):
            async with store.transaction():
                await store.enrollments.add(Enrollment.new(user_id="u1", course_id="c1"))
                await store.notifications.add(
                    Notification.new(user_id="u1", title="t", message="m", type="x")
                )
                raise RuntimeError("boom")
        return (
            await store.enrollments.get("u1", "c1"),
            await store.notifications.list_by_user("u1"),
        )

    assert asyncio.run(scenario()) == (None, [])


def test_nested_transaction_failure_keeps_outer_writes(store: InMemoryEntityStore) -> None:
    async def scenario():
        async with store.transaction():
            await store.enrollments.add(Enrollment.new(user_id="u1", course_id="c1"))
            with pytest.raises(DuplicateError):
                async with store.transaction():
                    await store.enrollments.add(Enrollment.new(user_id="u2", course_id="c1"))
                    await store.enrollments.add(Enrollment.new(user_id="u2", course_id="c1"))
        return await store.enrollments.count_by_course("c1")

    assert asyncio.run(scenario()) == 1
