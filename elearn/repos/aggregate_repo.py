"""Derived-counter primitives.

Each operation is a single atomic step against its parent row and returns
the new value, or None when the parent row does not exist.  Callers run
them inside `EntityStore.transaction()` together with the source write
(see elearn.services.aggregates).
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Protocol

from elearn.models.base import quantize_2dp
from elearn.models.enrollment import EnrollmentLoad
from elearn.repos.course_repo import InMemoryCourseRepo
from elearn.repos.enrollment_repo import InMemoryEnrollmentRepo
from elearn.repos.forum_repo import InMemoryForumRepo
from elearn.repos.review_repo import InMemoryReviewRepo


class AggregateRepo(Protocol):
    async def increment_total_enrollments(
        self, course_id: str, by: int = 1
    ) -> int | None: ...
    async def recompute_rating(self, course_id: str) -> Decimal | None: ...
    async def increment_view_count(self, discussion_id: str) -> int | None: ...
    async def increment_reply_count(self, discussion_id: str) -> int | None: ...

    async def enrollment_loads(self, user_id: str) -> list[EnrollmentLoad]: ...
    async def lesson_completion(
        self, user_id: str, course_id: str
    ) -> tuple[int, int]: ...


class InMemoryAggregateRepo:
    """Works directly on the sibling in-memory repos.

    None of these coroutines await anything that can suspend, so each one
    runs to completion without interleaving, like a single SQL statement.
    """

    def __init__(
        self,
        courses: InMemoryCourseRepo,
        enrollments: InMemoryEnrollmentRepo,
        forum: InMemoryForumRepo,
        reviews: InMemoryReviewRepo,
    ) -> None:
        self._courses = courses
        self._enrollments = enrollments
        self._forum = forum
        self._reviews = reviews

    async def increment_total_enrollments(
        self, course_id: str, by: int = 1
    ) -> int | None:
        course = await self._courses.get_course(course_id)
        if course is None:
            return None
        updated = replace(course, total_enrollments=course.total_enrollments + by)
        self._courses.put_course(updated)
        return updated.total_enrollments

    async def recompute_rating(self, course_id: str) -> Decimal | None:
        course = await self._courses.get_course(course_id)
        if course is None:
            return None
        ratings = self._reviews.ratings(course_id)
        rating = (
            quantize_2dp(Decimal(sum(ratings)) / len(ratings))
            if ratings
            else Decimal("0.00")
        )
        self._courses.put_course(replace(course, rating=rating))
        return rating

    async def increment_view_count(self, discussion_id: str) -> int | None:
        d = await self._forum.get_discussion(discussion_id)
        if d is None:
            return None
        updated = replace(d, view_count=d.view_count + 1)
        self._forum.put_discussion(updated)
        return updated.view_count

    async def increment_reply_count(self, discussion_id: str) -> int | None:
        d = await self._forum.get_discussion(discussion_id)
        if d is None:
            return None
        updated = replace(d, reply_count=d.reply_count + 1)
        self._forum.put_discussion(updated)
        return updated.reply_count

    # --- progress reads ---

    async def enrollment_loads(self, user_id: str) -> list[EnrollmentLoad]:
        loads: list[EnrollmentLoad] = []
        for e in await self._enrollments.list_by_user(user_id):
            lessons = await self._courses.list_lessons(e.course_id)
            loads.append(
                EnrollmentLoad(
                    progress=e.progress,
                    completed=e.is_completed,
                    course_minutes=sum(lesson.minutes for lesson in lessons),
                )
            )
        return loads

    async def lesson_completion(self, user_id: str, course_id: str) -> tuple[int, int]:
        lessons = await self._courses.list_lessons(course_id)
        completed = 0
        for lesson in lessons:
            lp = await self._enrollments.get_lesson_progress(user_id, lesson.id)
            if lp is not None and lp.is_completed:
                completed += 1
        return completed, len(lessons)
