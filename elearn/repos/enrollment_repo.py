from __future__ import annotations

import datetime
from dataclasses import replace
from decimal import Decimal
from typing import Protocol

from elearn.core.errors import DuplicateError
from elearn.models.enrollment import Enrollment, LessonProgress
from elearn.repos.ordering import newest_first


class EnrollmentRepo(Protocol):
    async def add(self, enrollment: Enrollment) -> None: ...
    async def get(
        self, user_id: str, course_id: str, *, for_update: bool = False
    ) -> Enrollment | None: ...
    async def list_by_user(self, user_id: str) -> list[Enrollment]: ...
    async def list_by_course(self, course_id: str) -> list[Enrollment]: ...
    async def update_progress(
        self,
        user_id: str,
        course_id: str,
        progress: Decimal,
        completed_at: datetime.datetime | None,
    ) -> Enrollment | None: ...
    async def count_by_course(self, course_id: str) -> int: ...

    async def get_lesson_progress(
        self, user_id: str, lesson_id: str
    ) -> LessonProgress | None: ...
    async def upsert_lesson_progress(self, lp: LessonProgress) -> LessonProgress: ...


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._by_key: dict[tuple[str, str], Enrollment] = {}
        self._lesson_progress: dict[tuple[str, str], LessonProgress] = {}

    def snapshot(self) -> tuple[dict, dict]:
        return dict(self._by_key), dict(self._lesson_progress)

    def restore(self, snap: tuple[dict, dict]) -> None:
        self._by_key, self._lesson_progress = snap

    async def add(self, enrollment: Enrollment) -> None:
        key = (enrollment.user_id, enrollment.course_id)
        if key in self._by_key:
            raise DuplicateError("already enrolled in this course")
        self._by_key[key] = enrollment

    async def get(
        self, user_id: str, course_id: str, *, for_update: bool = False
    ) -> Enrollment | None:
        # for_update: the store lock already serialises writers
        return self._by_key.get((user_id, course_id))

    async def list_by_user(self, user_id: str) -> list[Enrollment]:
        mine = [e for e in self._by_key.values() if e.user_id == user_id]
        return newest_first(mine, key=lambda e: e.enrolled_at)

    async def list_by_course(self, course_id: str) -> list[Enrollment]:
        rows = [e for e in self._by_key.values() if e.course_id == course_id]
        return newest_first(rows, key=lambda e: e.enrolled_at)

    async def update_progress(
        self,
        user_id: str,
        course_id: str,
        progress: Decimal,
        completed_at: datetime.datetime | None,
    ) -> Enrollment | None:
        e = self._by_key.get((user_id, course_id))
        if e is None:
            return None
        updated = replace(e, progress=progress, completed_at=completed_at)
        self._by_key[(user_id, course_id)] = updated
        return updated

    async def count_by_course(self, course_id: str) -> int:
        return sum(1 for e in self._by_key.values() if e.course_id == course_id)

    # --- lesson progress ---

    async def get_lesson_progress(
        self, user_id: str, lesson_id: str
    ) -> LessonProgress | None:
        return self._lesson_progress.get((user_id, lesson_id))

    async def upsert_lesson_progress(self, lp: LessonProgress) -> LessonProgress:
        """Insert, or merge into the existing row for (user_id, lesson_id).

        A merge keeps the existing id, the larger watch_time and the first
        completion stamp; completion never reverts.
        """
        key = (lp.user_id, lp.lesson_id)
        existing = self._lesson_progress.get(key)
        if existing is None:
            self._lesson_progress[key] = lp
            return lp
        merged = replace(
            existing,
            watch_time=max(existing.watch_time, lp.watch_time),
            is_completed=existing.is_completed or lp.is_completed,
            completed_at=existing.completed_at or lp.completed_at,
        )
        self._lesson_progress[key] = merged
        return merged
