"""Categories, courses and lessons.

Courses and lessons are soft-deleted: `soft_delete_*` stamps deleted_at
and every read here skips stamped rows.  Enrollment and progress rows
keep their references.
"""

from __future__ import annotations

import datetime
from dataclasses import replace
from typing import Any, Protocol

from elearn.core.errors import DuplicateError
from elearn.models.base import utcnow
from elearn.models.course import Category, Course, Lesson
from elearn.repos.ordering import newest_first

# Fields an instructor may edit; rating/total_enrollments are derived
COURSE_EDITABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "thumbnail",
        "price",
        "currency",
        "category_id",
        "level",
        "duration",
        "is_published",
    }
)
LESSON_EDITABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "content",
        "video_url",
        "duration",
        "order",
        "is_preview",
    }
)


class CourseRepo(Protocol):
    async def add_category(self, category: Category) -> None: ...
    async def get_category(self, category_id: str) -> Category | None: ...
    async def list_categories(self) -> list[Category]: ...

    async def add_course(self, course: Course) -> None: ...
    async def get_course(
        self, course_id: str, *, for_update: bool = False
    ) -> Course | None: ...
    async def list_published(self) -> list[Course]: ...
    async def list_by_instructor(self, instructor_id: str) -> list[Course]: ...
    async def update_course(self, course_id: str, **fields: Any) -> Course | None: ...
    async def soft_delete_course(
        self, course_id: str, at: datetime.datetime
    ) -> bool: ...

    async def add_lesson(self, lesson: Lesson) -> None: ...
    async def get_lesson(self, lesson_id: str) -> Lesson | None: ...
    async def list_lessons(self, course_id: str) -> list[Lesson]: ...
    async def update_lesson(self, lesson_id: str, **fields: Any) -> Lesson | None: ...
    async def soft_delete_lesson(
        self, lesson_id: str, at: datetime.datetime
    ) -> bool: ...


def check_editable_fields(fields: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"not updatable: {', '.join(sorted(unknown))}")


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._categories: dict[str, Category] = {}
        self._courses: dict[str, Course] = {}
        self._lessons: dict[str, Lesson] = {}

    def snapshot(self) -> tuple[dict, dict, dict]:
        return dict(self._categories), dict(self._courses), dict(self._lessons)

    def restore(self, snap: tuple[dict, dict, dict]) -> None:
        self._categories, self._courses, self._lessons = snap

    # --- categories ---

    async def add_category(self, category: Category) -> None:
        self._categories[category.id] = category

    async def get_category(self, category_id: str) -> Category | None:
        return self._categories.get(category_id)

    async def list_categories(self) -> list[Category]:
        return sorted(self._categories.values(), key=lambda c: c.name.lower())

    # --- courses ---

    def put_course(self, course: Course) -> None:
        """Overwrite a stored course as-is (aggregate updates)."""
        self._courses[course.id] = course

    async def add_course(self, course: Course) -> None:
        if course.id in self._courses:
            raise DuplicateError("course already exists")
        self._courses[course.id] = course

    async def get_course(
        self, course_id: str, *, for_update: bool = False
    ) -> Course | None:
        # for_update is a no-op here: the store's transaction lock already
        # serialises writers
        c = self._courses.get(course_id)
        if c is None or c.is_deleted:
            return None
        return c

    async def list_published(self) -> list[Course]:
        live = [c for c in self._courses.values() if c.is_published and not c.is_deleted]
        return newest_first(live, key=lambda c: c.created_at)

    async def list_by_instructor(self, instructor_id: str) -> list[Course]:
        mine = [
            c
            for c in self._courses.values()
            if c.instructor_id == instructor_id and not c.is_deleted
        ]
        return newest_first(mine, key=lambda c: c.created_at)

    async def update_course(self, course_id: str, **fields: Any) -> Course | None:
        check_editable_fields(fields, COURSE_EDITABLE_FIELDS)
        c = await self.get_course(course_id)
        if c is None:
            return None
        updated = replace(c, **fields, updated_at=utcnow())
        self._courses[course_id] = updated
        return updated

    async def soft_delete_course(self, course_id: str, at: datetime.datetime) -> bool:
        c = await self.get_course(course_id)
        if c is None:
            return False
        self._courses[course_id] = replace(c, deleted_at=at, updated_at=at)
        return True

    # --- lessons ---

    def _order_taken(self, course_id: str, order: int, *, exclude: str | None) -> bool:
        return any(
            lesson.course_id == course_id
            and lesson.order == order
            and lesson.deleted_at is None
            and lesson.id != exclude
            for lesson in self._lessons.values()
        )

    async def add_lesson(self, lesson: Lesson) -> None:
        if self._order_taken(lesson.course_id, lesson.order, exclude=None):
            raise DuplicateError(f"lesson order {lesson.order} already used in course")
        self._lessons[lesson.id] = lesson

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        lesson = self._lessons.get(lesson_id)
        if lesson is None or lesson.deleted_at is not None:
            return None
        return lesson

    async def list_lessons(self, course_id: str) -> list[Lesson]:
        rows = [
            lesson
            for lesson in self._lessons.values()
            if lesson.course_id == course_id and lesson.deleted_at is None
        ]
        return sorted(rows, key=lambda lesson: lesson.order)

    async def update_lesson(self, lesson_id: str, **fields: Any) -> Lesson | None:
        check_editable_fields(fields, LESSON_EDITABLE_FIELDS)
        lesson = await self.get_lesson(lesson_id)
        if lesson is None:
            return None
        if "order" in fields and self._order_taken(
            lesson.course_id, fields["order"], exclude=lesson_id
        ):
            raise DuplicateError(f"lesson order {fields['order']} already used in course")
        updated = replace(lesson, **fields)
        self._lessons[lesson_id] = updated
        return updated

    async def soft_delete_lesson(self, lesson_id: str, at: datetime.datetime) -> bool:
        lesson = await self.get_lesson(lesson_id)
        if lesson is None:
            return False
        self._lessons[lesson_id] = replace(lesson, deleted_at=at)
        return True
