"""PostgreSQL implementation of CourseRepo."""

from __future__ import annotations

import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from elearn.db.tables import CategoryRow, CourseRow, LessonRow
from elearn.models.base import utcnow
from elearn.models.course import Category, Course, Lesson
from elearn.repos.course_repo import (
    COURSE_EDITABLE_FIELDS,
    LESSON_EDITABLE_FIELDS,
    check_editable_fields,
)
from elearn.repos.pg_common import insert_row, translate_integrity_error

_LESSON_ORDER_TAKEN = "lesson order already used in course"


class PgCourseRepo:
    """Satisfies the CourseRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- categories ---

    async def add_category(self, category: Category) -> None:
        row = CategoryRow(
            id=category.id,
            name=category.name,
            description=category.description,
            created_at=category.created_at,
        )
        await insert_row(self._session, row, duplicate_message="category already exists")

    async def get_category(self, category_id: str) -> Category | None:
        row = await self._session.get(CategoryRow, category_id)
        if row is None:
            return None
        return _row_to_category(row)

    async def list_categories(self) -> list[Category]:
        stmt = select(CategoryRow).order_by(CategoryRow.name)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_category(r) for r in rows]

    # --- courses ---

    async def add_course(self, course: Course) -> None:
        row = CourseRow(
            id=course.id,
            title=course.title,
            description=course.description,
            thumbnail=course.thumbnail,
            price=course.price,
            currency=course.currency,
            category_id=course.category_id,
            instructor_id=course.instructor_id,
            level=course.level,
            duration=course.duration,
            is_published=course.is_published,
            rating=course.rating,
            total_enrollments=course.total_enrollments,
            created_at=course.created_at,
            updated_at=course.updated_at,
        )
        await insert_row(self._session, row, duplicate_message="course already exists")

    async def get_course(
        self, course_id: str, *, for_update: bool = False
    ) -> Course | None:
        stmt = select(CourseRow).where(
            CourseRow.id == course_id, CourseRow.deleted_at.is_(None)
        ).execution_options(populate_existing=True)
        if for_update:
            # Serialises writers that recompute this course's aggregates
            stmt = stmt.with_for_update()
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_course(row)

    async def list_published(self) -> list[Course]:
        stmt = (
            select(CourseRow)
            .where(CourseRow.is_published.is_(True), CourseRow.deleted_at.is_(None))
            .order_by(CourseRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def list_by_instructor(self, instructor_id: str) -> list[Course]:
        stmt = (
            select(CourseRow)
            .where(
                CourseRow.instructor_id == instructor_id,
                CourseRow.deleted_at.is_(None),
            )
            .order_by(CourseRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def update_course(self, course_id: str, **fields: Any) -> Course | None:
        check_editable_fields(fields, COURSE_EDITABLE_FIELDS)
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course_id, CourseRow.deleted_at.is_(None))
            .values(**fields, updated_at=utcnow())
            .returning(CourseRow)
        )
        try:
            async with self._session.begin_nested():
                row = (await self._session.execute(stmt)).scalar_one_or_none()
        except IntegrityError as exc:
            raise translate_integrity_error(exc, "course already exists") from None
        if row is None:
            return None
        return _row_to_course(row)

    async def soft_delete_course(self, course_id: str, at: datetime.datetime) -> bool:
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course_id, CourseRow.deleted_at.is_(None))
            .values(deleted_at=at, updated_at=at)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    # --- lessons ---

    async def add_lesson(self, lesson: Lesson) -> None:
        row = LessonRow(
            id=lesson.id,
            course_id=lesson.course_id,
            title=lesson.title,
            description=lesson.description,
            content=lesson.content,
            video_url=lesson.video_url,
            duration=lesson.duration,
            order=lesson.order,
            is_preview=lesson.is_preview,
            created_at=lesson.created_at,
        )
        await insert_row(self._session, row, duplicate_message=_LESSON_ORDER_TAKEN)

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        stmt = select(LessonRow).where(
            LessonRow.id == lesson_id, LessonRow.deleted_at.is_(None)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_lesson(row)

    async def list_lessons(self, course_id: str) -> list[Lesson]:
        stmt = (
            select(LessonRow)
            .where(LessonRow.course_id == course_id, LessonRow.deleted_at.is_(None))
            .order_by(LessonRow.order)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_lesson(r) for r in rows]

    async def update_lesson(self, lesson_id: str, **fields: Any) -> Lesson | None:
        check_editable_fields(fields, LESSON_EDITABLE_FIELDS)
        if not fields:
            return await self.get_lesson(lesson_id)
        stmt = (
            update(LessonRow)
            .where(LessonRow.id == lesson_id, LessonRow.deleted_at.is_(None))
            .values(**fields)
            .returning(LessonRow)
        )
        try:
            async with self._session.begin_nested():
                row = (await self._session.execute(stmt)).scalar_one_or_none()
        except IntegrityError as exc:
            raise translate_integrity_error(exc, _LESSON_ORDER_TAKEN) from None
        if row is None:
            return None
        return _row_to_lesson(row)

    async def soft_delete_lesson(self, lesson_id: str, at: datetime.datetime) -> bool:
        stmt = (
            update(LessonRow)
            .where(LessonRow.id == lesson_id, LessonRow.deleted_at.is_(None))
            .values(deleted_at=at)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0


def _row_to_category(row: CategoryRow) -> Category:
    return Category(
        id=row.id,
        name=row.name,
        created_at=row.created_at,
        description=row.description,
    )


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        description=row.description,
        price=row.price,
        level=row.level,
        created_at=row.created_at,
        updated_at=row.updated_at,
        currency=row.currency,
        thumbnail=row.thumbnail,
        category_id=row.category_id,
        instructor_id=row.instructor_id,
        duration=row.duration,
        is_published=row.is_published,
        rating=row.rating,
        total_enrollments=row.total_enrollments,
        deleted_at=row.deleted_at,
    )


def _row_to_lesson(row: LessonRow) -> Lesson:
    return Lesson(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        order=row.order,
        created_at=row.created_at,
        description=row.description,
        content=row.content,
        video_url=row.video_url,
        duration=row.duration,
        is_preview=row.is_preview,
        deleted_at=row.deleted_at,
    )
