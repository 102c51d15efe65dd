"""PostgreSQL implementation of EnrollmentRepo."""

from __future__ import annotations

import datetime
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from elearn.db.tables import EnrollmentRow, LessonProgressRow
from elearn.models.enrollment import Enrollment, LessonProgress
from elearn.repos.pg_common import insert_row


class PgEnrollmentRepo:
    """Satisfies the EnrollmentRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, enrollment: Enrollment) -> None:
        row = EnrollmentRow(
            id=enrollment.id,
            user_id=enrollment.user_id,
            course_id=enrollment.course_id,
            progress=enrollment.progress,
            enrolled_at=enrollment.enrolled_at,
            completed_at=enrollment.completed_at,
        )
        await insert_row(
            self._session, row, duplicate_message="already enrolled in this course"
        )

    async def get(
        self, user_id: str, course_id: str, *, for_update: bool = False
    ) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(
            EnrollmentRow.user_id == user_id, EnrollmentRow.course_id == course_id
        ).execution_options(populate_existing=True)
        if for_update:
            # Serialises progress writers for this enrollment
            stmt = stmt.with_for_update()
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_enrollment(row)

    async def list_by_user(self, user_id: str) -> list[Enrollment]:
        stmt = (
            select(EnrollmentRow)
            .where(EnrollmentRow.user_id == user_id)
            .order_by(EnrollmentRow.enrolled_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_enrollment(r) for r in rows]

    async def list_by_course(self, course_id: str) -> list[Enrollment]:
        stmt = (
            select(EnrollmentRow)
            .where(EnrollmentRow.course_id == course_id)
            .order_by(EnrollmentRow.enrolled_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_enrollment(r) for r in rows]

    async def update_progress(
        self,
        user_id: str,
        course_id: str,
        progress: Decimal,
        completed_at: datetime.datetime | None,
    ) -> Enrollment | None:
        stmt = (
            update(EnrollmentRow)
            .where(
                EnrollmentRow.user_id == user_id,
                EnrollmentRow.course_id == course_id,
            )
            .values(progress=progress, completed_at=completed_at)
            .returning(EnrollmentRow)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_enrollment(row)

    async def count_by_course(self, course_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(EnrollmentRow)
            .where(EnrollmentRow.course_id == course_id)
        )
        return (await self._session.execute(stmt)).scalar_one()

    # --- lesson progress ---

    async def get_lesson_progress(
        self, user_id: str, lesson_id: str
    ) -> LessonProgress | None:
        stmt = select(LessonProgressRow).where(
            LessonProgressRow.user_id == user_id,
            LessonProgressRow.lesson_id == lesson_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_lesson_progress(row)

    async def upsert_lesson_progress(self, lp: LessonProgress) -> LessonProgress:
        """INSERT ... ON CONFLICT (user_id, lesson_id) DO UPDATE.

        Keeps the larger watch_time and the first completion stamp.
        """
        insert_stmt = pg_insert(LessonProgressRow).values(
            id=lp.id,
            user_id=lp.user_id,
            lesson_id=lp.lesson_id,
            is_completed=lp.is_completed,
            watch_time=lp.watch_time,
            completed_at=lp.completed_at,
            created_at=lp.created_at,
        )
        excluded = insert_stmt.excluded
        stmt = (
            insert_stmt.on_conflict_do_update(
                constraint="uq_lesson_progress_user_lesson",
                set_={
                    "watch_time": func.greatest(
                        LessonProgressRow.watch_time, excluded.watch_time
                    ),
                    "is_completed": or_(
                        LessonProgressRow.is_completed, excluded.is_completed
                    ),
                    "completed_at": func.coalesce(
                        LessonProgressRow.completed_at, excluded.completed_at
                    ),
                },
            )
            .returning(LessonProgressRow)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one()
        return _row_to_lesson_progress(row)


def _row_to_enrollment(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        enrolled_at=row.enrolled_at,
        progress=row.progress,
        completed_at=row.completed_at,
    )


def _row_to_lesson_progress(row: LessonProgressRow) -> LessonProgress:
    return LessonProgress(
        id=row.id,
        user_id=row.user_id,
        lesson_id=row.lesson_id,
        created_at=row.created_at,
        is_completed=row.is_completed,
        watch_time=row.watch_time,
        completed_at=row.completed_at,
    )
