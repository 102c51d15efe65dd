"""PostgreSQL implementation of AggregateRepo.

Every counter update is one UPDATE statement that reads and writes the
column in place (`SET col = col + n`), so concurrent transactions never
lose an increment.  The rating recompute averages the review table in a
subquery; callers lock the course row first (get_course(for_update=True))
so two reviews cannot average over different snapshots.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from elearn.db.tables import (
    CourseRow,
    DiscussionRow,
    EnrollmentRow,
    LessonProgressRow,
    LessonRow,
    ReviewRow,
)
from elearn.models.enrollment import EnrollmentLoad


class PgAggregateRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def increment_total_enrollments(
        self, course_id: str, by: int = 1
    ) -> int | None:
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course_id, CourseRow.deleted_at.is_(None))
            .values(total_enrollments=CourseRow.total_enrollments + by)
            .returning(CourseRow.total_enrollments)
            .execution_options(synchronize_session=False)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def recompute_rating(self, course_id: str) -> Decimal | None:
        mean = (
            select(func.coalesce(func.round(func.avg(ReviewRow.rating), 2), 0))
            .where(ReviewRow.course_id == course_id)
            .scalar_subquery()
        )
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course_id, CourseRow.deleted_at.is_(None))
            .values(rating=mean)
            .returning(CourseRow.rating)
            .execution_options(synchronize_session=False)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def increment_view_count(self, discussion_id: str) -> int | None:
        stmt = (
            update(DiscussionRow)
            .where(DiscussionRow.id == discussion_id)
            .values(view_count=DiscussionRow.view_count + 1)
            .returning(DiscussionRow.view_count)
            .execution_options(synchronize_session=False)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def increment_reply_count(self, discussion_id: str) -> int | None:
        stmt = (
            update(DiscussionRow)
            .where(DiscussionRow.id == discussion_id)
            .values(reply_count=DiscussionRow.reply_count + 1)
            .returning(DiscussionRow.reply_count)
            .execution_options(synchronize_session=False)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    # --- progress reads ---

    async def enrollment_loads(self, user_id: str) -> list[EnrollmentLoad]:
        """One row per enrollment with the summed minutes of its live lessons."""
        minutes = func.coalesce(func.sum(func.coalesce(LessonRow.duration, 0)), 0)
        stmt = (
            select(
                EnrollmentRow.progress,
                EnrollmentRow.completed_at.is_not(None).label("completed"),
                minutes.label("course_minutes"),
            )
            .select_from(EnrollmentRow)
            .outerjoin(
                LessonRow,
                and_(
                    LessonRow.course_id == EnrollmentRow.course_id,
                    LessonRow.deleted_at.is_(None),
                ),
            )
            .where(EnrollmentRow.user_id == user_id)
            .group_by(EnrollmentRow.id)
        )
        rows = (await self._session.execute(stmt)).all()
        return [
            EnrollmentLoad(
                progress=r.progress,
                completed=bool(r.completed),
                course_minutes=int(r.course_minutes),
            )
            for r in rows
        ]

    async def lesson_completion(self, user_id: str, course_id: str) -> tuple[int, int]:
        """(completed, total) over the course's live lessons for this user."""
        stmt = (
            select(func.count(LessonProgressRow.id), func.count(LessonRow.id))
            .select_from(LessonRow)
            .outerjoin(
                LessonProgressRow,
                and_(
                    LessonProgressRow.lesson_id == LessonRow.id,
                    LessonProgressRow.user_id == user_id,
                    LessonProgressRow.is_completed.is_(True),
                ),
            )
            .where(LessonRow.course_id == course_id, LessonRow.deleted_at.is_(None))
        )
        completed, total = (await self._session.execute(stmt)).one()
        return int(completed), int(total)
