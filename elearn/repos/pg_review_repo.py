"""PostgreSQL implementation of ReviewRepo."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from elearn.db.tables import ReviewRow
from elearn.models.review import Review
from elearn.repos.pg_common import insert_row


class PgReviewRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, review: Review) -> None:
        row = ReviewRow(
            id=review.id,
            course_id=review.course_id,
            user_id=review.user_id,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
        )
        await insert_row(self._session, row, duplicate_message="review already exists")

    async def list_by_course(self, course_id: str) -> list[Review]:
        stmt = (
            select(ReviewRow)
            .where(ReviewRow.course_id == course_id)
            .order_by(ReviewRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_review(r) for r in rows]

    async def count_by_course(self, course_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(ReviewRow)
            .where(ReviewRow.course_id == course_id)
        )
        return (await self._session.execute(stmt)).scalar_one()


def _row_to_review(row: ReviewRow) -> Review:
    return Review(
        id=row.id,
        course_id=row.course_id,
        user_id=row.user_id,
        rating=row.rating,
        created_at=row.created_at,
        comment=row.comment,
    )
