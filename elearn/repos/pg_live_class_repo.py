"""PostgreSQL implementation of LiveClassRepo."""

from __future__ import annotations

import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from elearn.db.tables import LiveClassAttendeeRow, LiveClassRow
from elearn.models.live_class import LiveClass, LiveClassAttendee
from elearn.repos.pg_common import insert_row


class PgLiveClassRepo:
    """Satisfies the LiveClassRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, live_class: LiveClass) -> None:
        row = LiveClassRow(
            id=live_class.id,
            title=live_class.title,
            description=live_class.description,
            instructor_id=live_class.instructor_id,
            course_id=live_class.course_id,
            scheduled_at=live_class.scheduled_at,
            duration=live_class.duration,
            meeting_url=live_class.meeting_url,
            is_active=live_class.is_active,
            max_attendees=live_class.max_attendees,
            created_at=live_class.created_at,
        )
        await insert_row(self._session, row, duplicate_message="live class already exists")

    async def get(
        self, live_class_id: str, *, for_update: bool = False
    ) -> LiveClass | None:
        stmt = select(LiveClassRow).where(LiveClassRow.id == live_class_id)
        if for_update:
            # Seat check and attendee insert must not interleave
            stmt = stmt.with_for_update()
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_live_class(row)

    async def list_all(self) -> list[LiveClass]:
        stmt = select(LiveClassRow).order_by(LiveClassRow.scheduled_at.desc())
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_live_class(r) for r in rows]

    async def list_upcoming(self, now: datetime.datetime) -> list[LiveClass]:
        stmt = (
            select(LiveClassRow)
            .where(LiveClassRow.scheduled_at > now)
            .order_by(LiveClassRow.scheduled_at.asc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_live_class(r) for r in rows]

    # --- attendance ---

    async def add_attendee(self, attendee: LiveClassAttendee) -> None:
        row = LiveClassAttendeeRow(
            id=attendee.id,
            live_class_id=attendee.live_class_id,
            user_id=attendee.user_id,
            joined_at=attendee.joined_at,
            left_at=attendee.left_at,
        )
        await insert_row(
            self._session, row, duplicate_message="already attending this live class"
        )

    async def get_open_attendance(
        self, live_class_id: str, user_id: str
    ) -> LiveClassAttendee | None:
        stmt = (
            select(LiveClassAttendeeRow)
            .where(
                LiveClassAttendeeRow.live_class_id == live_class_id,
                LiveClassAttendeeRow.user_id == user_id,
                LiveClassAttendeeRow.left_at.is_(None),
            )
            .order_by(LiveClassAttendeeRow.joined_at.desc())
            .limit(1)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_attendee(row)

    async def count_present(self, live_class_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(LiveClassAttendeeRow)
            .where(
                LiveClassAttendeeRow.live_class_id == live_class_id,
                LiveClassAttendeeRow.left_at.is_(None),
            )
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def close_attendance(
        self, attendee_id: str, at: datetime.datetime
    ) -> LiveClassAttendee | None:
        stmt = (
            update(LiveClassAttendeeRow)
            .where(
                LiveClassAttendeeRow.id == attendee_id,
                LiveClassAttendeeRow.left_at.is_(None),
            )
            .values(left_at=at)
            .returning(LiveClassAttendeeRow)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_attendee(row)

    async def list_attendees(self, live_class_id: str) -> list[LiveClassAttendee]:
        stmt = (
            select(LiveClassAttendeeRow)
            .where(LiveClassAttendeeRow.live_class_id == live_class_id)
            .order_by(LiveClassAttendeeRow.joined_at)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_attendee(r) for r in rows]


def _row_to_live_class(row: LiveClassRow) -> LiveClass:
    return LiveClass(
        id=row.id,
        title=row.title,
        instructor_id=row.instructor_id,
        scheduled_at=row.scheduled_at,
        duration=row.duration,
        created_at=row.created_at,
        description=row.description,
        course_id=row.course_id,
        meeting_url=row.meeting_url,
        is_active=row.is_active,
        max_attendees=row.max_attendees,
    )


def _row_to_attendee(row: LiveClassAttendeeRow) -> LiveClassAttendee:
    return LiveClassAttendee(
        id=row.id,
        live_class_id=row.live_class_id,
        user_id=row.user_id,
        joined_at=row.joined_at,
        left_at=row.left_at,
    )
