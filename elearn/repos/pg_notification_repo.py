"""PostgreSQL implementation of NotificationRepo."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from elearn.db.tables import NotificationRow
from elearn.models.notification import Notification
from elearn.repos.pg_common import insert_row


class PgNotificationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, notification: Notification) -> None:
        row = NotificationRow(
            id=notification.id,
            user_id=notification.user_id,
            title=notification.title,
            message=notification.message,
            type=notification.type,
            is_read=notification.is_read,
            metadata_json=notification.metadata,
            created_at=notification.created_at,
        )
        await insert_row(
            self._session, row, duplicate_message="notification already exists"
        )

    async def get(self, notification_id: str) -> Notification | None:
        row = await self._session.get(NotificationRow, notification_id)
        if row is None:
            return None
        return _row_to_notification(row)

    async def list_by_user(self, user_id: str) -> list[Notification]:
        stmt = (
            select(NotificationRow)
            .where(NotificationRow.user_id == user_id)
            .order_by(NotificationRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_notification(r) for r in rows]

    async def mark_read(self, notification_id: str) -> Notification | None:
        stmt = (
            update(NotificationRow)
            .where(NotificationRow.id == notification_id)
            .values(is_read=True)
            .returning(NotificationRow)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_notification(row)


def _row_to_notification(row: NotificationRow) -> Notification:
    return Notification(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        message=row.message,
        type=row.type,
        created_at=row.created_at,
        is_read=row.is_read,
        metadata=row.metadata_json,
    )
