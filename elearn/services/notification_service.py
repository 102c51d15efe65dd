from __future__ import annotations

import logging
from typing import Any

from elearn.core.errors import NotFoundError
from elearn.models.notification import Notification
from elearn.repos.store import EntityStore

logger = logging.getLogger(__name__)

ENROLLMENT_SUCCESS_TITLE = "Course Enrollment Successful"


async def notify(
    store: EntityStore,
    user_id: str,
    *,
    title: str,
    message: str,
    type: str,
    metadata: dict[str, Any] | None = None,
) -> Notification:
    notification = Notification.new(
        user_id=user_id, title=title, message=message, type=type, metadata=metadata
    )
    await store.notifications.add(notification)
    logger.info("Notification id=%s user=%s type=%s", notification.id, user_id, type)
    return notification


async def list_notifications(store: EntityStore, user_id: str) -> list[Notification]:
    return await store.notifications.list_by_user(user_id)


async def mark_read(
    store: EntityStore, user_id: str, notification_id: str
) -> Notification:
    """Mark one of the caller's notifications read.

    Someone else's notification is reported as missing, not forbidden, so
    ids cannot be probed.
    """
    async with store.transaction():
        notification = await store.notifications.get(notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotFoundError("notification", notification_id)
        updated = await store.notifications.mark_read(notification_id)
    if updated is None:
        raise NotFoundError("notification", notification_id)
    return updated
