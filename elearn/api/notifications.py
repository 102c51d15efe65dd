from __future__ import annotations

import datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from elearn.api.dependencies import CurrentUser, StoreDep
from elearn.api.errors import domain_errors
from elearn.models.notification import Notification
from elearn.services import notification_service

router = APIRouter(prefix="/v1/notifications", tags=["notifications"])


class NotificationOut(BaseModel):
    id: str
    title: str
    message: str
    type: str
    is_read: bool
    metadata: dict[str, Any] | None
    created_at: datetime.datetime

    @staticmethod
    def of(n: Notification) -> NotificationOut:
        return NotificationOut(
            id=n.id,
            title=n.title,
            message=n.message,
            type=n.type,
            is_read=n.is_read,
            metadata=n.metadata,
            created_at=n.created_at,
        )


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    principal: CurrentUser, store: StoreDep
) -> list[NotificationOut]:
    notifications = await notification_service.list_notifications(store, principal.user_id)
    return [NotificationOut.of(n) for n in notifications]


@router.put("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: str, principal: CurrentUser, store: StoreDep
) -> NotificationOut:
    with domain_errors():
        notification = await notification_service.mark_read(
            store, principal.user_id, notification_id
        )
    return NotificationOut.of(notification)
