from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from elearn.models.notification import Notification
from elearn.repos.ordering import newest_first


class NotificationRepo(Protocol):
    async def add(self, notification: Notification) -> None: ...
    async def get(self, notification_id: str) -> Notification | None: ...
    async def list_by_user(self, user_id: str) -> list[Notification]: ...
    async def mark_read(self, notification_id: str) -> Notification | None: ...


class InMemoryNotificationRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Notification] = {}

    def snapshot(self) -> dict[str, Notification]:
        return dict(self._by_id)

    def restore(self, snap: dict[str, Notification]) -> None:
        self._by_id = snap

    async def add(self, notification: Notification) -> None:
        self._by_id[notification.id] = notification

    async def get(self, notification_id: str) -> Notification | None:
        return self._by_id.get(notification_id)

    async def list_by_user(self, user_id: str) -> list[Notification]:
        mine = [n for n in self._by_id.values() if n.user_id == user_id]
        return newest_first(mine, key=lambda n: n.created_at)

    async def mark_read(self, notification_id: str) -> Notification | None:
        n = self._by_id.get(notification_id)
        if n is None:
            return None
        updated = replace(n, is_read=True)
        self._by_id[notification_id] = updated
        return updated
