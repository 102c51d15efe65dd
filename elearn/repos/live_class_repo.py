from __future__ import annotations

import datetime
from dataclasses import replace
from typing import Protocol

from elearn.core.errors import DuplicateError
from elearn.models.live_class import LiveClass, LiveClassAttendee


class LiveClassRepo(Protocol):
    async def add(self, live_class: LiveClass) -> None: ...
    async def get(
        self, live_class_id: str, *, for_update: bool = False
    ) -> LiveClass | None: ...
    async def list_all(self) -> list[LiveClass]: ...
    async def list_upcoming(self, now: datetime.datetime) -> list[LiveClass]: ...

    async def add_attendee(self, attendee: LiveClassAttendee) -> None: ...
    async def get_open_attendance(
        self, live_class_id: str, user_id: str
    ) -> LiveClassAttendee | None: ...
    async def count_present(self, live_class_id: str) -> int: ...
    async def close_attendance(
        self, attendee_id: str, at: datetime.datetime
    ) -> LiveClassAttendee | None: ...
    async def list_attendees(self, live_class_id: str) -> list[LiveClassAttendee]: ...


class InMemoryLiveClassRepo:
    def __init__(self) -> None:
        self._classes: dict[str, LiveClass] = {}
        self._attendees: dict[str, LiveClassAttendee] = {}

    def snapshot(self) -> tuple[dict, dict]:
        return dict(self._classes), dict(self._attendees)

    def restore(self, snap: tuple[dict, dict]) -> None:
        self._classes, self._attendees = snap

    async def add(self, live_class: LiveClass) -> None:
        if live_class.id in self._classes:
            raise DuplicateError("live class already exists")
        self._classes[live_class.id] = live_class

    async def get(
        self, live_class_id: str, *, for_update: bool = False
    ) -> LiveClass | None:
        return self._classes.get(live_class_id)

    async def list_all(self) -> list[LiveClass]:
        return sorted(self._classes.values(), key=lambda c: c.scheduled_at, reverse=True)

    async def list_upcoming(self, now: datetime.datetime) -> list[LiveClass]:
        ahead = [c for c in self._classes.values() if c.scheduled_at > now]
        return sorted(ahead, key=lambda c: c.scheduled_at)

    # --- attendance ---

    async def add_attendee(self, attendee: LiveClassAttendee) -> None:
        if await self.get_open_attendance(attendee.live_class_id, attendee.user_id):
            raise DuplicateError("already attending this live class")
        self._attendees[attendee.id] = attendee

    async def get_open_attendance(
        self, live_class_id: str, user_id: str
    ) -> LiveClassAttendee | None:
        return next(
            (
                a
                for a in self._attendees.values()
                if a.live_class_id == live_class_id
                and a.user_id == user_id
                and a.is_present
            ),
            None,
        )

    async def count_present(self, live_class_id: str) -> int:
        return sum(
            1
            for a in self._attendees.values()
            if a.live_class_id == live_class_id and a.is_present
        )

    async def close_attendance(
        self, attendee_id: str, at: datetime.datetime
    ) -> LiveClassAttendee | None:
        a = self._attendees.get(attendee_id)
        if a is None or not a.is_present:
            return None
        closed = replace(a, left_at=at)
        self._attendees[attendee_id] = closed
        return closed

    async def list_attendees(self, live_class_id: str) -> list[LiveClassAttendee]:
        rows = [a for a in self._attendees.values() if a.live_class_id == live_class_id]
        return sorted(rows, key=lambda a: a.joined_at)
