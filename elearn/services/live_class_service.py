"""Live classes and attendance.

Seats are bounded by max_attendees: only attendees who have not left
count.  Joining twice returns the open attendance record instead of
taking a second seat.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

from elearn.core.errors import CapacityError, NotFoundError, PermissionDenied, ValidationError
from elearn.core.metrics import LIVE_CLASS_JOINS
from elearn.models.base import utcnow
from elearn.models.live_class import LiveClass, LiveClassAttendee
from elearn.models.principal import Principal
from elearn.repos.store import EntityStore
from elearn.services.catalog_service import AUTHOR_ROLES

logger = logging.getLogger(__name__)


async def create_live_class(
    store: EntityStore, principal: Principal, **fields: Any
) -> LiveClass:
    if not principal.has_any_role(AUTHOR_ROLES):
        logger.warning("Rejected live class by non-instructor user=%s", principal.user_id)
        raise PermissionDenied("instructor or admin role required")
    live_class = LiveClass.new(instructor_id=principal.user_id, **fields)
    async with store.transaction():
        if live_class.course_id is not None:
            if await store.courses.get_course(live_class.course_id) is None:
                raise ValidationError("unknown course")
        await store.live_classes.add(live_class)
    logger.info(
        "Scheduled live class id=%s at=%s instructor=%s",
        live_class.id,
        live_class.scheduled_at.isoformat(),
        principal.user_id,
    )
    return live_class


async def list_live_classes(store: EntityStore) -> list[LiveClass]:
    return await store.live_classes.list_all()


async def list_upcoming(
    store: EntityStore, now: datetime.datetime | None = None
) -> list[LiveClass]:
    return await store.live_classes.list_upcoming(now or utcnow())


async def join(
    store: EntityStore, user_id: str, live_class_id: str
) -> tuple[LiveClassAttendee, bool]:
    """Take a seat; returns (attendee, joined_now)."""
    async with store.transaction():
        live_class = await store.live_classes.get(live_class_id, for_update=True)
        if live_class is None:
            raise NotFoundError("live class", live_class_id)

        existing = await store.live_classes.get_open_attendance(live_class_id, user_id)
        if existing is not None:
            LIVE_CLASS_JOINS.labels(result="rejoined").inc()
            return existing, False

        present = await store.live_classes.count_present(live_class_id)
        if present >= live_class.max_attendees:
            LIVE_CLASS_JOINS.labels(result="full").inc()
            logger.warning(
                "Rejected join to full live class=%s user=%s seats=%d",
                live_class_id,
                user_id,
                live_class.max_attendees,
            )
            raise CapacityError("live class is full")

        attendee = LiveClassAttendee.new(live_class_id=live_class_id, user_id=user_id)
        await store.live_classes.add_attendee(attendee)

    LIVE_CLASS_JOINS.labels(result="joined").inc()
    logger.info("Joined live class=%s user=%s", live_class_id, user_id)
    return attendee, True


async def leave(store: EntityStore, user_id: str, live_class_id: str) -> LiveClassAttendee:
    async with store.transaction():
        open_attendance = await store.live_classes.get_open_attendance(
            live_class_id, user_id
        )
        if open_attendance is None:
            raise NotFoundError("attendance", live_class_id)
        closed = await store.live_classes.close_attendance(open_attendance.id, utcnow())
    if closed is None:
        raise NotFoundError("attendance", live_class_id)
    logger.info("Left live class=%s user=%s", live_class_id, user_id)
    return closed
