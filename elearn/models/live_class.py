from __future__ import annotations

import datetime
from dataclasses import dataclass

from elearn.core.errors import ValidationError
from elearn.models.base import new_id, require_text, utcnow

DEFAULT_MAX_ATTENDEES = 100


@dataclass(frozen=True, slots=True)
class LiveClass:
    id: str
    title: str
    instructor_id: str
    scheduled_at: datetime.datetime
    duration: int  # minutes
    created_at: datetime.datetime
    description: str | None = None
    course_id: str | None = None
    meeting_url: str | None = None
    # Flipped to True by an external scheduler once scheduled_at passes
    is_active: bool = False
    max_attendees: int = DEFAULT_MAX_ATTENDEES

    @staticmethod
    def new(
        *,
        title: str,
        instructor_id: str,
        scheduled_at: datetime.datetime,
        duration: int,
        description: str | None = None,
        course_id: str | None = None,
        meeting_url: str | None = None,
        max_attendees: int = DEFAULT_MAX_ATTENDEES,
    ) -> LiveClass:
        if duration <= 0:
            raise ValidationError("duration must be > 0 minutes")
        if max_attendees <= 0:
            raise ValidationError("max_attendees must be > 0")
        if scheduled_at.tzinfo is None:
            raise ValidationError("scheduled_at must include a timezone")
        return LiveClass(
            id=new_id(),
            title=require_text("title", title),
            instructor_id=instructor_id,
            scheduled_at=scheduled_at,
            duration=duration,
            created_at=utcnow(),
            description=description,
            course_id=course_id,
            meeting_url=meeting_url,
            max_attendees=max_attendees,
        )


@dataclass(frozen=True, slots=True)
class LiveClassAttendee:
    id: str
    live_class_id: str
    user_id: str
    joined_at: datetime.datetime
    left_at: datetime.datetime | None = None

    @property
    def is_present(self) -> bool:
        return self.left_at is None

    @staticmethod
    def new(*, live_class_id: str, user_id: str) -> LiveClassAttendee:
        return LiveClassAttendee(
            id=new_id(),
            live_class_id=live_class_id,
            user_id=user_id,
            joined_at=utcnow(),
        )
