from __future__ import annotations

import datetime

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from elearn.api.dependencies import CurrentUser, StoreDep
from elearn.api.errors import domain_errors
from elearn.models.live_class import DEFAULT_MAX_ATTENDEES, LiveClass, LiveClassAttendee
from elearn.services import live_class_service

router = APIRouter(prefix="/v1/live-classes", tags=["live-classes"])


class LiveClassIn(BaseModel):
    title: str
    scheduled_at: datetime.datetime
    duration: int
    description: str | None = None
    course_id: str | None = None
    meeting_url: str | None = None
    max_attendees: int = DEFAULT_MAX_ATTENDEES


class LiveClassOut(BaseModel):
    id: str
    title: str
    instructor_id: str
    scheduled_at: datetime.datetime
    duration: int
    description: str | None
    course_id: str | None
    meeting_url: str | None
    is_active: bool
    max_attendees: int

    @staticmethod
    def of(lc: LiveClass) -> LiveClassOut:
        return LiveClassOut(
            id=lc.id,
            title=lc.title,
            instructor_id=lc.instructor_id,
            scheduled_at=lc.scheduled_at,
            duration=lc.duration,
            description=lc.description,
            course_id=lc.course_id,
            meeting_url=lc.meeting_url,
            is_active=lc.is_active,
            max_attendees=lc.max_attendees,
        )


class AttendeeOut(BaseModel):
    id: str
    live_class_id: str
    user_id: str
    joined_at: datetime.datetime
    left_at: datetime.datetime | None

    @staticmethod
    def of(a: LiveClassAttendee) -> AttendeeOut:
        return AttendeeOut(
            id=a.id,
            live_class_id=a.live_class_id,
            user_id=a.user_id,
            joined_at=a.joined_at,
            left_at=a.left_at,
        )


@router.get("", response_model=list[LiveClassOut])
async def list_live_classes(store: StoreDep) -> list[LiveClassOut]:
    return [LiveClassOut.of(lc) for lc in await live_class_service.list_live_classes(store)]


@router.get("/upcoming", response_model=list[LiveClassOut])
async def list_upcoming(store: StoreDep) -> list[LiveClassOut]:
    return [LiveClassOut.of(lc) for lc in await live_class_service.list_upcoming(store)]


@router.post("", response_model=LiveClassOut, status_code=status.HTTP_201_CREATED)
async def create_live_class(
    payload: LiveClassIn, principal: CurrentUser, store: StoreDep
) -> LiveClassOut:
    with domain_errors():
        live_class = await live_class_service.create_live_class(
            store, principal, **payload.model_dump()
        )
    return LiveClassOut.of(live_class)


@router.post("/{live_class_id}/join", response_model=AttendeeOut)
async def join(
    live_class_id: str, principal: CurrentUser, store: StoreDep, response: Response
) -> AttendeeOut:
    with domain_errors():
        attendee, joined_now = await live_class_service.join(
            store, principal.user_id, live_class_id
        )
    # 201 for a new seat, 200 when handing back the open attendance
    response.status_code = status.HTTP_201_CREATED if joined_now else status.HTTP_200_OK
    return AttendeeOut.of(attendee)


@router.post("/{live_class_id}/leave", response_model=AttendeeOut)
async def leave(live_class_id: str, principal: CurrentUser, store: StoreDep) -> AttendeeOut:
    with domain_errors():
        attendee = await live_class_service.leave(store, principal.user_id, live_class_id)
    return AttendeeOut.of(attendee)
