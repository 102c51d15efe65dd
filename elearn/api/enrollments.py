"""Enrollment, lesson completion and progress endpoints."""

from __future__ import annotations

import datetime
from decimal import Decimal

from fastapi import APIRouter, status
from pydantic import BaseModel

from elearn.api.courses import CourseOut
from elearn.api.dependencies import CurrentUser, StoreDep
from elearn.api.errors import domain_errors
from elearn.models.enrollment import Enrollment
from elearn.services import enrollment_service, progress_service

router = APIRouter(prefix="/v1", tags=["enrollments"])


class EnrollIn(BaseModel):
    course_id: str


class ProgressIn(BaseModel):
    progress: Decimal


class LessonCompleteIn(BaseModel):
    watch_time: int = 0


class EnrollmentOut(BaseModel):
    id: str
    user_id: str
    course_id: str
    progress: Decimal
    enrolled_at: datetime.datetime
    completed_at: datetime.datetime | None

    @staticmethod
    def of(e: Enrollment) -> EnrollmentOut:
        return EnrollmentOut(
            id=e.id,
            user_id=e.user_id,
            course_id=e.course_id,
            progress=e.progress,
            enrolled_at=e.enrolled_at,
            completed_at=e.completed_at,
        )


class MyEnrollmentOut(EnrollmentOut):
    course: CourseOut | None


class LessonProgressOut(BaseModel):
    lesson_id: str
    is_completed: bool
    watch_time: int
    completed_at: datetime.datetime | None
    enrollment: EnrollmentOut


class ProgressSummaryOut(BaseModel):
    total_courses: int
    completed_courses: int
    total_hours: int
    overall_progress: int


@router.post(
    "/enrollments", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED
)
async def enroll(payload: EnrollIn, principal: CurrentUser, store: StoreDep) -> EnrollmentOut:
    with domain_errors():
        enrollment = await enrollment_service.enroll(
            store, principal.user_id, payload.course_id
        )
    return EnrollmentOut.of(enrollment)


@router.get("/enrollments/mine", response_model=list[MyEnrollmentOut])
async def list_my_enrollments(
    principal: CurrentUser, store: StoreDep
) -> list[MyEnrollmentOut]:
    rows = await enrollment_service.list_my_enrollments(store, principal.user_id)
    return [
        MyEnrollmentOut(
            **EnrollmentOut.of(row.enrollment).model_dump(),
            course=CourseOut.of(row.course) if row.course is not None else None,
        )
        for row in rows
    ]


@router.put("/enrollments/{course_id}/progress", response_model=EnrollmentOut)
async def update_progress(
    course_id: str, payload: ProgressIn, principal: CurrentUser, store: StoreDep
) -> EnrollmentOut:
    with domain_errors():
        enrollment = await enrollment_service.update_progress(
            store, principal.user_id, course_id, payload.progress
        )
    return EnrollmentOut.of(enrollment)


@router.post("/lessons/{lesson_id}/complete", response_model=LessonProgressOut)
async def complete_lesson(
    lesson_id: str,
    principal: CurrentUser,
    store: StoreDep,
    payload: LessonCompleteIn | None = None,
) -> LessonProgressOut:
    watch_time = payload.watch_time if payload is not None else 0
    with domain_errors():
        result = await enrollment_service.complete_lesson(
            store, principal.user_id, lesson_id, watch_time=watch_time
        )
    lp = result.lesson_progress
    return LessonProgressOut(
        lesson_id=lp.lesson_id,
        is_completed=lp.is_completed,
        watch_time=lp.watch_time,
        completed_at=lp.completed_at,
        enrollment=EnrollmentOut.of(result.enrollment),
    )


@router.get("/progress", response_model=ProgressSummaryOut)
async def progress_summary(principal: CurrentUser, store: StoreDep) -> ProgressSummaryOut:
    with domain_errors():
        summary = await progress_service.compute_user_progress(store, principal.user_id)
    return ProgressSummaryOut(
        total_courses=summary.total_courses,
        completed_courses=summary.completed_courses,
        total_hours=summary.total_hours,
        overall_progress=summary.overall_progress,
    )
