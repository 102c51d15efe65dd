from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from elearn.core.errors import DuplicateError, NotFoundError, ValidationError
from elearn.core.metrics import ENROLLMENTS_CREATED
from elearn.models.base import quantize_2dp
from elearn.models.course import Course
from elearn.models.enrollment import Enrollment, LessonProgress, validate_progress
from elearn.models.principal import Principal
from elearn.repos.store import EntityStore
from elearn.services import aggregates
from elearn.services.catalog_service import get_course, get_lesson, require_course_owner

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EnrollmentWithCourse:
    enrollment: Enrollment
    course: Course | None  # None once the course has been deleted


@dataclass(frozen=True, slots=True)
class LessonCompletion:
    lesson_progress: LessonProgress
    enrollment: Enrollment


async def _enrollable_course(store: EntityStore, user_id: str, course_id: str) -> Course:
    course = await store.courses.get_course(course_id)
    if course is None or not course.is_published:
        logger.warning(
            "Rejected enrollment in unavailable course=%s user=%s", course_id, user_id
        )
        raise ValidationError("course is not available for enrollment")
    return course


async def enroll(store: EntityStore, user_id: str, course_id: str) -> Enrollment:
    """Enroll a user in a published course.

    A second enrollment in the same course is rejected with DuplicateError.
    The course's total_enrollments moves in the same transaction.
    """
    async with store.transaction():
        await _enrollable_course(store, user_id, course_id)
        enrollment = Enrollment.new(user_id=user_id, course_id=course_id)
        try:
            await store.enrollments.add(enrollment)
        except DuplicateError:
            logger.warning("Rejected duplicate enrollment user=%s course=%s", user_id, course_id)
            raise
        total = await aggregates.record_enrollment(store, course_id)

    ENROLLMENTS_CREATED.labels(source="direct").inc()
    logger.info(
        "Enrolled user=%s course=%s total_enrollments=%d", user_id, course_id, total
    )
    return enrollment


async def enroll_after_purchase(
    store: EntityStore, user_id: str, course_id: str
) -> tuple[Enrollment, bool]:
    """Idempotent variant for paid checkouts: returns (enrollment, created).

    Payment confirmations get retried, so an existing enrollment is handed
    back instead of raising.
    """
    async with store.transaction():
        existing = await store.enrollments.get(user_id, course_id)
        if existing is not None:
            return existing, False
        await _enrollable_course(store, user_id, course_id)
        enrollment = Enrollment.new(user_id=user_id, course_id=course_id)
        try:
            await store.enrollments.add(enrollment)
        except DuplicateError:
            # Lost a race with a parallel confirmation of the same purchase
            existing = await store.enrollments.get(user_id, course_id)
            if existing is None:
                raise
            return existing, False
        await aggregates.record_enrollment(store, course_id)

    ENROLLMENTS_CREATED.labels(source="purchase").inc()
    logger.info("Enrolled user=%s course=%s via purchase", user_id, course_id)
    return enrollment, True


async def list_my_enrollments(
    store: EntityStore, user_id: str
) -> list[EnrollmentWithCourse]:
    out = []
    for e in await store.enrollments.list_by_user(user_id):
        out.append(
            EnrollmentWithCourse(
                enrollment=e, course=await store.courses.get_course(e.course_id)
            )
        )
    return out


async def list_course_enrollments(
    store: EntityStore, principal: Principal, course_id: str
) -> list[Enrollment]:
    course = await get_course(store, course_id)
    require_course_owner(principal, course)
    return await store.enrollments.list_by_course(course_id)


async def update_progress(
    store: EntityStore,
    user_id: str,
    course_id: str,
    progress: Decimal | float | int | str,
) -> Enrollment:
    progress = validate_progress(progress)
    async with store.transaction():
        current = await store.enrollments.get(user_id, course_id, for_update=True)
        if current is None:
            raise NotFoundError("enrollment", course_id)
        target = current.with_progress(progress)
        updated = await store.enrollments.update_progress(
            user_id, course_id, target.progress, target.completed_at
        )
    if updated is None:
        raise NotFoundError("enrollment", course_id)
    if updated.is_completed and not current.is_completed:
        logger.info("Completed course user=%s course=%s", user_id, course_id)
    return updated


async def complete_lesson(
    store: EntityStore, user_id: str, lesson_id: str, *, watch_time: int = 0
) -> LessonCompletion:
    """Mark a lesson completed and recompute the course progress from it.

    progress = completed live lessons / live lessons * 100
    """
    async with store.transaction():
        lesson = await get_lesson(store, lesson_id)
        current = await store.enrollments.get(
            user_id, lesson.course_id, for_update=True
        )
        if current is None:
            logger.warning(
                "Rejected lesson completion without enrollment user=%s lesson=%s",
                user_id,
                lesson_id,
            )
            raise ValidationError("not enrolled in this lesson's course")

        lp = await store.enrollments.upsert_lesson_progress(
            LessonProgress.new(
                user_id=user_id,
                lesson_id=lesson_id,
                watch_time=watch_time,
                is_completed=True,
            )
        )
        completed, total = await store.aggregates.lesson_completion(
            user_id, lesson.course_id
        )
        progress = (
            quantize_2dp(Decimal(completed) * 100 / total) if total else Decimal("0.00")
        )
        target = current.with_progress(progress)
        updated = await store.enrollments.update_progress(
            user_id, lesson.course_id, target.progress, target.completed_at
        )
    if updated is None:
        raise NotFoundError("enrollment", lesson.course_id)
    logger.info(
        "Completed lesson user=%s lesson=%s progress=%s (%d/%d)",
        user_id,
        lesson_id,
        updated.progress,
        completed,
        total,
    )
    return LessonCompletion(lesson_progress=lp, enrollment=updated)
