from __future__ import annotations

import datetime
from dataclasses import dataclass
from decimal import Decimal

from elearn.core.errors import ValidationError
from elearn.models.base import new_id, quantize_2dp, utcnow

PROGRESS_MIN = Decimal("0")
PROGRESS_MAX = Decimal("100")


def validate_progress(value: Decimal | float | int | str) -> Decimal:
    progress = quantize_2dp(value)
    if not PROGRESS_MIN <= progress <= PROGRESS_MAX:
        raise ValidationError("progress must be between 0 and 100")
    return progress


@dataclass(frozen=True, slots=True)
class Enrollment:
    """Links a user to a course they are taking.

    At most one per (user_id, course_id).  `completed_at` is set exactly
    while progress >= 100.
    """

    id: str
    user_id: str
    course_id: str
    enrolled_at: datetime.datetime
    progress: Decimal = Decimal("0.00")
    completed_at: datetime.datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def with_progress(
        self, progress: Decimal, *, now: datetime.datetime | None = None
    ) -> Enrollment:
        """Return a copy at `progress`, applying the completion rule.

        The first crossing of 100 stamps completed_at; staying at 100 keeps
        the original stamp; dropping below 100 clears it.
        """
        progress = validate_progress(progress)
        if progress >= PROGRESS_MAX:
            completed_at = self.completed_at or now or utcnow()
        else:
            completed_at = None
        return Enrollment(
            id=self.id,
            user_id=self.user_id,
            course_id=self.course_id,
            enrolled_at=self.enrolled_at,
            progress=progress,
            completed_at=completed_at,
        )

    @staticmethod
    def new(*, user_id: str, course_id: str) -> Enrollment:
        return Enrollment(
            id=new_id(),
            user_id=user_id,
            course_id=course_id,
            enrolled_at=utcnow(),
        )


@dataclass(frozen=True, slots=True)
class LessonProgress:
    """One row per (user_id, lesson_id)."""

    id: str
    user_id: str
    lesson_id: str
    created_at: datetime.datetime
    is_completed: bool = False
    watch_time: int = 0  # seconds
    completed_at: datetime.datetime | None = None

    @staticmethod
    def new(
        *,
        user_id: str,
        lesson_id: str,
        watch_time: int = 0,
        is_completed: bool = False,
    ) -> LessonProgress:
        if watch_time < 0:
            raise ValidationError("watch_time must be >= 0 seconds")
        now = utcnow()
        return LessonProgress(
            id=new_id(),
            user_id=user_id,
            lesson_id=lesson_id,
            created_at=now,
            is_completed=is_completed,
            watch_time=watch_time,
            completed_at=now if is_completed else None,
        )


@dataclass(frozen=True, slots=True)
class EnrollmentLoad:
    """Per-enrollment input to the progress calculator.

    One row per enrollment: its progress, whether it is completed, and the
    summed duration of the live lessons of its course.
    """

    progress: Decimal
    completed: bool
    course_minutes: int


@dataclass(frozen=True, slots=True)
class ProgressSummary:
    total_courses: int = 0
    completed_courses: int = 0
    total_hours: int = 0
    overall_progress: int = 0
