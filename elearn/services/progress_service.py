"""Per-user learning summary.

    total_courses      number of enrollments
    completed_courses  enrollments with completed_at set
    total_hours        round(sum(course minutes * progress / 100) / 60)
    overall_progress   round(mean(progress)), 0 with no enrollments

Course minutes are the summed durations of the course's live lessons; a
lesson without a duration counts as 0.  Rounding is half-up, so 0.5 -> 1.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from elearn.models.enrollment import EnrollmentLoad, ProgressSummary
from elearn.repos.store import EntityStore

logger = logging.getLogger(__name__)

_HUNDRED = Decimal(100)
_SIXTY = Decimal(60)


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def summarize(loads: Sequence[EnrollmentLoad]) -> ProgressSummary:
    if not loads:
        return ProgressSummary()

    watched_minutes = sum(
        (Decimal(load.course_minutes) * load.progress / _HUNDRED for load in loads),
        Decimal(0),
    )
    mean_progress = sum((load.progress for load in loads), Decimal(0)) / len(loads)
    return ProgressSummary(
        total_courses=len(loads),
        completed_courses=sum(1 for load in loads if load.completed),
        total_hours=round_half_up(watched_minutes / _SIXTY),
        overall_progress=round_half_up(mean_progress),
    )


async def compute_user_progress(store: EntityStore, user_id: str) -> ProgressSummary:
    loads = await store.aggregates.enrollment_loads(user_id)
    summary = summarize(loads)
    logger.debug(
        "Progress user=%s courses=%d hours=%d overall=%d",
        user_id,
        summary.total_courses,
        summary.total_hours,
        summary.overall_progress,
    )
    return summary
