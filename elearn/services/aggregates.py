"""Derived-counter maintenance.

Each function runs one atomic store primitive and must be called inside
the same `store.transaction()` as the write it accounts for:

    enrollment insert  -> course.total_enrollments += 1
    review insert      -> course.rating = round(mean(ratings), 2)
    discussion fetch   -> discussion.view_count += 1
    reply insert       -> discussion.reply_count += 1

If the primitive finds no parent row or the database raises, a
ConsistencyError propagates and the enclosing transaction rolls back the
source write with it, so a counter never drifts from its child rows.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from decimal import Decimal
from typing import TypeVar

from elearn.core.errors import ConsistencyError, DomainError
from elearn.core.metrics import AGGREGATE_UPDATE_FAILURES
from elearn.repos.store import EntityStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _apply(aggregate: str, parent_id: str, op: Awaitable[T | None]) -> T:
    try:
        value = await op
    except DomainError:
        raise
    except Exception:
        AGGREGATE_UPDATE_FAILURES.labels(aggregate=aggregate).inc()
        logger.exception("Aggregate update failed aggregate=%s id=%s", aggregate, parent_id)
        raise ConsistencyError(f"could not update {aggregate}; retry") from None
    if value is None:
        AGGREGATE_UPDATE_FAILURES.labels(aggregate=aggregate).inc()
        logger.error("Aggregate parent missing aggregate=%s id=%s", aggregate, parent_id)
        raise ConsistencyError(f"could not update {aggregate}; retry")
    return value


async def record_enrollment(store: EntityStore, course_id: str) -> int:
    return await _apply(
        "total_enrollments",
        course_id,
        store.aggregates.increment_total_enrollments(course_id),
    )


async def record_review(store: EntityStore, course_id: str) -> Decimal:
    return await _apply("rating", course_id, store.aggregates.recompute_rating(course_id))


async def record_view(store: EntityStore, discussion_id: str) -> int:
    return await _apply(
        "view_count",
        discussion_id,
        store.aggregates.increment_view_count(discussion_id),
    )


async def record_reply(store: EntityStore, discussion_id: str) -> int:
    return await _apply(
        "reply_count",
        discussion_id,
        store.aggregates.increment_reply_count(discussion_id),
    )
