from __future__ import annotations

import logging
from dataclasses import dataclass

from elearn.core.errors import ValidationError
from elearn.core.metrics import REVIEWS_SUBMITTED
from elearn.models.review import Review
from elearn.models.user import User
from elearn.repos.store import EntityStore
from elearn.services import aggregates

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReviewWithAuthor:
    review: Review
    author: User | None


async def submit_review(
    store: EntityStore,
    user_id: str,
    course_id: str,
    *,
    rating: int,
    comment: str | None = None,
) -> Review:
    """Store a review and fold it into the course rating atomically.

    The course row is locked first, so concurrent reviews recompute the
    mean one after another and the last one sees every rating.
    """
    review = Review.new(course_id=course_id, user_id=user_id, rating=rating, comment=comment)
    async with store.transaction():
        course = await store.courses.get_course(course_id, for_update=True)
        if course is None:
            logger.warning("Rejected review of unknown course=%s user=%s", course_id, user_id)
            raise ValidationError("unknown course")
        await store.reviews.add(review)
        new_rating = await aggregates.record_review(store, course_id)

    REVIEWS_SUBMITTED.labels(rating=str(review.rating)).inc()
    logger.info(
        "Review submitted course=%s user=%s rating=%d course_rating=%s",
        course_id,
        user_id,
        review.rating,
        new_rating,
    )
    return review


async def list_reviews(store: EntityStore, course_id: str) -> list[ReviewWithAuthor]:
    out = []
    for review in await store.reviews.list_by_course(course_id):
        out.append(
            ReviewWithAuthor(review=review, author=await store.users.get_by_id(review.user_id))
        )
    return out
