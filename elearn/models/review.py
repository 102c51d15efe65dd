from __future__ import annotations

import datetime
from dataclasses import dataclass

from elearn.core.errors import ValidationError
from elearn.models.base import new_id, utcnow

MIN_RATING = 1
MAX_RATING = 5


@dataclass(frozen=True, slots=True)
class Review:
    id: str
    course_id: str
    user_id: str
    rating: int  # 1-5
    created_at: datetime.datetime
    comment: str | None = None

    @staticmethod
    def new(
        *, course_id: str, user_id: str, rating: int, comment: str | None = None
    ) -> Review:
        # bool is an int subclass; True must not sneak in as a 1-star review
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError("rating must be an integer")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(
                f"rating must be between {MIN_RATING} and {MAX_RATING}"
            )
        return Review(
            id=new_id(),
            course_id=course_id,
            user_id=user_id,
            rating=rating,
            created_at=utcnow(),
            comment=comment,
        )
