from __future__ import annotations

import datetime
from dataclasses import dataclass
from decimal import Decimal

from elearn.core.errors import ValidationError
from elearn.models.base import (
    new_id,
    quantize_2dp,
    require_choice,
    require_text,
    utcnow,
)

COURSE_LEVELS = ("beginner", "intermediate", "advanced")


def non_negative_minutes(field: str, value: int | None) -> int | None:
    if value is not None and value < 0:
        raise ValidationError(f"{field} must be >= 0 minutes")
    return value


def normalize_price(value: Decimal | float | str) -> Decimal:
    price = quantize_2dp(value)
    if price < 0:
        raise ValidationError("price must be >= 0")
    return price


def normalize_currency(value: str) -> str:
    if len(value) != 3 or not value.isalpha():
        raise ValidationError("currency must be a 3-letter code")
    return value.upper()


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    created_at: datetime.datetime
    description: str | None = None

    @staticmethod
    def new(*, name: str, description: str | None = None) -> Category:
        return Category(
            id=new_id(),
            name=require_text("name", name),
            created_at=utcnow(),
            description=description,
        )


@dataclass(frozen=True, slots=True)
class Course:
    """A catalog entry.

    `rating` and `total_enrollments` are derived: only the aggregate
    maintainer writes them.  `deleted_at` marks a soft delete; enrollments
    keep pointing at a deleted course.
    """

    id: str
    title: str
    description: str
    price: Decimal
    level: str  # beginner|intermediate|advanced
    created_at: datetime.datetime
    updated_at: datetime.datetime
    currency: str = "INR"
    thumbnail: str | None = None
    category_id: str | None = None
    instructor_id: str | None = None
    duration: int | None = None  # minutes
    is_published: bool = False
    rating: Decimal = Decimal("0.00")
    total_enrollments: int = 0
    deleted_at: datetime.datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def price_minor_units(self) -> int:
        """Price in the currency's smallest unit (paise, cents)."""
        return int(self.price * 100)

    @staticmethod
    def new(
        *,
        title: str,
        description: str,
        price: Decimal | float | str,
        level: str,
        currency: str = "INR",
        thumbnail: str | None = None,
        category_id: str | None = None,
        instructor_id: str | None = None,
        duration: int | None = None,
        is_published: bool = False,
    ) -> Course:
        now = utcnow()
        return Course(
            id=new_id(),
            title=require_text("title", title),
            description=require_text("description", description),
            price=normalize_price(price),
            level=require_choice("level", level, COURSE_LEVELS),
            created_at=now,
            updated_at=now,
            currency=normalize_currency(currency),
            thumbnail=thumbnail,
            category_id=category_id,
            instructor_id=instructor_id,
            duration=non_negative_minutes("duration", duration),
            is_published=is_published,
        )


@dataclass(frozen=True, slots=True)
class Lesson:
    id: str
    course_id: str
    title: str
    order: int  # unique within a course
    created_at: datetime.datetime
    description: str | None = None
    content: str | None = None
    video_url: str | None = None
    duration: int | None = None  # minutes; None counts as 0
    is_preview: bool = False
    deleted_at: datetime.datetime | None = None

    @property
    def minutes(self) -> int:
        return self.duration or 0

    @staticmethod
    def new(
        *,
        course_id: str,
        title: str,
        order: int,
        description: str | None = None,
        content: str | None = None,
        video_url: str | None = None,
        duration: int | None = None,
        is_preview: bool = False,
    ) -> Lesson:
        if order < 0:
            raise ValidationError("order must be >= 0")
        return Lesson(
            id=new_id(),
            course_id=course_id,
            title=require_text("title", title),
            order=order,
            created_at=utcnow(),
            description=description,
            content=content,
            video_url=video_url,
            duration=non_negative_minutes("duration", duration),
            is_preview=is_preview,
        )
