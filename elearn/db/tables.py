"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in elearn/models/.
Repositories convert between rows and dataclasses; nothing outside
elearn/repos/pg_* touches a Row class.

Ids and timestamps are always supplied by the application (see
elearn.models.base), so no column relies on a server-side default for
them.  Derived counters default to 0 so a hand-written INSERT cannot
leave them NULL.
"""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from elearn.db.engine import Base

_ID = String(36)
# Identity-provider subjects are not UUIDs ("auth0|abc", "google-oauth2|123")
_USER_ID = String(255)


def _ts(nullable: bool = False) -> Mapped[Any]:
    return mapped_column(DateTime(timezone=True), nullable=nullable)


# --- People and catalog ---


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(_USER_ID, primary_key=True)
    email: Mapped[str | None] = mapped_column(String(320), unique=True, nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(
        String(32), nullable=False, default="learner"
    )  # learner|instructor|admin
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime.datetime] = _ts()
    updated_at: Mapped[datetime.datetime] = _ts()


class CategoryRow(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime.datetime] = _ts()


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    thumbnail: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")
    category_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("categories.id"), nullable=True, index=True
    )
    instructor_id: Mapped[str | None] = mapped_column(
        _USER_ID, ForeignKey("users.id"), nullable=True, index=True
    )
    level: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # beginner|intermediate|advanced
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rating: Mapped[Decimal] = mapped_column(
        Numeric(3, 2), nullable=False, default=Decimal("0.00")
    )
    total_enrollments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime.datetime] = _ts()
    updated_at: Mapped[datetime.datetime] = _ts()
    deleted_at: Mapped[datetime.datetime | None] = _ts(nullable=True)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_courses_price_non_negative"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_courses_rating_range"),
    )


class LessonRow(Base):
    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    course_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("courses.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    is_preview: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime.datetime] = _ts()
    deleted_at: Mapped[datetime.datetime | None] = _ts(nullable=True)

    __table_args__ = (
        # Order is unique among live lessons; a soft-deleted lesson frees its slot
        Index(
            "uq_lessons_course_order_live",
            "course_id",
            "order",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )


# --- Learning ---


class EnrollmentRow(Base):
    __tablename__ = "enrollments"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(
        _USER_ID, ForeignKey("users.id"), nullable=False, index=True
    )
    course_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("courses.id"), nullable=False, index=True
    )
    progress: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0.00")
    )
    enrolled_at: Mapped[datetime.datetime] = _ts()
    completed_at: Mapped[datetime.datetime | None] = _ts(nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
        CheckConstraint(
            "progress >= 0 AND progress <= 100", name="ck_enrollments_progress_range"
        ),
    )


class LessonProgressRow(Base):
    __tablename__ = "lesson_progress"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(
        _USER_ID, ForeignKey("users.id"), nullable=False, index=True
    )
    lesson_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("lessons.id"), nullable=False, index=True
    )
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    watch_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_at: Mapped[datetime.datetime | None] = _ts(nullable=True)
    created_at: Mapped[datetime.datetime] = _ts()

    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_lesson_progress_user_lesson"),
    )


# --- Live classes ---


class LiveClassRow(Base):
    __tablename__ = "live_classes"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructor_id: Mapped[str] = mapped_column(
        _USER_ID, ForeignKey("users.id"), nullable=False, index=True
    )
    course_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("courses.id"), nullable=True, index=True
    )
    scheduled_at: Mapped[datetime.datetime] = _ts()
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    meeting_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_attendees: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    created_at: Mapped[datetime.datetime] = _ts()


class LiveClassAttendeeRow(Base):
    __tablename__ = "live_class_attendees"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    live_class_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("live_classes.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        _USER_ID, ForeignKey("users.id"), nullable=False, index=True
    )
    joined_at: Mapped[datetime.datetime] = _ts()
    left_at: Mapped[datetime.datetime | None] = _ts(nullable=True)


# --- Forum ---


class ForumCategoryRow(Base):
    __tablename__ = "forum_categories"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime.datetime] = _ts()


class DiscussionRow(Base):
    __tablename__ = "discussions"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(
        _USER_ID, ForeignKey("users.id"), nullable=False, index=True
    )
    category_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("forum_categories.id"), nullable=False, index=True
    )
    course_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("courses.id"), nullable=True, index=True
    )
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reply_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime.datetime] = _ts()
    updated_at: Mapped[datetime.datetime] = _ts()


class DiscussionReplyRow(Base):
    __tablename__ = "discussion_replies"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    discussion_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("discussions.id"), nullable=False, index=True
    )
    author_id: Mapped[str] = mapped_column(
        _USER_ID, ForeignKey("users.id"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    parent_reply_id: Mapped[str | None] = mapped_column(
        _ID, ForeignKey("discussion_replies.id"), nullable=True
    )
    created_at: Mapped[datetime.datetime] = _ts()
    updated_at: Mapped[datetime.datetime] = _ts()


# --- Notifications and reviews ---


class NotificationRow(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(
        _USER_ID, ForeignKey("users.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(64), nullable=False
    )  # course_update|live_class|achievement|...
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSONB, nullable=True
    )
    created_at: Mapped[datetime.datetime] = _ts()


class ReviewRow(Base):
    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    course_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("courses.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        _USER_ID, ForeignKey("users.id"), nullable=False, index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime.datetime] = _ts()

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )
