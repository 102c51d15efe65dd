"""initial schema

Revision ID: 3b1f9c2d7e41
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1f9c2d7e41"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_ID = sa.String(length=36)
_USER_ID = sa.String(length=255)


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", _USER_ID, primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=True, unique=True),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("profile_image_url", sa.Text(), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="learner"),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
    )

    op.create_table(
        "categories",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _ts("created_at"),
    )

    op.create_table(
        "courses",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("thumbnail", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="INR"),
        sa.Column("category_id", _ID, sa.ForeignKey("categories.id"), nullable=True),
        sa.Column("instructor_id", _USER_ID, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("level", sa.String(length=32), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False, server_default="0.00"),
        sa.Column("total_enrollments", sa.Integer(), nullable=False, server_default="0"),
        _ts("created_at"),
        _ts("updated_at"),
        _ts("deleted_at", nullable=True),
        sa.CheckConstraint("price >= 0", name="ck_courses_price_non_negative"),
        sa.CheckConstraint("rating >= 0 AND rating <= 5", name="ck_courses_rating_range"),
    )
    op.create_index("ix_courses_category_id", "courses", ["category_id"])
    op.create_index("ix_courses_instructor_id", "courses", ["instructor_id"])

    op.create_table(
        "lessons",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("course_id", _ID, sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("is_preview", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("created_at"),
        _ts("deleted_at", nullable=True),
    )
    op.create_index("ix_lessons_course_id", "lessons", ["course_id"])
    op.create_index(
        "uq_lessons_course_order_live",
        "lessons",
        ["course_id", "order"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )

    op.create_table(
        "enrollments",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("user_id", _USER_ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("course_id", _ID, sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("progress", sa.Numeric(5, 2), nullable=False, server_default="0.00"),
        _ts("enrolled_at"),
        _ts("completed_at", nullable=True),
        sa.UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
        sa.CheckConstraint(
            "progress >= 0 AND progress <= 100", name="ck_enrollments_progress_range"
        ),
    )
    op.create_index("ix_enrollments_user_id", "enrollments", ["user_id"])
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])

    op.create_table(
        "lesson_progress",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("user_id", _USER_ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("lesson_id", _ID, sa.ForeignKey("lessons.id"), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("watch_time", sa.Integer(), nullable=False, server_default="0"),
        _ts("completed_at", nullable=True),
        _ts("created_at"),
        sa.UniqueConstraint("user_id", "lesson_id", name="uq_lesson_progress_user_lesson"),
    )
    op.create_index("ix_lesson_progress_user_id", "lesson_progress", ["user_id"])
    op.create_index("ix_lesson_progress_lesson_id", "lesson_progress", ["lesson_id"])

    op.create_table(
        "live_classes",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("instructor_id", _USER_ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("course_id", _ID, sa.ForeignKey("courses.id"), nullable=True),
        _ts("scheduled_at"),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("meeting_url", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("max_attendees", sa.Integer(), nullable=False, server_default="100"),
        _ts("created_at"),
    )
    op.create_index("ix_live_classes_instructor_id", "live_classes", ["instructor_id"])
    op.create_index("ix_live_classes_course_id", "live_classes", ["course_id"])

    op.create_table(
        "live_class_attendees",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("live_class_id", _ID, sa.ForeignKey("live_classes.id"), nullable=False),
        sa.Column("user_id", _USER_ID, sa.ForeignKey("users.id"), nullable=False),
        _ts("joined_at"),
        _ts("left_at", nullable=True),
    )
    op.create_index(
        "ix_live_class_attendees_live_class_id", "live_class_attendees", ["live_class_id"]
    )
    op.create_index("ix_live_class_attendees_user_id", "live_class_attendees", ["user_id"])

    op.create_table(
        "forum_categories",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=255), nullable=True),
        _ts("created_at"),
    )

    op.create_table(
        "discussions",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", _USER_ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "category_id", _ID, sa.ForeignKey("forum_categories.id"), nullable=False
        ),
        sa.Column("course_id", _ID, sa.ForeignKey("courses.id"), nullable=True),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reply_count", sa.Integer(), nullable=False, server_default="0"),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_discussions_author_id", "discussions", ["author_id"])
    op.create_index("ix_discussions_category_id", "discussions", ["category_id"])
    op.create_index("ix_discussions_course_id", "discussions", ["course_id"])

    op.create_table(
        "discussion_replies",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("discussion_id", _ID, sa.ForeignKey("discussions.id"), nullable=False),
        sa.Column("author_id", _USER_ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "parent_reply_id", _ID, sa.ForeignKey("discussion_replies.id"), nullable=True
        ),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index(
        "ix_discussion_replies_discussion_id", "discussion_replies", ["discussion_id"]
    )
    op.create_index("ix_discussion_replies_author_id", "discussion_replies", ["author_id"])

    op.create_table(
        "notifications",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("user_id", _USER_ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        _ts("created_at"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "reviews",
        sa.Column("id", _ID, primary_key=True),
        sa.Column("course_id", _ID, sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("user_id", _USER_ID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        _ts("created_at"),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_course_id", "reviews", ["course_id"])
    op.create_index("ix_reviews_user_id", "reviews", ["user_id"])


def downgrade() -> None:
    # Children before parents
    for table in (
        "reviews",
        "notifications",
        "discussion_replies",
        "discussions",
        "forum_categories",
        "live_class_attendees",
        "live_classes",
        "lesson_progress",
        "enrollments",
        "lessons",
        "courses",
        "categories",
        "users",
    ):
        op.drop_table(table)
