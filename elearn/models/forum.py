from __future__ import annotations

import datetime
from dataclasses import dataclass

from elearn.models.base import new_id, require_text, utcnow


@dataclass(frozen=True, slots=True)
class ForumCategory:
    id: str
    name: str
    created_at: datetime.datetime
    description: str | None = None
    icon: str | None = None

    @staticmethod
    def new(
        *, name: str, description: str | None = None, icon: str | None = None
    ) -> ForumCategory:
        return ForumCategory(
            id=new_id(),
            name=require_text("name", name),
            created_at=utcnow(),
            description=description,
            icon=icon,
        )


@dataclass(frozen=True, slots=True)
class Discussion:
    """A forum thread.

    view_count and reply_count are derived and only move through the
    store's atomic increment operations.
    """

    id: str
    title: str
    content: str
    author_id: str
    category_id: str
    created_at: datetime.datetime
    updated_at: datetime.datetime
    course_id: str | None = None
    is_pinned: bool = False
    is_locked: bool = False
    view_count: int = 0
    reply_count: int = 0

    @staticmethod
    def new(
        *,
        title: str,
        content: str,
        author_id: str,
        category_id: str,
        course_id: str | None = None,
    ) -> Discussion:
        now = utcnow()
        return Discussion(
            id=new_id(),
            title=require_text("title", title),
            content=require_text("content", content),
            author_id=author_id,
            category_id=category_id,
            created_at=now,
            updated_at=now,
            course_id=course_id,
        )


@dataclass(frozen=True, slots=True)
class DiscussionReply:
    """A reply; `parent_reply_id` threads it under another reply.

    A parent, when present, belongs to the same discussion.
    """

    id: str
    discussion_id: str
    author_id: str
    content: str
    created_at: datetime.datetime
    updated_at: datetime.datetime
    parent_reply_id: str | None = None

    @staticmethod
    def new(
        *,
        discussion_id: str,
        author_id: str,
        content: str,
        parent_reply_id: str | None = None,
    ) -> DiscussionReply:
        now = utcnow()
        return DiscussionReply(
            id=new_id(),
            discussion_id=discussion_id,
            author_id=author_id,
            content=require_text("content", content),
            created_at=now,
            updated_at=now,
            parent_reply_id=parent_reply_id,
        )
