"""Forum: categories, discussions and threaded replies."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from elearn.core.errors import NotFoundError, PermissionDenied, ValidationError
from elearn.core.metrics import DISCUSSION_REPLIES
from elearn.models.forum import Discussion, DiscussionReply, ForumCategory
from elearn.models.principal import Principal
from elearn.repos.store import EntityStore
from elearn.services import aggregates

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiscussionThread:
    discussion: Discussion
    replies: list[DiscussionReply]


async def create_forum_category(
    store: EntityStore,
    principal: Principal,
    *,
    name: str,
    description: str | None = None,
    icon: str | None = None,
) -> ForumCategory:
    if not principal.is_admin():
        logger.warning("Rejected forum category by non-admin user=%s", principal.user_id)
        raise PermissionDenied("admin role required")
    category = ForumCategory.new(name=name, description=description, icon=icon)
    await store.forum.add_category(category)
    logger.info("Created forum category id=%s name=%s", category.id, category.name)
    return category


async def list_forum_categories(store: EntityStore) -> list[ForumCategory]:
    return await store.forum.list_categories()


async def create_discussion(
    store: EntityStore,
    user_id: str,
    *,
    title: str,
    content: str,
    category_id: str,
    course_id: str | None = None,
) -> Discussion:
    discussion = Discussion.new(
        title=title,
        content=content,
        author_id=user_id,
        category_id=category_id,
        course_id=course_id,
    )
    async with store.transaction():
        if await store.forum.get_category(category_id) is None:
            raise ValidationError("unknown forum category")
        if course_id is not None and await store.courses.get_course(course_id) is None:
            raise ValidationError("unknown course")
        await store.forum.add_discussion(discussion)
    logger.info(
        "Created discussion id=%s category=%s author=%s",
        discussion.id,
        category_id,
        user_id,
    )
    return discussion


async def list_discussions(
    store: EntityStore, category_id: str | None = None
) -> list[Discussion]:
    return await store.forum.list_discussions(category_id)


async def get_discussion(store: EntityStore, discussion_id: str) -> DiscussionThread:
    """Fetch a discussion with its replies; every fetch counts as one view."""
    async with store.transaction():
        discussion = await store.forum.get_discussion(discussion_id)
        if discussion is None:
            raise NotFoundError("discussion", discussion_id)
        views = await aggregates.record_view(store, discussion_id)
        replies = await store.forum.list_replies(discussion_id)
    return DiscussionThread(
        discussion=replace(discussion, view_count=views), replies=replies
    )


async def create_reply(
    store: EntityStore,
    user_id: str,
    discussion_id: str,
    *,
    content: str,
    parent_reply_id: str | None = None,
) -> DiscussionReply:
    reply = DiscussionReply.new(
        discussion_id=discussion_id,
        author_id=user_id,
        content=content,
        parent_reply_id=parent_reply_id,
    )
    async with store.transaction():
        discussion = await store.forum.get_discussion(discussion_id)
        if discussion is None:
            raise NotFoundError("discussion", discussion_id)
        if discussion.is_locked:
            logger.warning(
                "Rejected reply to locked discussion=%s user=%s", discussion_id, user_id
            )
            raise ValidationError("discussion is locked")
        if parent_reply_id is not None:
            parent = await store.forum.get_reply(parent_reply_id)
            if parent is None:
                raise NotFoundError("reply", parent_reply_id)
            if parent.discussion_id != discussion_id:
                logger.warning(
                    "Rejected reply with foreign parent=%s discussion=%s",
                    parent_reply_id,
                    discussion_id,
                )
                raise ValidationError("parent reply belongs to another discussion")
        await store.forum.add_reply(reply)
        count = await aggregates.record_reply(store, discussion_id)

    DISCUSSION_REPLIES.inc()
    logger.info(
        "Reply id=%s discussion=%s author=%s reply_count=%d",
        reply.id,
        discussion_id,
        user_id,
        count,
    )
    return reply
