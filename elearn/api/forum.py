"""Forum endpoints: categories, discussions and replies."""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from elearn.api.dependencies import CurrentUser, StoreDep
from elearn.api.errors import domain_errors
from elearn.api.ratelimit import require_rate_limit
from elearn.models.forum import Discussion, DiscussionReply, ForumCategory
from elearn.services import forum_service

router = APIRouter(prefix="/v1", tags=["forum"])


class ForumCategoryIn(BaseModel):
    name: str
    description: str | None = None
    icon: str | None = None


class ForumCategoryOut(BaseModel):
    id: str
    name: str
    description: str | None
    icon: str | None

    @staticmethod
    def of(c: ForumCategory) -> ForumCategoryOut:
        return ForumCategoryOut(
            id=c.id, name=c.name, description=c.description, icon=c.icon
        )


class DiscussionIn(BaseModel):
    title: str
    content: str
    category_id: str
    course_id: str | None = None


class DiscussionOut(BaseModel):
    id: str
    title: str
    content: str
    author_id: str
    category_id: str
    course_id: str | None
    is_pinned: bool
    is_locked: bool
    view_count: int
    reply_count: int
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @staticmethod
    def of(d: Discussion) -> DiscussionOut:
        return DiscussionOut(
            id=d.id,
            title=d.title,
            content=d.content,
            author_id=d.author_id,
            category_id=d.category_id,
            course_id=d.course_id,
            is_pinned=d.is_pinned,
            is_locked=d.is_locked,
            view_count=d.view_count,
            reply_count=d.reply_count,
            created_at=d.created_at,
            updated_at=d.updated_at,
        )


class ReplyIn(BaseModel):
    content: str
    parent_reply_id: str | None = None


class ReplyOut(BaseModel):
    id: str
    discussion_id: str
    author_id: str
    content: str
    parent_reply_id: str | None
    created_at: datetime.datetime

    @staticmethod
    def of(r: DiscussionReply) -> ReplyOut:
        return ReplyOut(
            id=r.id,
            discussion_id=r.discussion_id,
            author_id=r.author_id,
            content=r.content,
            parent_reply_id=r.parent_reply_id,
            created_at=r.created_at,
        )


class DiscussionThreadOut(DiscussionOut):
    replies: list[ReplyOut]


@router.get("/forum-categories", response_model=list[ForumCategoryOut])
async def list_forum_categories(store: StoreDep) -> list[ForumCategoryOut]:
    return [ForumCategoryOut.of(c) for c in await forum_service.list_forum_categories(store)]


@router.post(
    "/forum-categories",
    response_model=ForumCategoryOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_forum_category(
    payload: ForumCategoryIn, principal: CurrentUser, store: StoreDep
) -> ForumCategoryOut:
    with domain_errors():
        category = await forum_service.create_forum_category(
            store, principal, **payload.model_dump()
        )
    return ForumCategoryOut.of(category)


@router.get("/discussions", response_model=list[DiscussionOut])
async def list_discussions(
    store: StoreDep, category_id: str | None = None
) -> list[DiscussionOut]:
    discussions = await forum_service.list_discussions(store, category_id)
    return [DiscussionOut.of(d) for d in discussions]


@router.post(
    "/discussions",
    response_model=DiscussionOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit("discussion"))],
)
async def create_discussion(
    payload: DiscussionIn, principal: CurrentUser, store: StoreDep
) -> DiscussionOut:
    with domain_errors():
        discussion = await forum_service.create_discussion(
            store, principal.user_id, **payload.model_dump()
        )
    return DiscussionOut.of(discussion)


@router.get("/discussions/{discussion_id}", response_model=DiscussionThreadOut)
async def get_discussion(discussion_id: str, store: StoreDep) -> DiscussionThreadOut:
    with domain_errors():
        thread = await forum_service.get_discussion(store, discussion_id)
    return DiscussionThreadOut(
        **DiscussionOut.of(thread.discussion).model_dump(),
        replies=[ReplyOut.of(r) for r in thread.replies],
    )


@router.post(
    "/discussions/{discussion_id}/replies",
    response_model=ReplyOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit("reply"))],
)
async def create_reply(
    discussion_id: str, payload: ReplyIn, principal: CurrentUser, store: StoreDep
) -> ReplyOut:
    with domain_errors():
        reply = await forum_service.create_reply(
            store,
            principal.user_id,
            discussion_id,
            content=payload.content,
            parent_reply_id=payload.parent_reply_id,
        )
    return ReplyOut.of(reply)
