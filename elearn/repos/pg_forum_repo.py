"""PostgreSQL implementation of ForumRepo."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from elearn.db.tables import DiscussionReplyRow, DiscussionRow, ForumCategoryRow
from elearn.models.forum import Discussion, DiscussionReply, ForumCategory
from elearn.repos.pg_common import insert_row


class PgForumRepo:
    """Satisfies the ForumRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add_category(self, category: ForumCategory) -> None:
        row = ForumCategoryRow(
            id=category.id,
            name=category.name,
            description=category.description,
            icon=category.icon,
            created_at=category.created_at,
        )
        await insert_row(
            self._session, row, duplicate_message="forum category already exists"
        )

    async def get_category(self, category_id: str) -> ForumCategory | None:
        row = await self._session.get(ForumCategoryRow, category_id)
        if row is None:
            return None
        return _row_to_category(row)

    async def list_categories(self) -> list[ForumCategory]:
        stmt = select(ForumCategoryRow).order_by(ForumCategoryRow.name)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_category(r) for r in rows]

    # --- discussions ---

    async def add_discussion(self, discussion: Discussion) -> None:
        row = DiscussionRow(
            id=discussion.id,
            title=discussion.title,
            content=discussion.content,
            author_id=discussion.author_id,
            category_id=discussion.category_id,
            course_id=discussion.course_id,
            is_pinned=discussion.is_pinned,
            is_locked=discussion.is_locked,
            view_count=discussion.view_count,
            reply_count=discussion.reply_count,
            created_at=discussion.created_at,
            updated_at=discussion.updated_at,
        )
        await insert_row(self._session, row, duplicate_message="discussion already exists")

    async def get_discussion(self, discussion_id: str) -> Discussion | None:
        stmt = (
            select(DiscussionRow)
            .where(DiscussionRow.id == discussion_id)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_discussion(row)

    async def list_discussions(self, category_id: str | None = None) -> list[Discussion]:
        stmt = select(DiscussionRow).order_by(
            DiscussionRow.is_pinned.desc(), DiscussionRow.created_at.desc()
        )
        if category_id is not None:
            stmt = stmt.where(DiscussionRow.category_id == category_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_discussion(r) for r in rows]

    # --- replies ---

    async def add_reply(self, reply: DiscussionReply) -> None:
        row = DiscussionReplyRow(
            id=reply.id,
            discussion_id=reply.discussion_id,
            author_id=reply.author_id,
            content=reply.content,
            parent_reply_id=reply.parent_reply_id,
            created_at=reply.created_at,
            updated_at=reply.updated_at,
        )
        await insert_row(self._session, row, duplicate_message="reply already exists")

    async def get_reply(self, reply_id: str) -> DiscussionReply | None:
        row = await self._session.get(DiscussionReplyRow, reply_id)
        if row is None:
            return None
        return _row_to_reply(row)

    async def list_replies(self, discussion_id: str) -> list[DiscussionReply]:
        stmt = (
            select(DiscussionReplyRow)
            .where(DiscussionReplyRow.discussion_id == discussion_id)
            .order_by(DiscussionReplyRow.created_at.asc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_reply(r) for r in rows]

    async def count_replies(self, discussion_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(DiscussionReplyRow)
            .where(DiscussionReplyRow.discussion_id == discussion_id)
        )
        return (await self._session.execute(stmt)).scalar_one()


def _row_to_category(row: ForumCategoryRow) -> ForumCategory:
    return ForumCategory(
        id=row.id,
        name=row.name,
        created_at=row.created_at,
        description=row.description,
        icon=row.icon,
    )


def _row_to_discussion(row: DiscussionRow) -> Discussion:
    return Discussion(
        id=row.id,
        title=row.title,
        content=row.content,
        author_id=row.author_id,
        category_id=row.category_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        course_id=row.course_id,
        is_pinned=row.is_pinned,
        is_locked=row.is_locked,
        view_count=row.view_count,
        reply_count=row.reply_count,
    )


def _row_to_reply(row: DiscussionReplyRow) -> DiscussionReply:
    return DiscussionReply(
        id=row.id,
        discussion_id=row.discussion_id,
        author_id=row.author_id,
        content=row.content,
        created_at=row.created_at,
        updated_at=row.updated_at,
        parent_reply_id=row.parent_reply_id,
    )
