from __future__ import annotations

from typing import Protocol

from elearn.core.errors import DuplicateError
from elearn.models.forum import Discussion, DiscussionReply, ForumCategory


class ForumRepo(Protocol):
    async def add_category(self, category: ForumCategory) -> None: ...
    async def get_category(self, category_id: str) -> ForumCategory | None: ...
    async def list_categories(self) -> list[ForumCategory]: ...

    async def add_discussion(self, discussion: Discussion) -> None: ...
    async def get_discussion(self, discussion_id: str) -> Discussion | None: ...
    async def list_discussions(
        self, category_id: str | None = None
    ) -> list[Discussion]: ...

    async def add_reply(self, reply: DiscussionReply) -> None: ...
    async def get_reply(self, reply_id: str) -> DiscussionReply | None: ...
    async def list_replies(self, discussion_id: str) -> list[DiscussionReply]: ...
    async def count_replies(self, discussion_id: str) -> int: ...


class InMemoryForumRepo:
    def __init__(self) -> None:
        self._categories: dict[str, ForumCategory] = {}
        self._discussions: dict[str, Discussion] = {}
        self._replies: dict[str, DiscussionReply] = {}

    def snapshot(self) -> tuple[dict, dict, dict]:
        return dict(self._categories), dict(self._discussions), dict(self._replies)

    def restore(self, snap: tuple[dict, dict, dict]) -> None:
        self._categories, self._discussions, self._replies = snap

    async def add_category(self, category: ForumCategory) -> None:
        self._categories[category.id] = category

    async def get_category(self, category_id: str) -> ForumCategory | None:
        return self._categories.get(category_id)

    async def list_categories(self) -> list[ForumCategory]:
        return sorted(self._categories.values(), key=lambda c: c.name.lower())

    # --- discussions ---

    def put_discussion(self, discussion: Discussion) -> None:
        self._discussions[discussion.id] = discussion

    async def add_discussion(self, discussion: Discussion) -> None:
        if discussion.id in self._discussions:
            raise DuplicateError("discussion already exists")
        self._discussions[discussion.id] = discussion

    async def get_discussion(self, discussion_id: str) -> Discussion | None:
        return self._discussions.get(discussion_id)

    async def list_discussions(self, category_id: str | None = None) -> list[Discussion]:
        rows = [
            d
            for d in self._discussions.values()
            if category_id is None or d.category_id == category_id
        ]
        # pinned first, then newest; later inserts win timestamp ties
        rows = sorted(reversed(rows), key=lambda d: d.created_at, reverse=True)
        return sorted(rows, key=lambda d: not d.is_pinned)

    # --- replies ---

    async def add_reply(self, reply: DiscussionReply) -> None:
        if reply.id in self._replies:
            raise DuplicateError("reply already exists")
        self._replies[reply.id] = reply

    async def get_reply(self, reply_id: str) -> DiscussionReply | None:
        return self._replies.get(reply_id)

    async def list_replies(self, discussion_id: str) -> list[DiscussionReply]:
        rows = [r for r in self._replies.values() if r.discussion_id == discussion_id]
        return sorted(rows, key=lambda r: r.created_at)

    async def count_replies(self, discussion_id: str) -> int:
        return sum(1 for r in self._replies.values() if r.discussion_id == discussion_id)
