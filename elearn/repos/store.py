"""EntityStore: every repository plus one atomic unit of work.

Services receive a store explicitly (FastAPI dependency or test fixture)
and group related writes with `async with store.transaction():`.  The
in-memory store below backs dev runs without DATABASE_URL and the test
suite; PgEntityStore (elearn.repos.pg_store) backs production.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Protocol

from elearn.repos.aggregate_repo import AggregateRepo, InMemoryAggregateRepo
from elearn.repos.course_repo import CourseRepo, InMemoryCourseRepo
from elearn.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from elearn.repos.forum_repo import ForumRepo, InMemoryForumRepo
from elearn.repos.live_class_repo import InMemoryLiveClassRepo, LiveClassRepo
from elearn.repos.notification_repo import (
    InMemoryNotificationRepo,
    NotificationRepo,
)
from elearn.repos.review_repo import InMemoryReviewRepo, ReviewRepo
from elearn.repos.user_repo import InMemoryUserRepo, UserRepo


class EntityStore(Protocol):
    users: UserRepo
    courses: CourseRepo
    enrollments: EnrollmentRepo
    live_classes: LiveClassRepo
    forum: ForumRepo
    notifications: NotificationRepo
    reviews: ReviewRepo
    aggregates: AggregateRepo

    def transaction(self) -> AbstractAsyncContextManager[None]: ...


class InMemoryEntityStore:
    """Dict-backed store.

    Transactions are serialised by one asyncio.Lock.  On entry every repo's
    dicts are snapshotted; an exception restores them, so a failed unit of
    work leaves no trace.  Nested `transaction()` calls from the task that
    already holds the lock behave like savepoints.
    """

    def __init__(self) -> None:
        self.users = InMemoryUserRepo()
        self.courses = InMemoryCourseRepo()
        self.enrollments = InMemoryEnrollmentRepo()
        self.live_classes = InMemoryLiveClassRepo()
        self.forum = InMemoryForumRepo()
        self.notifications = InMemoryNotificationRepo()
        self.reviews = InMemoryReviewRepo()
        self.aggregates = InMemoryAggregateRepo(
            self.courses, self.enrollments, self.forum, self.reviews
        )
        self._lock = asyncio.Lock()
        self._owner: asyncio.Task[Any] | None = None

    def _repos(self) -> tuple[Any, ...]:
        return (
            self.users,
            self.courses,
            self.enrollments,
            self.live_classes,
            self.forum,
            self.notifications,
            self.reviews,
        )

    def _snapshot(self) -> list[tuple[Any, Any]]:
        return [(repo, repo.snapshot()) for repo in self._repos()]

    @staticmethod
    def _restore(snap: list[tuple[Any, Any]]) -> None:
        for repo, state in snap:
            repo.restore(state)

    @asynccontextmanager
    async def _savepoint(self) -> AsyncIterator[None]:
        snap = self._snapshot()
        try:
            yield
        except BaseException:
            self._restore(snap)
            raise

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        task = asyncio.current_task()
        if task is not None and self._owner is task:
            async with self._savepoint():
                yield
            return

        async with self._lock:
            self._owner = task
            try:
                async with self._savepoint():
                    yield
            finally:
                self._owner = None
