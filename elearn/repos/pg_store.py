"""EntityStore backed by one request-scoped AsyncSession."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from elearn.repos.pg_aggregate_repo import PgAggregateRepo
from elearn.repos.pg_course_repo import PgCourseRepo
from elearn.repos.pg_enrollment_repo import PgEnrollmentRepo
from elearn.repos.pg_forum_repo import PgForumRepo
from elearn.repos.pg_live_class_repo import PgLiveClassRepo
from elearn.repos.pg_notification_repo import PgNotificationRepo
from elearn.repos.pg_review_repo import PgReviewRepo
from elearn.repos.pg_user_repo import PgUserRepo


class PgEntityStore:
    """All repositories share the session, and so its transaction.

    `transaction()` opens a SAVEPOINT: a failed unit of work is rolled back
    on its own, and the outer transaction commits or rolls back with the
    request (see elearn.db.engine.session_scope).
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = PgUserRepo(session)
        self.courses = PgCourseRepo(session)
        self.enrollments = PgEnrollmentRepo(session)
        self.live_classes = PgLiveClassRepo(session)
        self.forum = PgForumRepo(session)
        self.notifications = PgNotificationRepo(session)
        self.reviews = PgReviewRepo(session)
        self.aggregates = PgAggregateRepo(session)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self.session.begin_nested():
            yield
