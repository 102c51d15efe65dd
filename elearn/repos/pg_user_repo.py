"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from elearn.db.tables import UserRow
from elearn.models.base import utcnow
from elearn.models.user import User
from elearn.repos.pg_common import insert_row, translate_integrity_error


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: str) -> User | None:
        stmt = select(UserRow).where(UserRow.id == user_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_user(row)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(UserRow).where(UserRow.email == email.strip().lower())
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_user(row)

    async def add(self, user: User) -> None:
        row = UserRow(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_image_url=user.profile_image_url,
            role=user.role,
            stripe_customer_id=user.stripe_customer_id,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        await insert_row(self._session, row, duplicate_message="user already exists")

    async def update_profile(
        self,
        user_id: str,
        *,
        email: str | None,
        first_name: str | None,
        last_name: str | None,
        profile_image_url: str | None,
    ) -> User | None:
        stmt = (
            update(UserRow)
            .where(UserRow.id == user_id)
            .values(
                email=email.strip().lower() if email else None,
                first_name=first_name,
                last_name=last_name,
                profile_image_url=profile_image_url,
                updated_at=utcnow(),
            )
            .returning(UserRow)
        )
        try:
            async with self._session.begin_nested():
                row = (await self._session.execute(stmt)).scalar_one_or_none()
        except IntegrityError as exc:
            raise translate_integrity_error(exc, "email already exists") from None
        if row is None:
            return None
        return _row_to_user(row)

    async def set_stripe_customer(self, user_id: str, customer_id: str) -> User | None:
        stmt = (
            update(UserRow)
            .where(UserRow.id == user_id)
            .values(stripe_customer_id=customer_id, updated_at=utcnow())
            .returning(UserRow)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_user(row)


def _row_to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        email=row.email,
        created_at=row.created_at,
        updated_at=row.updated_at,
        first_name=row.first_name,
        last_name=row.last_name,
        profile_image_url=row.profile_image_url,
        role=row.role,
        stripe_customer_id=row.stripe_customer_id,
    )
