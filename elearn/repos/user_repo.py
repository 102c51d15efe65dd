from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from elearn.core.errors import DuplicateError
from elearn.models.base import utcnow
from elearn.models.user import User


class UserRepo(Protocol):
    async def get_by_id(self, user_id: str) -> User | None: ...
    async def get_by_email(self, email: str) -> User | None: ...
    async def add(self, user: User) -> None: ...
    async def update_profile(
        self,
        user_id: str,
        *,
        email: str | None,
        first_name: str | None,
        last_name: str | None,
        profile_image_url: str | None,
    ) -> User | None: ...
    async def set_stripe_customer(
        self, user_id: str, customer_id: str
    ) -> User | None: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, User] = {}

    def snapshot(self) -> dict[str, User]:
        return dict(self._by_id)

    def restore(self, snap: dict[str, User]) -> None:
        self._by_id = snap

    async def get_by_id(self, user_id: str) -> User | None:
        return self._by_id.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        email = email.strip().lower()
        return next((u for u in self._by_id.values() if u.email == email), None)

    async def add(self, user: User) -> None:
        if user.id in self._by_id:
            raise DuplicateError("user already exists")
        if user.email and await self.get_by_email(user.email) is not None:
            raise DuplicateError("email already exists")
        self._by_id[user.id] = user

    async def update_profile(
        self,
        user_id: str,
        *,
        email: str | None,
        first_name: str | None,
        last_name: str | None,
        profile_image_url: str | None,
    ) -> User | None:
        u = self._by_id.get(user_id)
        if u is None:
            return None
        email = email.strip().lower() if email else None
        if email and email != u.email:
            other = await self.get_by_email(email)
            if other is not None and other.id != user_id:
                raise DuplicateError("email already exists")

        updated = replace(
            u,
            email=email,
            first_name=first_name,
            last_name=last_name,
            profile_image_url=profile_image_url,
            updated_at=utcnow(),
        )
        self._by_id[user_id] = updated
        return updated

    async def set_stripe_customer(self, user_id: str, customer_id: str) -> User | None:
        u = self._by_id.get(user_id)
        if u is None:
            return None
        updated = replace(u, stripe_customer_id=customer_id, updated_at=utcnow())
        self._by_id[user_id] = updated
        return updated
