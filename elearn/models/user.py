from __future__ import annotations

import datetime
from dataclasses import dataclass

from elearn.models.base import require_choice, utcnow

USER_ROLES = ("learner", "instructor", "admin")


@dataclass(frozen=True, slots=True)
class User:
    """A person known to the platform.

    `id` is the identity provider's subject claim, so the same person maps
    to the same row on every sign-in.  Users are never hard-deleted.
    """

    id: str
    email: str | None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    role: str = "learner"  # learner|instructor|admin
    stripe_customer_id: str | None = None

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.email or self.id

    @staticmethod
    def new(
        *,
        id: str,
        email: str | None,
        first_name: str | None = None,
        last_name: str | None = None,
        profile_image_url: str | None = None,
        role: str = "learner",
    ) -> User:
        now = utcnow()
        return User(
            id=id,
            email=email.strip().lower() if email else None,
            created_at=now,
            updated_at=now,
            first_name=first_name,
            last_name=last_name,
            profile_image_url=profile_image_url,
            role=require_choice("role", role, USER_ROLES),
        )
