from __future__ import annotations

import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from elearn.api.dependencies import CurrentUser, StoreDep
from elearn.api.errors import domain_errors
from elearn.models.user import User
from elearn.services import user_service

router = APIRouter(prefix="/v1/auth", tags=["users"])


class UserOut(BaseModel):
    id: str
    email: str | None
    first_name: str | None
    last_name: str | None
    profile_image_url: str | None
    role: str
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @staticmethod
    def of(user: User) -> UserOut:
        return UserOut(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_image_url=user.profile_image_url,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


@router.get("/user", response_model=UserOut)
async def current_user(principal: CurrentUser, store: StoreDep) -> UserOut:
    # require_user has already synced the row from the token claims
    with domain_errors():
        user = await user_service.get_user(store, principal.user_id)
    return UserOut.of(user)
