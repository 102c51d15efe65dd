from __future__ import annotations

import logging

from elearn.core.errors import DuplicateError, NotFoundError
from elearn.models.principal import Principal
from elearn.models.user import User
from elearn.repos.store import EntityStore

logger = logging.getLogger(__name__)


async def sync_user(store: EntityStore, principal: Principal) -> User:
    """Create the caller's User row on first sight, refresh it afterwards.

    Profile fields follow the identity provider's claims; a claim the
    token does not carry leaves the stored value alone.
    """
    user = await store.users.get_by_id(principal.user_id)
    if user is None:
        try:
            user = User.new(
                id=principal.user_id,
                email=principal.email,
                first_name=principal.first_name,
                last_name=principal.last_name,
                role=principal.primary_role,
            )
            await store.users.add(user)
            logger.info("Created user id=%s role=%s", user.id, user.role)
            return user
        except DuplicateError:
            # A parallel first request created the row; fall through to sync it
            user = await store.users.get_by_id(principal.user_id)
            if user is None:
                raise

    email = principal.email.strip().lower() if principal.email else user.email
    first_name = principal.first_name or user.first_name
    last_name = principal.last_name or user.last_name
    if (email, first_name, last_name) == (user.email, user.first_name, user.last_name):
        return user

    updated = await store.users.update_profile(
        user.id,
        email=email,
        first_name=first_name,
        last_name=last_name,
        profile_image_url=user.profile_image_url,
    )
    if updated is None:
        raise NotFoundError("user", user.id)
    logger.info("Synced profile user=%s", user.id)
    return updated


async def get_user(store: EntityStore, user_id: str) -> User:
    user = await store.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    return user
