"""FastAPI dependencies: entity store, authentication, roles, payments."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from elearn.api.errors import domain_errors
from elearn.core.logging import user_id_var
from elearn.db.engine import async_session_factory, session_scope
from elearn.models.principal import Principal
from elearn.repos.pg_store import PgEntityStore
from elearn.repos.store import EntityStore, InMemoryEntityStore
from elearn.services import token_service, user_service
from elearn.services.payment_gateway import PaymentGateway, build_gateway

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# Backs the API when DATABASE_URL is unset (local dev); tests override
# get_store with a fresh store per test
memory_store = InMemoryEntityStore()

payment_gateway: PaymentGateway | None = build_gateway()


async def get_store() -> AsyncGenerator[EntityStore, None]:
    """One store per request; on PostgreSQL, one session and transaction."""
    if async_session_factory is None:
        yield memory_store
        return
    async with session_scope(async_session_factory) as session:
        yield PgEntityStore(session)


# Function scope: the session commits before the response is sent, so a
# failed commit reaches the client as an error
StoreDep = Annotated[EntityStore, Depends(get_store, scope="function")]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_user(
    request: Request,
    store: StoreDep,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> Principal:
    """Verify the bearer token and make sure the caller has a User row."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        claims = token_service.decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    principal = token_service.principal_from_claims(claims)
    user_id_var.set(principal.user_id)
    request.state.user_id = principal.user_id

    with domain_errors():
        await user_service.sync_user(store, principal)
    logger.debug(
        "Token validated for user=%s roles=%s", principal.user_id, sorted(principal.roles)
    )
    return principal


CurrentUser = Annotated[Principal, Depends(require_user)]


def require_any_role(roles: set[str]):
    """Dependency factory: demand at least one of the given roles.

    Usage: Depends(require_any_role({"admin", "instructor"}))
    """

    def _guard(principal: CurrentUser) -> Principal:
        if not principal.has_any_role(roles):
            logger.warning(
                "Access denied: user=%s has none of roles=%s",
                principal.user_id,
                sorted(roles),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


def get_payment_gateway() -> PaymentGateway:
    if payment_gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment processing is not configured",
        )
    return payment_gateway
