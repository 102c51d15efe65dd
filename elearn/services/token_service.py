"""Verification of identity-provider access tokens (ES256 JWTs).

Tokens are issued by the external identity provider; this service only
verifies them.  Claims used: sub, roles, email, given_name, family_name.

Key material:
- JWT_PUBLIC_KEY (PEM) set: verify against the provider's public key.
- unset (dev/test): an ephemeral EC key pair is generated on import and
  `create_access_token` mints tokens signed with it, so local runs and
  the test suite need no identity provider.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from elearn.core.config import SETTINGS
from elearn.models.principal import Principal

ALGORITHM = "ES256"
ACCESS_TOKEN_TTL_MIN = 15

if SETTINGS.jwt_public_key:
    _private_key: ec.EllipticCurvePrivateKey | None = None
    _public_key = serialization.load_pem_public_key(SETTINGS.jwt_public_key.encode())
else:
    _private_key = ec.generate_private_key(ec.SECP256R1())
    _public_key = _private_key.public_key()


def create_access_token(
    *,
    sub: str,
    roles: list[str] | None = None,
    email: str | None = None,
    given_name: str | None = None,
    family_name: str | None = None,
    ttl: timedelta = timedelta(minutes=ACCESS_TOKEN_TTL_MIN),
) -> str:
    """Mint a token with the dev key pair (local runs and tests only)."""
    if _private_key is None:
        raise RuntimeError("tokens are issued by the identity provider, not minted here")
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": sub,
        "iss": SETTINGS.jwt_issuer,
        "aud": SETTINGS.jwt_audience,
        "exp": now + ttl,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "roles": roles or ["learner"],
    }
    if email:
        payload["email"] = email
    if given_name:
        payload["given_name"] = given_name
    if family_name:
        payload["family_name"] = family_name
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and claims, return the payload.

    Pins the algorithm to ES256 (no alg:none or alg switching) and checks
    exp, iss and aud.  Raises jwt.ExpiredSignatureError or
    jwt.InvalidTokenError.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=SETTINGS.jwt_issuer,
        audience=SETTINGS.jwt_audience,
        leeway=SETTINGS.jwt_leeway_seconds,
        options={"require": ["sub", "exp", "iat"]},
    )


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    roles = claims.get("roles") or []
    if isinstance(roles, str):
        roles = roles.split()
    return Principal(
        user_id=str(claims["sub"]),
        roles=frozenset(str(r) for r in roles),
        email=claims.get("email"),
        first_name=claims.get("given_name"),
        last_name=claims.get("family_name"),
    )
