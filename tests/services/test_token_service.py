from __future__ import annotations

import jwt
import pytest

from elearn.core.config import SETTINGS
from elearn.services import token_service


def test_round_trip_claims() -> None:
    token = token_service.create_access_token(
        sub="auth0|5", roles=["instructor"], email="i@example.com", given_name="Ida"
    )
    claims = token_service.decode_access_token(token)
    assert claims["sub"] == "auth0|5"
    assert claims["iss"] == SETTINGS.jwt_issuer
    assert claims["aud"] == SETTINGS.jwt_audience

    principal = token_service.principal_from_claims(claims)
    assert principal.user_id == "auth0|5"
    assert principal.roles == frozenset({"instructor"})
    assert principal.first_name == "Ida"


def test_default_role_is_learner() -> None:
    claims = token_service.decode_access_token(token_service.create_access_token(sub="u"))
    assert token_service.principal_from_claims(claims).primary_role == "learner"


def test_space_separated_roles_claim() -> None:
    principal = token_service.principal_from_claims({"sub": "u", "roles": "admin instructor"})
    assert principal.roles == frozenset({"admin", "instructor"})
    assert principal.primary_role == "admin"


def test_wrong_audience_rejected() -> None:
    token = jwt.encode(
        {"sub": "u", "aud": "someone-else", "iss": SETTINGS.jwt_issuer, "exp": 4102444800, "iat": 0},
        token_service._private_key,
        algorithm="ES256",
    )
    with pytest.raises(jwt.InvalidAudienceError):
        token_service.decode_access_token(token)


def test_hs256_token_rejected() -> None:
    token = jwt.encode(
        {"sub": "u", "aud": SETTINGS.jwt_audience, "iss": SETTINGS.jwt_issuer},
        "shared-secret-that-is-long-enough-for-hs256",
        algorithm="HS256",
    )
    with pytest.raises(jwt.InvalidTokenError):
        token_service.decode_access_token(token)
