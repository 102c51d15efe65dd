from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from elearn.api import ratelimit
from elearn.api.dependencies import get_payment_gateway, get_store
from elearn.main import app
from elearn.models.principal import Principal
from elearn.repos.store import InMemoryEntityStore
from elearn.services import token_service
from elearn.services.payment_gateway import PaymentIntent

# Ensure repo root is on sys.path so `import elearn` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeGateway:
    """Records calls; intents are created as 'succeeded' unless told otherwise."""

    def __init__(self) -> None:
        self.customers: dict[str, str] = {}
        self.intents: dict[str, PaymentIntent] = {}
        self.intent_by_key: dict[str, str] = {}
        self.next_status = "succeeded"

    async def create_customer(
        self, *, user_id: str, email: str | None, name: str | None
    ) -> str:
        customer_id = f"cus_{len(self.customers) + 1}"
        self.customers[customer_id] = user_id
        return customer_id

    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str,
        customer: str | None = None,
    ) -> PaymentIntent:
        # Replays like Stripe: a known idempotency key returns the same intent
        if idempotency_key in self.intent_by_key:
            return self.intents[self.intent_by_key[idempotency_key]]
        intent = PaymentIntent(
            id=f"pi_{len(self.intents) + 1}",
            status=self.next_status,
            amount=amount,
            currency=currency.lower(),
            client_secret=f"pi_{len(self.intents) + 1}_secret",
            metadata=dict(metadata),
        )
        self.intents[intent.id] = intent
        self.intent_by_key[idempotency_key] = intent.id
        return intent

    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        return self.intents[intent_id]


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture(autouse=True)
def override_dependencies(store: InMemoryEntityStore, gateway: FakeGateway):
    """Fresh store and fake payment provider for every test."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Clear rate limit windows between tests so limits don't bleed."""
    if hasattr(ratelimit.rate_limiter, "_windows"):
        ratelimit.rate_limiter._windows.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    user_id: str = "learner-1",
    roles: list[str] | None = None,
    email: str | None = None,
    given_name: str | None = None,
    family_name: str | None = None,
    ttl: timedelta = timedelta(minutes=15),
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(
        sub=user_id,
        roles=roles,
        email=email,
        given_name=given_name,
        family_name=family_name,
        ttl=ttl,
    )


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def learner_headers() -> dict[str, str]:
    return auth(mint_token("learner-1", email="learner1@example.com"))


@pytest.fixture
def instructor_headers() -> dict[str, str]:
    return auth(
        mint_token("instructor-1", roles=["instructor"], email="teach@example.com")
    )


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth(mint_token("admin-1", roles=["admin"], email="admin@example.com"))


def principal(user_id: str = "learner-1", *roles: str) -> Principal:
    return Principal(user_id=user_id, roles=frozenset(roles or ("learner",)))


def create_course(
    client: TestClient, headers: dict[str, str], **overrides: object
) -> dict:
    body = {
        "title": "Intro to Python",
        "description": "Variables, loops and functions",
        "price": "0",
        "level": "beginner",
        "is_published": True,
    }
    body.update(overrides)
    resp = client.post("/v1/courses", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def seed_course(
    store: InMemoryEntityStore,
    *,
    lesson_minutes: tuple[int | None, ...] = (),
    **overrides: object,
):
    """Published course by instructor-1 with one lesson per entry in lesson_minutes."""
    from elearn.services import catalog_service

    instructor = principal("instructor-1", "instructor")
    fields: dict[str, object] = {
        "title": "Intro to Python",
        "description": "Variables, loops and functions",
        "price": "0",
        "level": "beginner",
        "is_published": True,
    }
    fields.update(overrides)
    course = await catalog_service.create_course(store, instructor, **fields)
    for order, minutes in enumerate(lesson_minutes):
        await catalog_service.create_lesson(
            store, instructor, course.id, title=f"Lesson {order}", order=order, duration=minutes
        )
    return course
