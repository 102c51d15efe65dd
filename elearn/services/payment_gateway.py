"""Stripe behind a small async interface.

The Stripe SDK is synchronous, so every call runs in a worker thread to
keep the event loop free.  Network retries are left to the SDK
(`max_network_retries`); everything it raises surfaces as
PaymentProviderError.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import stripe

from elearn.core.config import SETTINGS
from elearn.core.errors import PaymentProviderError

logger = logging.getLogger(__name__)

# Keys written into every intent and read back when confirming it
INTENT_METADATA_KEYS = ("course_id", "user_id")


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    id: str
    status: str  # requires_payment_method|requires_confirmation|...|succeeded
    amount: int  # minor units
    currency: str
    client_secret: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


class PaymentGateway(Protocol):
    async def create_customer(
        self, *, user_id: str, email: str | None, name: str | None
    ) -> str: ...
    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str,
        customer: str | None = None,
    ) -> PaymentIntent: ...
    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent: ...


@dataclass(frozen=True)
class StripeConfig:
    secret_key: str
    timeout: float = 10.0
    max_retries: int = 2

    @classmethod
    def from_settings(cls) -> StripeConfig | None:
        if not SETTINGS.stripe_secret_key:
            return None
        return cls(secret_key=SETTINGS.stripe_secret_key)


def _to_intent(obj: Any) -> PaymentIntent:
    metadata = getattr(obj, "metadata", None)
    return PaymentIntent(
        id=obj.id,
        status=obj.status,
        amount=int(obj.amount),
        currency=str(obj.currency).upper(),
        client_secret=getattr(obj, "client_secret", None),
        metadata={
            key: str(getattr(metadata, key))
            for key in INTENT_METADATA_KEYS
            if getattr(metadata, key, None) is not None
        },
    )


class StripeGateway:
    def __init__(self, config: StripeConfig) -> None:
        self.config = config
        self._client = stripe.StripeClient(
            config.secret_key,
            max_network_retries=config.max_retries,
            http_client=stripe.RequestsClient(timeout=config.timeout),
        )

    async def _call(self, what: str, fn, *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except stripe.StripeError as exc:
            logger.error("Stripe %s failed: %s", what, exc.user_message or exc)
            raise PaymentProviderError(f"payment provider error during {what}") from exc

    async def create_customer(
        self, *, user_id: str, email: str | None, name: str | None
    ) -> str:
        params: dict[str, Any] = {"metadata": {"user_id": user_id}}
        if email:
            params["email"] = email
        if name:
            params["name"] = name
        customer = await self._call(
            "create_customer", self._client.customers.create, params=params
        )
        return customer.id

    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str,
        customer: str | None = None,
    ) -> PaymentIntent:
        params: dict[str, Any] = {
            "amount": amount,
            "currency": currency.lower(),
            "metadata": dict(metadata),
            "automatic_payment_methods": {"enabled": True},
        }
        if customer:
            params["customer"] = customer
        intent = await self._call(
            "create_payment_intent",
            self._client.payment_intents.create,
            params=params,
            options={"idempotency_key": idempotency_key},
        )
        return _to_intent(intent)

    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        intent = await self._call(
            "retrieve_payment_intent", self._client.payment_intents.retrieve, intent_id
        )
        return _to_intent(intent)


def build_gateway() -> StripeGateway | None:
    config = StripeConfig.from_settings()
    if config is None:
        logger.info("No STRIPE_SECRET_KEY configured; checkout is disabled")
        return None
    return StripeGateway(config)
