"""Checkout endpoints.

The client confirms the card with the provider using `client_secret`,
then calls /complete; enrollment happens only after the intent is
verified server-side.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from elearn.api.dependencies import CurrentUser, StoreDep, get_payment_gateway
from elearn.api.enrollments import EnrollmentOut
from elearn.api.errors import domain_errors
from elearn.services import payment_service
from elearn.services.payment_gateway import PaymentGateway

router = APIRouter(prefix="/v1/payments", tags=["payments"])

GatewayDep = Annotated[PaymentGateway, Depends(get_payment_gateway)]


class IntentIn(BaseModel):
    course_id: str


class IntentOut(BaseModel):
    payment_intent_id: str
    client_secret: str | None
    amount: int
    currency: str


class CompleteIn(BaseModel):
    course_id: str
    payment_intent_id: str


class CompleteOut(BaseModel):
    enrollment: EnrollmentOut
    created: bool


@router.post("/intent", response_model=IntentOut)
async def create_intent(
    payload: IntentIn, principal: CurrentUser, store: StoreDep, gateway: GatewayDep
) -> IntentOut:
    with domain_errors():
        intent = await payment_service.create_intent(
            store, gateway, principal.user_id, payload.course_id
        )
    return IntentOut(
        payment_intent_id=intent.id,
        client_secret=intent.client_secret,
        amount=intent.amount,
        currency=intent.currency,
    )


@router.post("/complete", response_model=CompleteOut)
async def complete_purchase(
    payload: CompleteIn, principal: CurrentUser, store: StoreDep, gateway: GatewayDep
) -> CompleteOut:
    with domain_errors():
        result = await payment_service.complete_purchase(
            store,
            gateway,
            principal.user_id,
            payload.course_id,
            payload.payment_intent_id,
        )
    return CompleteOut(
        enrollment=EnrollmentOut.of(result.enrollment), created=result.created
    )
