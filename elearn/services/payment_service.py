"""Checkout for paid courses.

1. create_intent: the client gets a PaymentIntent for the course price
   (minor units, course currency) tagged with {course_id, user_id}.
2. The client confirms the payment with Stripe directly.
3. complete_purchase: the intent is re-read from Stripe and must have
   succeeded for this user and course; the enrollment and its
   "Course Enrollment Successful" notification are then written in one
   transaction.  Re-sending a completed purchase is harmless.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from elearn.core.errors import DuplicateError, NotFoundError, ValidationError
from elearn.core.metrics import PAYMENTS
from elearn.models.course import Course
from elearn.models.enrollment import Enrollment
from elearn.repos.store import EntityStore
from elearn.services import enrollment_service, notification_service
from elearn.services.payment_gateway import PaymentGateway, PaymentIntent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PurchaseResult:
    enrollment: Enrollment
    created: bool


async def _customer_for(store: EntityStore, gateway: PaymentGateway, user_id: str) -> str:
    user = await store.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    if user.stripe_customer_id:
        return user.stripe_customer_id
    customer_id = await gateway.create_customer(
        user_id=user.id, email=user.email, name=user.display_name
    )
    await store.users.set_stripe_customer(user.id, customer_id)
    logger.info("Linked payment customer user=%s", user.id)
    return customer_id


def intent_idempotency_key(user_id: str, course: Course) -> str:
    """Same user, course and price give the same key, so a retried request
    gets the original PaymentIntent back instead of a second one.
    """
    return f"intent-{user_id}-{course.id}-{course.price_minor_units}-{course.currency}"


async def create_intent(
    store: EntityStore, gateway: PaymentGateway, user_id: str, course_id: str
) -> PaymentIntent:
    course = await store.courses.get_course(course_id)
    if course is None or not course.is_published:
        PAYMENTS.labels(step="intent", result="rejected").inc()
        raise ValidationError("course is not available for purchase")
    if course.price_minor_units <= 0:
        PAYMENTS.labels(step="intent", result="rejected").inc()
        raise ValidationError("course is free; enroll directly")
    if await store.enrollments.get(user_id, course_id) is not None:
        PAYMENTS.labels(step="intent", result="rejected").inc()
        logger.warning("Rejected intent for owned course=%s user=%s", course_id, user_id)
        raise DuplicateError("already enrolled in this course")

    customer = await _customer_for(store, gateway, user_id)
    try:
        intent = await gateway.create_payment_intent(
            amount=course.price_minor_units,
            currency=course.currency,
            metadata={"course_id": course.id, "user_id": user_id},
            idempotency_key=intent_idempotency_key(user_id, course),
            customer=customer,
        )
    except Exception:
        PAYMENTS.labels(step="intent", result="error").inc()
        raise
    PAYMENTS.labels(step="intent", result="ok").inc()
    logger.info(
        "Created payment intent=%s course=%s user=%s amount=%d %s",
        intent.id,
        course_id,
        user_id,
        intent.amount,
        intent.currency,
    )
    return intent


def _check_intent(intent: PaymentIntent, user_id: str, course_id: str) -> None:
    if not intent.succeeded:
        raise ValidationError(f"payment has not succeeded (status={intent.status})")
    if (
        intent.metadata.get("user_id") != user_id
        or intent.metadata.get("course_id") != course_id
    ):
        raise ValidationError("payment does not match this user and course")


async def complete_purchase(
    store: EntityStore,
    gateway: PaymentGateway,
    user_id: str,
    course_id: str,
    payment_intent_id: str,
) -> PurchaseResult:
    try:
        intent = await gateway.retrieve_payment_intent(payment_intent_id)
    except Exception:
        PAYMENTS.labels(step="complete", result="error").inc()
        raise
    try:
        _check_intent(intent, user_id, course_id)
    except ValidationError as exc:
        PAYMENTS.labels(step="complete", result="rejected").inc()
        logger.warning(
            "Rejected purchase completion intent=%s user=%s course=%s: %s",
            payment_intent_id,
            user_id,
            course_id,
            exc.message,
        )
        raise

    async with store.transaction():
        enrollment, created = await enrollment_service.enroll_after_purchase(
            store, user_id, course_id
        )
        if created:
            await notification_service.notify(
                store,
                user_id,
                title=notification_service.ENROLLMENT_SUCCESS_TITLE,
                message="You have been successfully enrolled in the course!",
                type="course_update",
                metadata={"course_id": course_id, "payment_intent_id": intent.id},
            )

    PAYMENTS.labels(step="complete", result="ok").inc()
    logger.info(
        "Purchase completed intent=%s user=%s course=%s new_enrollment=%s",
        intent.id,
        user_id,
        course_id,
        created,
    )
    return PurchaseResult(enrollment=enrollment, created=created)
