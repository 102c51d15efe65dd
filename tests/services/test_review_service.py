from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from elearn.core.errors import ValidationError
from elearn.repos.store import InMemoryEntityStore
from elearn.services import review_service
from tests.conftest import seed_course


@pytest.mark.parametrize("rating", [0, 6])
def test_out_of_range_rating_rejected(store: InMemoryEntityStore, rating: int) -> None:
    async def scenario():
        course = await seed_course(store)
        with pytest.raises(ValidationError):
            await review_service.submit_review(store, "u1", course.id, rating=rating)
        return course

    course = asyncio.run(scenario())
    assert asyncio.run(store.reviews.count_by_course(course.id)) == 0


@pytest.mark.parametrize("rating", [1, 5])
def test_boundary_ratings_accepted(store: InMemoryEntityStore, rating: int) -> None:
    async def scenario():
        course = await seed_course(store)
        await review_service.submit_review(store, "u1", course.id, rating=rating)
        return await store.courses.get_course(course.id)

    course = asyncio.run(scenario())
    assert course.rating == Decimal(rating).quantize(Decimal("0.01"))


def test_concurrent_reviews_rating_is_mean_of_all(store: InMemoryEntityStore) -> None:
    ratings = [5, 4, 4, 3, 5, 1, 2, 5, 4, 3]

    async def scenario():
        course = await seed_course(store)
        await asyncio.gather(
            *(
                review_service.submit_review(store, f"user-{i}", course.id, rating=r)
                for i, r in enumerate(ratings)
            )
        )
        return await store.courses.get_course(course.id)

    course = asyncio.run(scenario())
    # mean = 36 / 10
    assert course.rating == Decimal("3.60")
    assert asyncio.run(store.reviews.count_by_course(course.id)) == len(ratings)


def test_rating_rounds_half_up(store: InMemoryEntityStore) -> None:
    async def scenario():
        course = await seed_course(store)
        for i, r in enumerate([5, 5, 5, 4, 4, 4, 4, 4]):
            await review_service.submit_review(store, f"user-{i}", course.id, rating=r)
        return await store.courses.get_course(course.id)

    # 35 / 8 = 4.375
    assert asyncio.run(scenario()).rating == Decimal("4.38")


def test_review_for_unknown_course_rejected(store: InMemoryEntityStore) -> None:
    with pytest.raises(ValidationError, match="unknown course"):
        asyncio.run(review_service.submit_review(store, "u1", "missing", rating=3))
