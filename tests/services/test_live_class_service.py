from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from elearn.core.errors import CapacityError, PermissionDenied, ValidationError
from elearn.repos.store import InMemoryEntityStore
from elearn.services import live_class_service
from tests.conftest import principal

INSTRUCTOR = principal("instructor-1", "instructor")


async def _schedule(store: InMemoryEntityStore, seats: int = 3, hours: int = 1):
    return await live_class_service.create_live_class(
        store,
        INSTRUCTOR,
        title="Office hours",
        scheduled_at=datetime.now(UTC) + timedelta(hours=hours),
        duration=45,
        max_attendees=seats,
    )


def test_concurrent_joins_never_exceed_capacity(store: InMemoryEntityStore) -> None:
    async def scenario():
        live = await _schedule(store, seats=3)
        results = await asyncio.gather(
            *(live_class_service.join(store, f"u{i}", live.id) for i in range(8)),
            return_exceptions=True,
        )
        return live, results

    live, results = asyncio.run(scenario())
    assert sum(isinstance(r, CapacityError) for r in results) == 5
    assert asyncio.run(store.live_classes.count_present(live.id)) == 3


def test_rejoin_returns_open_attendance(store: InMemoryEntityStore) -> None:
    async def scenario():
        live = await _schedule(store, seats=1)
        first = await live_class_service.join(store, "u1", live.id)
        again = await live_class_service.join(store, "u1", live.id)
        return first, again

    (a1, new1), (a2, new2) = asyncio.run(scenario())
    assert (new1, new2) == (True, False)
    assert a1.id == a2.id


def test_rejoin_after_leaving_takes_new_seat(store: InMemoryEntityStore) -> None:
    async def scenario():
        live = await _schedule(store)
        first, _ = await live_class_service.join(store, "u1", live.id)
        await live_class_service.leave(store, "u1", live.id)
        second, joined = await live_class_service.join(store, "u1", live.id)
        return first, second, joined, await store.live_classes.list_attendees(live.id)

    first, second, joined, attendees = asyncio.run(scenario())
    assert joined is True
    assert first.id != second.id
    assert len(attendees) == 2


def test_naive_schedule_rejected(store: InMemoryEntityStore) -> None:
    with pytest.raises(ValidationError, match="timezone"):
        asyncio.run(
            live_class_service.create_live_class(
                store,
                INSTRUCTOR,
                title="t",
                scheduled_at=datetime(2030, 1, 1, 10, 0),
                duration=30,
            )
        )


def test_learner_cannot_schedule(store: InMemoryEntityStore) -> None:
    with pytest.raises(PermissionDenied):
        asyncio.run(
            live_class_service.create_live_class(
                store,
                principal("u1"),
                title="t",
                scheduled_at=datetime.now(UTC),
                duration=30,
            )
        )


def test_upcoming_sorted_soonest_first(store: InMemoryEntityStore) -> None:
    async def scenario():
        later = await _schedule(store, hours=5)
        sooner = await _schedule(store, hours=1)
        await _schedule(store, hours=-1)
        return later, sooner, await live_class_service.list_upcoming(store)

    later, sooner, upcoming = asyncio.run(scenario())
    assert [c.id for c in upcoming] == [sooner.id, later.id]
