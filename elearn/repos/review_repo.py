from __future__ import annotations

from typing import Protocol

from elearn.core.errors import DuplicateError
from elearn.models.review import Review
from elearn.repos.ordering import newest_first


class ReviewRepo(Protocol):
    async def add(self, review: Review) -> None: ...
    async def list_by_course(self, course_id: str) -> list[Review]: ...
    async def count_by_course(self, course_id: str) -> int: ...


class InMemoryReviewRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Review] = {}

    def snapshot(self) -> dict[str, Review]:
        return dict(self._by_id)

    def restore(self, snap: dict[str, Review]) -> None:
        self._by_id = snap

    async def add(self, review: Review) -> None:
        if review.id in self._by_id:
            raise DuplicateError("review already exists")
        self._by_id[review.id] = review

    async def list_by_course(self, course_id: str) -> list[Review]:
        rows = [r for r in self._by_id.values() if r.course_id == course_id]
        return newest_first(rows, key=lambda r: r.created_at)

    async def count_by_course(self, course_id: str) -> int:
        return sum(1 for r in self._by_id.values() if r.course_id == course_id)

    def ratings(self, course_id: str) -> list[int]:
        return [r.rating for r in self._by_id.values() if r.course_id == course_id]
