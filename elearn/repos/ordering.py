from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")


def newest_first(items: Iterable[T], *, key: Callable[[T], Any]) -> list[T]:
    """Sort descending by `key`; ties go to the most recently inserted item.

    In-memory repos keep insertion order in their dicts, so reversing
    before the (stable) sort makes equal timestamps come out newest first,
    matching `ORDER BY ts DESC` on a real clock.
    """
    return sorted(reversed(list(items)), key=key, reverse=True)
