"""
Bounded result cache with FIFO eviction.

Values are stored as tuples so a cached snapshot can never be mutated
through a list that is later extended by pagination.
"""
from __future__ import annotations

import logging
from typing import Generic, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResultCache(Generic[T]):
    """
    Query -> page-0 snapshot store.

    Once the entry count exceeds ``max_size`` the oldest inserted entry is
    evicted. A ``max_size`` of 0 or less disables storage entirely.
    """

    def __init__(self, max_size: int = 100) -> None:
        self._max_size = max_size
        self._entries: dict[str, tuple[T, ...]] = {}

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, key: str) -> tuple[T, ...] | None:
        return self._entries.get(key)

    def put(self, key: str, items: Iterable[T]) -> None:
        """Store a snapshot copy of *items* under *key*."""
        if self._max_size <= 0:
            return
        # Re-inserting a key counts as a fresh insertion.
        self._entries.pop(key, None)
        self._entries[key] = tuple(items)
        while len(self._entries) > self._max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug("Evicted cached results for %r", oldest)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        """Keys in insertion order, oldest first."""
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
