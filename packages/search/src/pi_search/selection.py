"""
Selection set kept apart from the displayed view.

Members are only removed by explicit deselection; changes to the source
items, filters, sort or query never prune it.

Items are compared by equality. Hashable items get a constant-time
membership index; unhashable ones (plain dicts, mutable pydantic models)
are found by a linear scan.
"""
from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

T = TypeVar("T")


def _is_hashable(item: Any) -> bool:
    try:
        hash(item)
    except TypeError:
        return False
    return True


class SelectionSet(Generic[T]):
    """Insertion-ordered set of selected items. Mutators report whether anything changed."""

    def __init__(self) -> None:
        self._members: list[T] = []
        self._hashed: set[Any] = set()

    def _find(self, item: T) -> int:
        hashable = _is_hashable(item)
        # The index is authoritative only while every member is hashable.
        if hashable and item not in self._hashed and len(self._hashed) == len(self._members):
            return -1
        for i, member in enumerate(self._members):
            if member is item or member == item:
                return i
        return -1

    def add(self, item: T) -> bool:
        if self._find(item) >= 0:
            return False
        self._members.append(item)
        if _is_hashable(item):
            self._hashed.add(item)
        return True

    def discard(self, item: T) -> bool:
        index = self._find(item)
        if index < 0:
            return False
        member = self._members.pop(index)
        if _is_hashable(member):
            self._hashed.discard(member)
        return True

    def toggle(self, item: T) -> bool:
        """Flip membership; returns True when the item is now selected."""
        if self.discard(item):
            return False
        return self.add(item)

    def add_all(self, items: Iterable[T]) -> bool:
        changed = False
        for item in items:
            changed = self.add(item) or changed
        return changed

    def discard_all(self, items: Iterable[T]) -> bool:
        changed = False
        for item in items:
            changed = self.discard(item) or changed
        return changed

    def add_where(self, items: Iterable[T], predicate: Callable[[T], bool]) -> bool:
        return self.add_all(item for item in items if predicate(item))

    def discard_where(self, items: Iterable[T], predicate: Callable[[T], bool]) -> bool:
        return self.discard_all(item for item in items if predicate(item))

    def clear(self) -> bool:
        if not self._members:
            return False
        self._members.clear()
        self._hashed.clear()
        return True

    def snapshot(self) -> tuple[T, ...]:
        """Members in selection order."""
        return tuple(self._members)

    def __contains__(self, item: object) -> bool:
        return self._find(item) >= 0  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._members))

    def __len__(self) -> int:
        return len(self._members)
