"""A small sorted set backed by a list and binary search."""

from __future__ import annotations

import bisect
from typing import Any, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class VecSet(Generic[T]):
    """A sorted set suited to a handful of elements and positional access."""

    def __init__(self) -> None:
        self._items: List[T] = []

    def _find(self, item: T) -> int:
        idx = bisect.bisect_left(self._items, item)
        if idx < len(self._items) and self._items[idx] == item:
            return idx
        return -1

    def insert(self, item: T) -> bool:
        """Add an item; return False if it was already present."""
        idx = bisect.bisect_left(self._items, item)
        if idx < len(self._items) and self._items[idx] == item:
            return False
        self._items.insert(idx, item)
        return True

    def remove(self, item: T) -> Optional[T]:
        """Remove an item by value, returning it, or None if absent."""
        idx = self._find(item)
        if idx < 0:
            return None
        return self._items.pop(idx)

    def __contains__(self, item: object) -> bool:
        try:
            return self._find(item) >= 0  # type: ignore[arg-type]
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def get(self, idx: int) -> Optional[T]:
        """Return the item at a sorted position, or None if out of range."""
        if 0 <= idx < len(self._items):
            return self._items[idx]
        return None

    def clear(self) -> None:
        """Remove every item."""
        self._items.clear()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, VecSet):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"VecSet({self._items!r})"