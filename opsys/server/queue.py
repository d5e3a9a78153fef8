"""Bounded first-in first-out store of pending replies."""

from __future__ import annotations

from collections import deque
from typing import Generic, TypeVar

__all__ = ["BoundedQueue"]

T = TypeVar("T")


class BoundedQueue(Generic[T]):
    """A queue with a fixed capacity; inserts into a full queue are dropped.

    It is not synchronised: callers share it under their own lock.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self.capacity = capacity
        self.total_inserted = 0
        self._items: deque[T] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def top(self) -> T:
        """Return the oldest item without removing it."""
        if not self._items:
            raise IndexError("top of an empty queue")
        return self._items[0]

    def is_empty(self) -> bool:
        """Return whether the queue holds nothing."""
        return not self._items

    def is_full(self) -> bool:
        """Return whether the queue is at its capacity."""
        return len(self._items) >= self.capacity

    def insert(self, item: T) -> bool:
        """Append ``item`` unless the queue is full; return whether it was added."""
        if self.is_full():
            return False
        self._items.append(item)
        self.total_inserted += 1
        return True

    def pop(self) -> T:
        """Remove and return the oldest item."""
        if not self._items:
            raise IndexError("pop from an empty queue")
        return self._items.popleft()