"""Fixed-capacity ring store with FIFO eviction.

Provides bounded in-memory retention: once the store is full, every
append evicts the oldest entry. Surviving entries are never reordered
or mutated.
"""

from collections import deque
from collections.abc import Iterable
from typing import Generic, TypeVar

T = TypeVar("T")


class RingStore(Generic[T]):
    """Insertion-ordered container holding at most ``capacity`` items.

    A capacity of 0 is allowed and keeps the store permanently empty.

    Args:
        capacity: Maximum number of items to retain.

    Raises:
        ValueError: If capacity is negative.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._items: deque[T] = deque(maxlen=capacity)
        self._evicted = 0

    @property
    def capacity(self) -> int:
        """Maximum number of retained items."""
        return self._items.maxlen or 0

    @property
    def evicted_count(self) -> int:
        """Total number of items dropped by eviction so far."""
        return self._evicted

    def append(self, item: T) -> None:
        """Add an item at the tail, evicting the oldest one when full."""
        if len(self._items) == self.capacity:
            # deque drops the head itself (or the new item when capacity is 0)
            self._evicted += 1
        self._items.append(item)

    def extend(self, items: Iterable[T]) -> None:
        """Append several items in order."""
        for item in items:
            self.append(item)

    def snapshot(self) -> tuple[T, ...]:
        """Return an immutable copy of the current contents, oldest first."""
        return tuple(self._items)

    def size(self) -> int:
        """Return the number of retained items."""
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        """Drop every retained item."""
        self._items.clear()
