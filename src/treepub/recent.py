"""Bounded collector keeping the most recent items of a stream."""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Iterable
from datetime import datetime
from typing import Generic, TypeVar

T = TypeVar("T")

Timestamp = datetime | float


class RecentItems(Generic[T]):
    """Keep the ``capacity`` items with the greatest timestamps.

    Items live in a min-heap keyed by ``(timestamp, sequence)`` so the oldest
    item is always the one evicted. Equal timestamps are evicted in insertion
    order, and ``drain`` yields the exact reverse of eviction order.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        self.capacity = capacity
        self._heap: list[tuple[Timestamp, int, T]] = []
        self._sequence = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def push(self, timestamp: Timestamp, item: T) -> None:
        """Insert an item, evicting the oldest one when over capacity."""
        heapq.heappush(self._heap, (timestamp, next(self._sequence), item))
        while len(self._heap) > self.capacity:
            self.pop_min()

    def extend(self, entries: Iterable[tuple[Timestamp, T]]) -> None:
        for timestamp, item in entries:
            self.push(timestamp, item)

    def pop_min(self) -> T:
        """Remove and return the item with the smallest timestamp."""
        return heapq.heappop(self._heap)[2]

    def drain(self) -> list[T]:
        """Empty the collector, returning its items most recent first."""
        ordered = sorted(self._heap, key=lambda entry: (entry[0], entry[1]), reverse=True)
        self._heap = []
        return [item for _timestamp, _seq, item in ordered]
