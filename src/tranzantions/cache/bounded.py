"""Bounded insertion-ordered key cache used by the in-memory ledger."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Generic, TypeVar

V = TypeVar("V")

DEFAULT_CAPACITY = 1000
DEFAULT_RETAIN = 500


class BoundedKeyCache(Generic[V]):
    """Thread-safe map with a fixed capacity and batch eviction.

    Keys are kept in insertion order. When an insert pushes the size past
    ``capacity``, only the newest ``retain`` entries survive. Re-adding an
    existing key does not refresh its position.

    ``add`` is an atomic check-and-insert, so two callers racing on the
    same key see exactly one ``True``.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, retain: int = DEFAULT_RETAIN) -> None:
        if capacity < 1:
            msg = "capacity must be positive"
            raise ValueError(msg)
        if not 0 <= retain <= capacity:
            msg = "retain must be between 0 and capacity"
            raise ValueError(msg)
        self._capacity = capacity
        self._retain = retain
        self._entries: OrderedDict[str, V] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def retain(self) -> int:
        return self._retain

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def add(self, key: str, value: V) -> bool:
        """Insert *key* unless present. Returns False if it already existed."""
        with self._lock:
            if key in self._entries:
                return False
            self._entries[key] = value
            if len(self._entries) > self._capacity:
                self._evict()
            return True

    def get(self, key: str) -> V | None:
        with self._lock:
            return self._entries.get(key)

    def values(self) -> list[V]:
        """Snapshot of stored values, oldest first."""
        with self._lock:
            return list(self._entries.values())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict(self) -> None:
        # Caller holds the lock.
        drop = len(self._entries) - self._retain
        for _ in range(drop):
            self._entries.popitem(last=False)
