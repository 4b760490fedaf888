"""Bounded in-memory cache with TTL expiry and LRU eviction."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_MAX_SIZE = 1000
DEFAULT_TTL = 5 * 60.0  # seconds


@dataclass
class CacheEntry(Generic[T]):
    """A cached value with its creation time and time-to-live."""

    value: T
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl or self.ttl <= 0


class BoundedCache(Generic[T]):
    """Key-value store bounded by size, with lazy TTL expiry.

    Insertion order doubles as recency order: a hit or a ``set`` moves the
    entry to the tail, eviction removes from the head.  There is no
    background sweep; expired entries are dropped when a lookup or
    :meth:`values` encounters them.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, default_ttl: float = DEFAULT_TTL) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._store: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> T | None:
        """Return the live value for *key*, or ``None`` on miss or expiry."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_expired(time.monotonic()):
                del self._store[key]
                return None
            self._store.move_to_end(key)
            return entry.value

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        """Store *value* under *key*, evicting least-recently-used entries."""
        with self._lock:
            self._store.pop(key, None)
            while len(self._store) >= self.max_size:
                self._store.popitem(last=False)
            self._store[key] = CacheEntry(
                value=value,
                created_at=time.monotonic(),
                ttl=self.default_ttl if ttl is None else ttl,
            )

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> bool:
        """Remove *key*; return True if it was present."""
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    @property
    def size(self) -> int:
        return len(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def values(self) -> list[T]:
        """Return all live values, dropping any expired entries found on the way."""
        now = time.monotonic()
        with self._lock:
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]
            return [entry.value for entry in self._store.values()]
