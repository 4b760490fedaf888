"""Uniform load / cache / search contract shared by every domain repository.

A repository owns one domain's snapshot: an ordered tuple of immutable
records plus name indexes.  ``load()`` fills it either through the process
bridge or by walking the project tree; the result is cached in a
:class:`BoundedCache` so a repeated ``load()`` within the TTL only rebuilds
the indexes.  Loads are single-flight: concurrent callers wait for the
in-flight acquisition instead of starting another one.

Loads never raise.  Any fault is logged and the previous snapshot stays in
place, so a failed reload degrades to stale data instead of an empty
domain.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Generic, TypeVar

from larasense.errors import LarasenseError
from larasense.infrastructure.cache import BoundedCache

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = logging.getLogger(__name__)

R = TypeVar("R")

PRIMARY = "primary"

# One slot per logical dataset; the bound only caps pathological reloads.
CACHE_SLOTS = 10


@dataclass(frozen=True)
class Snapshot(Generic[R]):
    """Records of the last successful load and the indexes built from them."""

    records: tuple[R, ...] = ()
    indexes: Mapping[str, Mapping[str, R]] = field(default_factory=dict)


class Repository(Generic[R]):
    """Base class for the twelve domain repositories.

    Subclasses set :attr:`domain` and :attr:`ttl` and implement
    :meth:`_acquire` and :meth:`key_of`.  They may override
    :meth:`_build_indexes` for extra indexes or :meth:`_matches` for a
    broader search.
    """

    domain: ClassVar[str] = ""
    ttl: ClassVar[float] = 10 * 60.0
    first_wins: ClassVar[bool] = False

    def __init__(self, *, ttl: float | None = None) -> None:
        self.cache: BoundedCache[tuple[R, ...]] = BoundedCache(
            CACHE_SLOTS, self.ttl if ttl is None else ttl
        )
        self._snapshot: Snapshot[R] = Snapshot()
        self._state_lock = threading.Lock()
        self._in_flight: threading.Event | None = None
        self.acquisitions = 0

    # -- subclass hooks -----------------------------------------------------

    def _acquire(self) -> Sequence[R]:
        """Fetch fresh records from the bridge or the filesystem."""
        raise NotImplementedError

    def key_of(self, record: R) -> str:
        """Return the primary name/key of *record*."""
        raise NotImplementedError

    def _build_indexes(self, records: tuple[R, ...]) -> dict[str, Mapping[str, R]]:
        primary: dict[str, R] = {}
        for record in records:
            key = self.key_of(record)
            if self.first_wins and key in primary:
                continue
            primary[key] = record
        return {PRIMARY: primary}

    def _matches(self, record: R, needle: str) -> bool:
        return needle in self.key_of(record).lower()

    def _on_failure(self, exc: Exception) -> None:
        """Called after a failed acquisition; the default keeps the old snapshot."""

    # -- contract -----------------------------------------------------------

    @property
    def loading(self) -> bool:
        return self._in_flight is not None

    def load(self) -> None:
        """Load the domain unless a load is already in flight.

        A concurrent caller blocks until the in-flight load settles and
        then returns without acquiring again.
        """
        with self._state_lock:
            waiter = self._in_flight
            if waiter is None:
                self._in_flight = threading.Event()
        if waiter is not None:
            waiter.wait()
            return

        try:
            self._load_once()
        finally:
            with self._state_lock:
                done, self._in_flight = self._in_flight, None
            if done is not None:
                done.set()

    def reload(self) -> None:
        """Drop the cached snapshot and load again."""
        self.cache.clear()
        waiter = self._in_flight
        if waiter is not None:
            # The in-flight load may predate the change that triggered us.
            waiter.wait()
            self.cache.clear()
        self.load()

    def find(self, name: str) -> R | None:
        return self._snapshot.indexes.get(PRIMARY, {}).get(name)

    find_by_name = find
    find_by_key = find

    def search(self, prefix: str = "") -> list[R]:
        """Case-insensitive substring search on the primary key, load order kept."""
        records = self._snapshot.records
        if not prefix:
            return list(records)
        needle = prefix.lower()
        return [r for r in records if self._matches(r, needle)]

    def all(self) -> list[R]:
        return list(self._snapshot.records)

    def count(self) -> int:
        return len(self._snapshot.records)

    # -- internals ----------------------------------------------------------

    def _index(self, name: str) -> Mapping[str, R]:
        return self._snapshot.indexes.get(name, {})

    def _publish(self, records: tuple[R, ...]) -> None:
        # Single attribute swap: readers see either the old or the new snapshot.
        self._snapshot = Snapshot(records, self._build_indexes(records))

    def _load_once(self) -> None:
        cached = self.cache.get(self.domain)
        if cached is not None:
            self._publish(cached)
            return

        self.acquisitions += 1
        try:
            records = tuple(self._acquire())
        except (LarasenseError, OSError) as exc:
            logger.warning("[%s] Failed to load: %s", self.domain, exc)
            self._on_failure(exc)
            return

        self._publish(records)
        self.cache.set(self.domain, records)
        logger.info("[%s] Loaded %d records", self.domain, len(records))
