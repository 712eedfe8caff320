"""Bounded LRU cache for aggregation results.

Entries are keyed by exact query (metric set, range, resolution) and are
stamped with the sample version they were computed against. Ingestion
events drop every entry whose range they touch.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass

from vitalseries.core.models import CacheKey, IngestionEvent, SeriesResult

logger = logging.getLogger(__name__)

DEFAULT_CACHE_CAPACITY = 50

SeriesMap = dict[str, SeriesResult]


@dataclass
class CacheEntry:
    """A memoised result and the sample version it is valid for."""

    value: SeriesMap
    inserted_at: float
    covered_through_sample_version: int


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time counters for a ResultCache."""

    hits: int
    misses: int
    evictions: int
    invalidations: int
    size: int
    capacity: int


class ResultCache:
    """Thread-safe LRU cache of aggregation results.

    Every public method holds a single lock for the duration of the map
    operation only; callers compute results outside of it.

    Args:
        capacity: Maximum number of entries before the least recently read
            entry is evicted.
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._invalidations = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: CacheKey, current_version: int) -> SeriesMap | None:
        """Return a copy of the cached result, or None on a miss.

        An entry computed against a different sample version is stale; it
        is dropped and the lookup counts as a miss.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.covered_through_sample_version != current_version:
                del self._entries[key]
                self._invalidations += 1
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return dict(entry.value)

    def put(self, key: CacheKey, value: SeriesMap, sample_version: int) -> None:
        """Store a result computed against sample_version."""
        entry = CacheEntry(
            value=dict(value),
            inserted_at=time.time(),
            covered_through_sample_version=sample_version,
        )
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self._capacity:
                self._entries.popitem(last=False)
                self._evictions += 1

    def invalidate(
        self, start: float, end: float, sample_version: int | None = None
    ) -> int:
        """Drop every entry whose range intersects the closed span [start, end].

        Args:
            start: Smallest timestamp of the newly ingested samples.
            end: Largest timestamp of the newly ingested samples.
            sample_version: Store version after the ingestion. Surviving
                entries computed against the version just before it are
                advanced, since the new samples cannot affect them.

        Returns:
            Number of entries dropped.
        """
        with self._lock:
            stale = [key for key in self._entries if key.overlaps(start, end)]
            for key in stale:
                del self._entries[key]
            self._invalidations += len(stale)
            if sample_version is not None:
                for entry in self._entries.values():
                    if entry.covered_through_sample_version == sample_version - 1:
                        entry.covered_through_sample_version = sample_version
        if stale:
            logger.info(
                "Invalidated %d cached series for [%s, %s]", len(stale), start, end
            )
        return len(stale)

    def handle_ingestion(self, event: IngestionEvent) -> None:
        """Ingestion callback suitable for SampleStorePort.subscribe_to_ingestion."""
        self.invalidate(event.start, event.end, event.sample_version)

    def clear(self) -> None:
        with self._lock:
            self._invalidations += len(self._entries)
            self._entries.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                invalidations=self._invalidations,
                size=len(self._entries),
                capacity=self._capacity,
            )

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
