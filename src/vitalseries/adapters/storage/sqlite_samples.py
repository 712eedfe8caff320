"""SQLite sample store adapter."""

from collections.abc import Iterable, Iterator

from vitalseries.adapters.storage.ingestion import IngestionPublisher
from vitalseries.adapters.storage.sqlite_base import (
    AsyncConnectionManager,
    SyncConnectionManager,
    is_memory_db,
)
from vitalseries.core.models import RawSample
from vitalseries.core.ports import IngestionCallback, Unsubscribe

_SAMPLES_SCHEMA = """
CREATE TABLE IF NOT EXISTS samples (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    metric TEXT NOT NULL,
    timestamp REAL NOT NULL,
    value REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_samples_metric_timestamp
    ON samples(metric, timestamp);
"""

_INSERT_SAMPLE = """
INSERT INTO samples (metric, timestamp, value) VALUES (?, ?, ?)
"""

# id breaks timestamp ties in insertion order
_SELECT_RANGE = """
SELECT metric, timestamp, value FROM samples
WHERE metric = ? AND timestamp >= ? AND timestamp < ?
ORDER BY timestamp ASC, id ASC
"""

_COUNT_SAMPLES = """
SELECT COUNT(*) FROM samples
"""

_CLEAR_SAMPLES = """
DELETE FROM samples
"""


def _to_row(sample: RawSample) -> tuple[str, float, float]:
    return (sample.metric, sample.timestamp, sample.value)


# @tra: Adapter.SQLiteStore.ImplementsSampleStorePort
class SQLiteSampleStore:
    """SQLite implementation of SampleStorePort.

    Async writes go through aiosqlite; scans and sync writes use the
    standard sqlite3 module, since the engine's query path is blocking.
    Uses WAL mode for file databases so scans do not block writers.

    For file-based databases, sync and async methods share the same file.
    A :memory: database lives on a single sqlite3 connection, so the async
    methods run against it synchronously and every write stays visible to
    scan().

    The sample version and ingestion subscribers live on the instance:
    writes made by other processes to the same file are not observed.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._async_manager: AsyncConnectionManager | None = None
        if not is_memory_db(db_path):
            self._async_manager = AsyncConnectionManager(db_path, _SAMPLES_SCHEMA)
        self._sync_manager = SyncConnectionManager(db_path, _SAMPLES_SCHEMA)
        self._publisher = IngestionPublisher()

    # --- Async methods (aiosqlite for file databases) ---

    async def write(self, sample: RawSample) -> int:
        """Write a single sample. Returns the new sample version."""
        return await self.write_many([sample])

    async def write_many(self, samples: Iterable[RawSample]) -> int:
        """Write a batch of samples in one transaction.

        Returns:
            The new sample version. The written samples are visible to
            scan() by the time subscribers are notified.
        """
        if self._async_manager is None:
            return self.write_many_sync(samples)
        batch = list(samples)
        if batch:
            async with self._async_manager.connection() as db:
                await db.executemany(_INSERT_SAMPLE, [_to_row(s) for s in batch])
                await db.commit()
        return self._publisher.publish(batch)

    async def count(self) -> int:
        """Return total number of samples in storage."""
        if self._async_manager is None:
            return self.count_sync()
        async with self._async_manager.connection() as db:
            async with db.execute(_COUNT_SAMPLES) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def clear(self) -> None:
        """Clear all samples from storage."""
        if self._async_manager is None:
            self.clear_sync()
            return
        async with self._async_manager.connection() as db:
            await db.execute(_CLEAR_SAMPLES)
            await db.commit()

    async def close(self) -> None:
        """Close the persistent connection (for :memory: databases)."""
        self._sync_manager.close()

    # --- Sync methods using standard sqlite3 module ---

    def write_sync(self, sample: RawSample) -> int:
        """Synchronous write for non-async contexts."""
        return self.write_many_sync([sample])

    def write_many_sync(self, samples: Iterable[RawSample]) -> int:
        """Synchronous batch write for non-async contexts."""
        batch = list(samples)
        if batch:
            with self._sync_manager.connection() as conn:
                conn.executemany(_INSERT_SAMPLE, [_to_row(s) for s in batch])
                conn.commit()
        return self._publisher.publish(batch)

    def count_sync(self) -> int:
        with self._sync_manager.connection() as conn:
            row = conn.execute(_COUNT_SAMPLES).fetchone()
            return row[0] if row else 0

    def clear_sync(self) -> None:
        """Synchronous clear for non-async contexts (testing)."""
        with self._sync_manager.connection() as conn:
            conn.execute(_CLEAR_SAMPLES)
            conn.commit()

    def scan(self, metric: str, start: float, end: float) -> Iterator[RawSample]:
        """Scan samples of one metric in [start, end), ordered by timestamp.

        Rows are fetched before the first sample is yielded so that no
        connection stays open while the caller aggregates.
        """
        with self._sync_manager.connection() as conn:
            rows = conn.execute(_SELECT_RANGE, (metric, start, end)).fetchall()
        for row in rows:
            yield RawSample(metric=row[0], timestamp=row[1], value=row[2])

    def current_sample_version(self) -> int:
        return self._publisher.version

    def subscribe_to_ingestion(self, callback: IngestionCallback) -> Unsubscribe:
        return self._publisher.subscribe(callback)
