"""Connection management for SQLite-backed sample stores."""

import asyncio
import sqlite3
import threading
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager

import aiosqlite

MEMORY_DB = ":memory:"


def is_memory_db(db_path: str) -> bool:
    return db_path == MEMORY_DB


class AsyncConnectionManager:
    """Manages async (aiosqlite) connections to a file database.

    Handles schema initialization and opens a fresh connection per use.
    :memory: databases are connection-scoped, so stores serve them through
    SyncConnectionManager only.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        if is_memory_db(db_path):
            raise ValueError("AsyncConnectionManager requires a file database")
        self._db_path = db_path
        self._schema = schema
        self._initialized = False
        self._init_lock: asyncio.Lock | None = None

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the initialization lock (lazy to avoid event loop issues)."""
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute("PRAGMA journal_mode=WAL")
                await db.executescript(self._schema)
            self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection that is closed afterwards."""
        await self._ensure_initialized()
        db = await aiosqlite.connect(self._db_path)
        try:
            yield db
        finally:
            await db.close()


class SyncConnectionManager:
    """Manages sync (sqlite3) database connections.

    The engine scans from whichever thread runs the query, so the persistent
    :memory: connection is opened with check_same_thread=False and every use
    of it is serialised by a lock. File databases get a fresh connection per
    use.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._initialized = False
        self._init_lock = threading.Lock()
        self._memory_lock = threading.RLock()
        self._persistent_conn: sqlite3.Connection | None = None

    @property
    def _is_memory(self) -> bool:
        return is_memory_db(self._db_path)

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            if self._is_memory:
                self._persistent_conn = sqlite3.connect(
                    MEMORY_DB, check_same_thread=False
                )
                self._persistent_conn.executescript(self._schema)
            else:
                with sqlite3.connect(self._db_path) as db:
                    db.execute("PRAGMA journal_mode=WAL")
                    db.executescript(self._schema)
            self._initialized = True

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection, closing it afterwards unless it is persistent."""
        self._ensure_initialized()
        if self._is_memory:
            if self._persistent_conn is None:
                raise RuntimeError("Sync memory database connection not initialized")
            with self._memory_lock:
                yield self._persistent_conn
            return
        conn = sqlite3.connect(self._db_path)
        try:
            yield conn
        finally:
            conn.close()

    def close(self) -> None:
        if self._persistent_conn is not None:
            self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False
