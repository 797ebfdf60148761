"""SQLite storage layer via aiosqlite."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS reports (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    type TEXT NOT NULL,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    created_by TEXT NOT NULL,
    image_url TEXT,
    resolved_image_url TEXT,
    resolved_notes TEXT,
    assigned_worker_id TEXT,
    assigned_at TIMESTAMP,
    resolved_by TEXT,
    confirmed_by TEXT,
    support_count INTEGER NOT NULL DEFAULT 0 CHECK (support_count >= 0),
    opposition_count INTEGER NOT NULL DEFAULT 0 CHECK (opposition_count >= 0),
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_reports_status ON reports(status);
CREATE INDEX IF NOT EXISTS ix_reports_created_by ON reports(created_by);
CREATE INDEX IF NOT EXISTS ix_reports_assigned_worker ON reports(assigned_worker_id);

CREATE TABLE IF NOT EXISTS votes (
    report_id TEXT NOT NULL REFERENCES reports(id),
    voter_id TEXT NOT NULL,
    vote_type TEXT NOT NULL CHECK (vote_type IN ('support', 'oppose')),
    created_at TIMESTAMP NOT NULL,
    PRIMARY KEY (report_id, voter_id)
);

CREATE TABLE IF NOT EXISTS notifications (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    report_id TEXT,
    message TEXT NOT NULL,
    notification_type TEXT NOT NULL,
    is_read INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_notifications_user ON notifications(user_id, created_at);

CREATE TABLE IF NOT EXISTS public_facilities (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    created_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS worker_locations (
    id TEXT PRIMARY KEY,
    worker_id TEXT NOT NULL UNIQUE,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
"""

# Database whose write transaction the current task is inside of
_active_transaction: ContextVar["Database | None"] = ContextVar("active_transaction", default=None)


class Database:
    """Async SQLite database shared by every store.

    Every store shares one aiosqlite connection, so write transactions on it
    are serialized by a per-connection lock. This is the one application-level
    lock in the service; correctness never depends on it: counter updates are
    single SQL increments, duplicate votes are rejected by the votes primary
    key and status changes are compare-and-swap updates.

    Reads issued while another task holds an open transaction wait for it to
    finish, so they never observe rows that may still be rolled back.
    """

    def __init__(self, path: str = "civicwatch.db", busy_timeout: float = 5.0) -> None:
        self.path = path
        self.busy_timeout = busy_timeout
        self._db: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    async def connect(self) -> None:
        # isolation_level=None: transactions are opened explicitly in transaction()
        self._db = await aiosqlite.connect(
            self.path, timeout=self.busy_timeout, isolation_level=None
        )
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        await self._db.executescript(SCHEMA)
        logger.info("Connected to database %s", self.path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Database not connected, call connect() first")
        return self._db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run the enclosed statements as one atomic unit.

        Nested calls from the same task join the outer transaction.
        """
        if _active_transaction.get() is self:
            yield self.db
            return

        async with self._write_lock:
            token = _active_transaction.set(self)
            try:
                await self.db.execute("BEGIN IMMEDIATE")
                try:
                    yield self.db
                except BaseException:
                    await self.db.execute("ROLLBACK")
                    raise
                await self.db.execute("COMMIT")
            finally:
                _active_transaction.reset(token)

    @asynccontextmanager
    async def _committed_view(self) -> AsyncIterator[aiosqlite.Connection]:
        # Inside our own transaction we read our own writes
        if _active_transaction.get() is self or not self._write_lock.locked():
            yield self.db
            return
        async with self._write_lock:
            yield self.db

    # -- Query helpers --

    async def fetch_one(self, sql: str, params: tuple = ()) -> dict | None:
        async with self._committed_view() as conn:
            cursor = await conn.execute(sql, params)
            row = await cursor.fetchone()
            await cursor.close()
        return dict(row) if row else None

    async def fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        async with self._committed_view() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            await cursor.close()
        return [dict(r) for r in rows]

    async def execute(self, sql: str, params: tuple = ()) -> int:
        """Execute a write statement inside a transaction and return the affected row count."""
        async with self.transaction() as conn:
            cursor = await conn.execute(sql, params)
            rowcount = cursor.rowcount
            await cursor.close()
            return rowcount
