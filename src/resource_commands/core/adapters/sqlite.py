"""SQLite executor pool (aiosqlite)."""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite

from ..dialect import Backend
from ..errors import ExecutionError
from ..logging import get_logger

logger = get_logger(__name__)


def sqlite_bindings(params: Sequence[Any]) -> dict[str, Any]:
    """Bind positional values to ``$1..$N``.

    SQLite reads ``$1`` as a *named* parameter called ``1``, so values are
    passed as a mapping keyed by position.
    """
    return {str(index + 1): value for index, value in enumerate(params)}


class SQLiteExecutor:
    """Executor over one aiosqlite connection.

    With ``autocommit`` every statement is committed on success and rolled
    back on failure; without it the surrounding transaction decides.
    """

    def __init__(self, conn: aiosqlite.Connection, *, autocommit: bool):
        self._conn = conn
        self._autocommit = autocommit

    @property
    def backend(self) -> Backend:
        return Backend.SQLITE

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one statement; returns the affected row count."""
        try:
            cursor = await self._conn.execute(sql, sqlite_bindings(params))
            rowcount = cursor.rowcount
            await cursor.close()
            if self._autocommit:
                await self._conn.commit()
        except sqlite3.Error as e:
            if self._autocommit:
                await self._conn.rollback()
            raise ExecutionError(f"SQLite execution failed: {e}", cause=e) from e
        return rowcount


class SQLitePool:
    """
    Executor pool over a single aiosqlite connection.

    SQLite allows one writer at a time, so the pool holds one connection
    and an ``asyncio.Lock``: each ``acquire()``/``transaction()`` block
    owns the connection exclusively until it exits.

    Examples:
        >>> async with SQLitePool(":memory:") as pool:
        ...     await pool.executescript("CREATE TABLE message (id INTEGER PRIMARY KEY, ...)")
        ...     await Single(command).execute(pool)
    """

    def __init__(self, database: str = ":memory:", *, timeout: float = 5.0, **kwargs: Any):
        self._database = database
        self._timeout = timeout
        self._options = kwargs
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def backend(self) -> Backend:
        return Backend.SQLITE

    @property
    def database(self) -> str:
        return self._database

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        """Open the connection (no-op when already open)."""
        if self._conn is not None:
            return
        uri = self._database.startswith("file:")
        try:
            conn = await aiosqlite.connect(
                self._database, timeout=self._timeout, uri=uri, **self._options
            )
        except sqlite3.Error as e:
            raise ExecutionError(f"Failed to connect to SQLite: {e}", cause=e) from e
        try:
            await conn.execute("PRAGMA foreign_keys = ON")
        except BaseException as e:
            # the worker thread keeps the interpreter alive until closed
            await conn.close()
            if isinstance(e, sqlite3.Error):
                raise ExecutionError(f"Failed to connect to SQLite: {e}", cause=e) from e
            raise
        self._conn = conn
        logger.info("pool_connected", backend=self.backend.value, database=self._database)

    async def close(self) -> None:
        """Close the connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("pool_closed", backend=self.backend.value)

    async def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            await self.connect()
        return self._conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[SQLiteExecutor]:
        """Borrow the connection in auto-commit mode."""
        async with self._lock:
            conn = await self._connection()
            yield SQLiteExecutor(conn, autocommit=True)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SQLiteExecutor]:
        """``BEGIN``; commit on clean exit, roll back if the block raises."""
        async with self._lock:
            conn = await self._connection()
            try:
                await conn.execute("BEGIN")
            except sqlite3.Error as e:
                raise ExecutionError(f"SQLite BEGIN failed: {e}", cause=e) from e
            try:
                yield SQLiteExecutor(conn, autocommit=False)
            except BaseException:
                await conn.rollback()
                raise
            try:
                await conn.commit()
            except sqlite3.Error as e:
                await conn.rollback()
                raise ExecutionError(f"SQLite COMMIT failed: {e}", cause=e).with_context(
                    operation="commit", backend=self.backend.value
                ) from e

    async def executescript(self, script: str) -> None:
        """Run DDL or other multi-statement SQL outside any batch."""
        async with self._lock:
            conn = await self._connection()
            try:
                await conn.executescript(script)
            except sqlite3.Error as e:
                raise ExecutionError(f"SQLite script failed: {e}", cause=e) from e

    async def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        """Run a read query. Used for inspection (CLI, tests), not by resources."""
        async with self._lock:
            conn = await self._connection()
            try:
                async with conn.execute(sql, sqlite_bindings(params)) as cursor:
                    return [tuple(row) for row in await cursor.fetchall()]
            except sqlite3.Error as e:
                raise ExecutionError(f"SQLite query failed: {e}", cause=e) from e

    async def __aenter__(self) -> SQLitePool:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


__all__ = [
    "SQLiteExecutor",
    "SQLitePool",
    "sqlite_bindings",
]
