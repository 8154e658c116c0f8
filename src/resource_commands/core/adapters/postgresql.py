"""PostgreSQL executor pool (asyncpg).

asyncpg uses ``$1..$N`` placeholders natively, so compiled statements are
passed through unchanged and values are bound positionally.
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import asyncpg

from ..dialect import Backend
from ..errors import ExecutionError
from ..logging import get_logger

logger = get_logger(__name__)

# Errors asyncpg raises for failed statements and broken connections.
DRIVER_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)


def normalize_database_url(url: str) -> str:
    """Normalize a database URL for asyncpg.

    Converts SQLAlchemy-style URLs (``postgresql+asyncpg://``) to plain
    PostgreSQL URLs and removes the unsupported ``sslmode`` parameter.

    Examples:
        >>> normalize_database_url("postgresql+asyncpg://localhost/db")
        'postgresql://localhost/db'

        >>> normalize_database_url("postgresql://localhost/db?sslmode=require")
        'postgresql://localhost/db'
    """
    if url.startswith("postgresql+asyncpg://"):
        url = url.replace("postgresql+asyncpg://", "postgresql://", 1)

    if "?sslmode=" in url or "&sslmode=" in url:
        url = re.sub(r"[?&]sslmode=[^&]*", "", url)
        url = url.rstrip("?&")

    return url


class PostgreSQLExecutor:
    """Executor over one asyncpg connection (inside or outside a transaction)."""

    def __init__(self, conn: Any):
        self._conn = conn

    @property
    def backend(self) -> Backend:
        return Backend.POSTGRES

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> str:
        """Run one statement; returns the asyncpg status string (``'INSERT 0 1'``)."""
        try:
            return await self._conn.execute(sql, *params)
        except DRIVER_ERRORS as e:
            raise ExecutionError(f"PostgreSQL execution failed: {e}", cause=e) from e


class PostgreSQLPool:
    """
    Executor pool over an asyncpg connection pool.

    ``acquire()`` hands out a pooled connection; statements auto-commit.
    ``transaction()`` starts an asyncpg transaction on a pooled connection,
    commits on clean exit and rolls back if the block raises.

    Examples:
        >>> async with PostgreSQLPool("postgresql://localhost/slep") as pool:
        ...     await Multi(commands).execute(pool)
    """

    def __init__(
        self,
        database_url: str,
        *,
        min_size: int = 1,
        max_size: int = 10,
        command_timeout: float = 60.0,
        **kwargs: Any,
    ):
        self._database_url = normalize_database_url(database_url)
        self._min_size = min_size
        self._max_size = max_size
        self._command_timeout = command_timeout
        self._options = kwargs
        self._pool: Any = None

    @property
    def backend(self) -> Backend:
        return Backend.POSTGRES

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Create the asyncpg pool (no-op when already created)."""
        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(
                self._database_url,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
                **self._options,
            )
        except DRIVER_ERRORS as e:
            raise ExecutionError(f"Failed to connect to PostgreSQL: {e}", cause=e) from e
        logger.info(
            "pool_connected",
            backend=self.backend.value,
            min_size=self._min_size,
            max_size=self._max_size,
        )

    async def close(self) -> None:
        """Close the pool, waiting for borrowed connections to return."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("pool_closed", backend=self.backend.value)

    async def _ensure_pool(self) -> Any:
        if self._pool is None:
            await self.connect()
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[PostgreSQLExecutor]:
        """Borrow a pooled connection in auto-commit mode."""
        pool = await self._ensure_pool()
        async with pool.acquire() as conn:
            yield PostgreSQLExecutor(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgreSQLExecutor]:
        """Start a transaction; commit on clean exit, roll back if the block raises."""
        pool = await self._ensure_pool()
        async with pool.acquire() as conn:
            tx = conn.transaction()
            try:
                await tx.start()
            except DRIVER_ERRORS as e:
                raise ExecutionError(f"PostgreSQL BEGIN failed: {e}", cause=e) from e
            try:
                yield PostgreSQLExecutor(conn)
            except BaseException:
                await tx.rollback()
                raise
            try:
                await tx.commit()
            except DRIVER_ERRORS as e:
                raise ExecutionError(f"PostgreSQL COMMIT failed: {e}", cause=e).with_context(
                    operation="commit", backend=self.backend.value
                ) from e

    async def __aenter__(self) -> PostgreSQLPool:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


__all__ = [
    "DRIVER_ERRORS",
    "PostgreSQLExecutor",
    "PostgreSQLPool",
    "normalize_database_url",
]
