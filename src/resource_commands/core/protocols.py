"""
Executor protocols: the seam between resource-commands and a database driver.

Manifesto:
    The resource runtime only needs one capability from a database: run a
    parameterized statement with positional values. Everything else
    (pooling, transactions, driver quirks) lives behind these protocols,
    so the same resource code runs on asyncpg and aiosqlite.

Architecture:
    ::

        protocols.py
        ├── Executor      runs one statement (connection or transaction)
        └── ExecutorPool  hands out Executors: acquire() / transaction()

    Implementations:
        adapters/sqlite.py      SQLitePool      (aiosqlite)
        adapters/postgresql.py  PostgreSQLPool  (asyncpg)

Guardrails:
    ❌ DON'T: Keep an Executor after the ``async with`` block that produced it
    ✅ DO: Treat every Executor as owned by the call that is using it

    ❌ DON'T: Raise driver exceptions from ``execute``
    ✅ DO: Raise ExecutionError with the driver error as ``cause``

Tags:
    protocol, executor, async, database, resource-commands
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol, runtime_checkable

from .dialect import Backend


@runtime_checkable
class Executor(Protocol):
    """
    Anything able to run one parameterized statement.

    An executor is either a plain connection (each statement commits on its
    own) or a handle inside an open transaction (nothing is visible until
    the transaction commits). Callers cannot tell the two apart, which is
    what lets the same ``Action`` run in both ``Single`` and ``Multi``
    batches.

    Examples:
        >>> async with pool.acquire() as executor:
        ...     await executor.execute("DELETE FROM message WHERE id = $1", (7,))
    """

    @property
    def backend(self) -> Backend:
        """Backend tag; selects which compiled statements are used."""
        ...

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute ``sql`` with positional ``params`` bound to ``$1..$N``.

        Raises:
            ExecutionError: Any failure reported by the driver.
        """
        ...


@runtime_checkable
class ExecutorPool(Protocol):
    """
    Source of executors for ``Commands.execute``.

    ``acquire()`` yields an auto-committing executor. ``transaction()``
    yields an executor inside one transaction, commits on clean exit and
    rolls back when the block raises.
    """

    @property
    def backend(self) -> Backend:
        """Backend tag of every executor this pool hands out."""
        ...

    def acquire(self) -> AbstractAsyncContextManager[Executor]:
        """Borrow an auto-committing executor."""
        ...

    def transaction(self) -> AbstractAsyncContextManager[Executor]:
        """Open a transaction and yield its executor."""
        ...


__all__ = [
    "Executor",
    "ExecutorPool",
]
