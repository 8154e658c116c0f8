"""Executor pools for the supported backends.

Architecture::

    ExecutorPool (protocols.py)
        |-- SQLitePool        aiosqlite, one locked connection
        |-- PostgreSQLPool    asyncpg connection pool

Both pools are async context managers, hand out executors through
``acquire()`` (auto-commit) and ``transaction()`` (all-or-nothing), and
translate driver exceptions into ``ExecutionError``.
"""

from .postgresql import PostgreSQLExecutor, PostgreSQLPool, normalize_database_url
from .sqlite import SQLiteExecutor, SQLitePool

__all__ = [
    "PostgreSQLExecutor",
    "PostgreSQLPool",
    "SQLiteExecutor",
    "SQLitePool",
    "normalize_database_url",
]
