"""
Shared pytest fixtures and configuration for resource-commands tests.

This module provides:
- Recording executors for statement-level assertions
- An in-memory ``SQLitePool`` with the sample tables created
- Logging reset between tests

Sample resources live in ``tests/fixtures/slep.py``; executor doubles in
``tests/fixtures/doubles.py``.
"""

from __future__ import annotations

import sys
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio
import structlog

# Ensure the package and the fixtures modules are importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from resource_commands.core.adapters import SQLitePool
from resource_commands.core.dialect import Backend

from fixtures.doubles import RecordingExecutor
from fixtures.slep import SQLITE_DDL


@pytest.fixture
def pg_executor() -> RecordingExecutor:
    return RecordingExecutor(Backend.POSTGRES)


@pytest.fixture
def sqlite_executor() -> RecordingExecutor:
    return RecordingExecutor(Backend.SQLITE)


@pytest_asyncio.fixture
async def sqlite_pool() -> AsyncIterator[SQLitePool]:
    """Connected in-memory pool with the sample tables created."""
    async with SQLitePool(":memory:") as pool:
        await pool.executescript(SQLITE_DDL)
        yield pool
        # a test may have pointed structlog at a capture stream that is closed by now
        structlog.reset_defaults()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop structlog configuration and bound context after each test."""
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
