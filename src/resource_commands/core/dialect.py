"""SQL dialect fragments for the two supported backends.

The statement compiler never spells dialect-specific syntax itself. It asks
a ``Dialect`` for placeholders, conflict targets, "excluded" references and
table qualification, so one compilation algorithm serves both backends.

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     Dialect Fragments                             │
    └──────────────────────────────────────────────────────────────────┘

                       PostgreSQL                  SQLite
    placeholder        $1, $2::slep.kind           $1, $2
    table              slep.message                message
    conflict target    ON CONSTRAINT message_pkey  (id, gid)
    excluded value     EXCLUDED.col                EXCLUDED.col

Both dialects number placeholders ``$1..$N``. PostgreSQL (asyncpg) binds
them positionally; SQLite treats ``$1`` as a named parameter called
``1``, which the SQLite adapter binds from a mapping.

Examples:
    >>> from resource_commands.core.dialect import Backend, get_dialect
    >>> pg = get_dialect(Backend.POSTGRES)
    >>> pg.placeholder(0, cast="slep.message_type")
    '$1::slep.message_type'
    >>> get_dialect("sqlite").conflict_target("message_pkey", ["id"])
    '(id)'

Guardrails:
    ❌ DON'T: Build ``ON CONFLICT`` clauses outside a Dialect
    ✅ DO: Add a dialect method and use it from the compiler

Tags:
    dialect, sql, postgresql, sqlite, resource-commands
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable


class Backend(str, Enum):
    """Supported SQL backends. The value is the wire-free backend tag."""

    POSTGRES = "postgres"
    SQLITE = "sqlite"


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment. ``index`` arguments are 0-based
    positions in the bound parameter list.
    """

    @property
    def backend(self) -> Backend:
        """Backend this dialect renders for."""
        ...

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def table(self, table_name: str, schema_name: str | None = None) -> str:
        """Table reference, schema-qualified where the backend supports it."""
        ...

    def placeholder(self, index: int, cast: str | None = None) -> str:
        """Single positional placeholder, with a type cast if supported."""
        ...

    def conflict_target(self, constraint: str, key_columns: list[str]) -> str:
        """Text following ``ON CONFLICT`` that identifies the duplicate key."""
        ...

    def excluded(self, column: str) -> str:
        """Reference to the proposed (rejected) value of ``column``."""
        ...


class PostgreSQLDialect:
    """PostgreSQL: ``$n::type`` placeholders, named-constraint conflict target."""

    @property
    def backend(self) -> Backend:
        return Backend.POSTGRES

    @property
    def name(self) -> str:
        return "postgresql"

    def table(self, table_name: str, schema_name: str | None = None) -> str:
        if schema_name:
            return f"{schema_name}.{table_name}"
        return table_name

    def placeholder(self, index: int, cast: str | None = None) -> str:
        if cast:
            return f"${index + 1}::{cast}"
        return f"${index + 1}"

    def conflict_target(self, constraint: str, key_columns: list[str]) -> str:  # noqa: ARG002
        return f"ON CONSTRAINT {constraint}"

    def excluded(self, column: str) -> str:
        return f"EXCLUDED.{column}"


class SQLiteDialect:
    """SQLite: plain ``$n`` placeholders, primary-key column conflict target.

    SQLite has no cast suffix syntax and no named conflict targets, so casts
    are dropped and the constraint name is ignored. A key-less table gets
    no conflict target at all (SQLite 3.35+). The schema name is not
    applied either: in SQLite ``schema.table`` addresses an attached
    database, not a namespace.
    """

    @property
    def backend(self) -> Backend:
        return Backend.SQLITE

    @property
    def name(self) -> str:
        return "sqlite"

    def table(self, table_name: str, schema_name: str | None = None) -> str:  # noqa: ARG002
        return table_name

    def placeholder(self, index: int, cast: str | None = None) -> str:  # noqa: ARG002
        return f"${index + 1}"

    def conflict_target(self, constraint: str, key_columns: list[str]) -> str:  # noqa: ARG002
        if not key_columns:
            return ""
        return f"({', '.join(key_columns)})"

    def excluded(self, column: str) -> str:
        return f"EXCLUDED.{column}"


# =========================================================================
# Lookup
# =========================================================================

# Dialects are stateless; one instance per backend.
_DIALECTS: dict[Backend, Dialect] = {
    Backend.POSTGRES: PostgreSQLDialect(),
    Backend.SQLITE: SQLiteDialect(),
}

_ALIASES: dict[str, Backend] = {"postgresql": Backend.POSTGRES}


def resolve_backend(backend: Backend | str) -> Backend:
    """Normalise a backend tag or alias (``'postgresql'``) to :class:`Backend`."""
    if isinstance(backend, Backend):
        return backend
    key = backend.lower()
    try:
        return _ALIASES.get(key) or Backend(key)
    except ValueError:
        raise ValueError(
            f"Unknown backend '{backend}'. Supported: {sorted(b.value for b in Backend)}"
        ) from None


def get_dialect(backend: Backend | str) -> Dialect:
    """Get the dialect for a backend tag.

    Args:
        backend: :class:`Backend` member or one of ``'postgres'``,
                 ``'postgresql'``, ``'sqlite'``.

    Raises:
        ValueError: If ``backend`` is not recognised.
    """
    return _DIALECTS[resolve_backend(backend)]


__all__ = [
    "Backend",
    "Dialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "get_dialect",
    "resolve_backend",
]
