"""Statement compiler: ResourceSchema -> parameterized insert/upsert/delete SQL.

Manifesto:
    Statements are derived from schema metadata, never written by hand.
    The compiler is a pure function: same schema and backend in, same text
    out. That makes the generated SQL testable as plain strings and lets
    the runtime compile each statement set once and reuse it forever.

Algorithm::

    columns      = primary keys ++ fields                (keys first)
    select_list  = ", ".join(columns)
    placeholders = $1..$N over columns (PostgreSQL adds ::cast)

    insert = INSERT INTO <table> ( <select_list> ) VALUES ( <placeholders> )
    upsert = <insert> ON CONFLICT <target> DO UPDATE SET f = EXCLUDED.f, ...
    delete = DELETE FROM <table> WHERE k1 = $1 AND k2 = $2 ...

    target: ON CONSTRAINT <constraint>  (PostgreSQL)
            (<key columns>)             (SQLite)

``update`` has no statement of its own; the runtime reuses ``upsert``.

Edge cases:
    - No fields: ``DO UPDATE SET`` would be empty and is rejected by both
      backends, so the upsert becomes ``DO NOTHING``.
    - No primary keys: the delete has no ``WHERE`` clause, and on SQLite
      the upsert has no conflict target.

Examples:
    >>> stmts = compile_statements(schema, Backend.SQLITE)
    >>> stmts.delete
    'DELETE FROM message WHERE id = $1'

Tags:
    sql, code-generation, upsert, postgresql, sqlite, resource-commands
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from .dialect import Backend, get_dialect, resolve_backend
from .logging import get_logger
from .schema import ResourceSchema

logger = get_logger(__name__)


@dataclass(frozen=True)
class GeneratedStatements:
    """Compiled SQL text for one schema on one backend."""

    backend: Backend
    insert: str
    upsert: str
    delete: str

    @property
    def update(self) -> str:
        """Update runs the upsert statement; there is no plain UPDATE."""
        return self.upsert


def compile_statements(schema: ResourceSchema, backend: Backend | str) -> GeneratedStatements:
    """Compile the insert/upsert/delete statements of ``schema`` for ``backend``.

    Pure and deterministic. Use :func:`statements_for` to get the memoized
    result at runtime.
    """
    backend = resolve_backend(backend)
    dialect = get_dialect(backend)

    table = dialect.table(schema.table_name(backend), schema.schema_name)
    columns = list(schema.columns)

    select_list = ", ".join(columns)
    placeholders = ", ".join(
        dialect.placeholder(index, cast) for index, cast in enumerate(schema.casts)
    )
    insert = f"INSERT INTO {table} ( {select_list} ) VALUES ( {placeholders} )"

    target = dialect.conflict_target(schema.constraint, list(schema.key_columns))
    on_conflict = f"ON CONFLICT {target}" if target else "ON CONFLICT"
    if schema.fields:
        set_list = ", ".join(
            f"{column} = {dialect.excluded(column)}" for column in schema.field_columns
        )
        upsert = f"{insert} {on_conflict} DO UPDATE SET {set_list}"
    else:
        upsert = f"{insert} {on_conflict} DO NOTHING"

    predicate = " AND ".join(
        f"{key} = {dialect.placeholder(index)}" for index, key in enumerate(schema.key_columns)
    )
    delete = f"DELETE FROM {table}"
    if predicate:
        delete = f"{delete} WHERE {predicate}"

    return GeneratedStatements(backend=backend, insert=insert, upsert=upsert, delete=delete)


@lru_cache(maxsize=None)
def _compiled(schema: ResourceSchema, backend: Backend) -> GeneratedStatements:
    statements = compile_statements(schema, backend)
    logger.debug(
        "statements_compiled",
        table=schema.table_name(backend),
        backend=backend.value,
        columns=len(schema.columns),
    )
    return statements


def statements_for(schema: ResourceSchema, backend: Backend | str) -> GeneratedStatements:
    """Memoized :func:`compile_statements`; each schema compiles once per backend."""
    return _compiled(schema, resolve_backend(backend))


__all__ = [
    "GeneratedStatements",
    "compile_statements",
    "statements_for",
]
