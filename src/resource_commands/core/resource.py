"""
Resource runtime: record types that know how to write themselves.

A resource is a pydantic model plus a :class:`ResourceSchema`. The schema
is compiled once per backend; the model supplies values in schema order.
The four operations all take an :class:`Executor`, whose backend tag picks
which compiled statement set is used.

Manifesto:
    - **Keys then fields:** Values are bound in exactly the order the
      compiler numbered the placeholders. Any other order corrupts data.
    - **Supplied id wins:** ``gen_id`` runs only when no id is given, and
      at most once per operation. A supplied id is never checked.
    - **One statement per operation:** The runtime adds no transaction of
      its own; atomicity belongs to the executor.

Architecture:
    ::

        @resource(pg_table_name=..., primary_key="id:i64", constraint=...)
        class Message(Resource):            ← pydantic model
            typ: Annotated[str, Column(cast="slep.message_type")]
            ...
              │
              ├── resource_schema()   → ResourceSchema (built by @resource)
              ├── statements(backend) → GeneratedStatements (memoized)
              │
              ├── insert(id | None, executor)   gen_id if id is None
              ├── upsert(id | None, executor)   gen_id if id is None
              ├── update(id, executor)          runs the upsert statement
              └── drop(id, executor)            classmethod, keys only

Examples:
    >>> @resource(
    ...     schema_name="slep",
    ...     pg_table_name="group_member",
    ...     primary_key="id:i64, gid:i64",
    ...     constraint="slep_group_member_pkey",
    ... )
    ... class GroupMember(Resource):
    ...     level: int
    ...     timestamp: int
    >>> GroupMember.statements("postgres").delete
    'DELETE FROM slep.group_member WHERE id = $1 AND gid = $2'

Guardrails:
    ❌ DON'T: Reorder model fields after statements have been compiled
    ✅ DO: Treat field declaration order as part of the table mapping

    ❌ DON'T: Rely on ``update`` failing for a missing row
    ✅ DO: Remember it is an upsert and may insert

Tags:
    resource, runtime, upsert, resource-id, resource-commands
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel

from .compiler import GeneratedStatements, statements_for
from .dialect import Backend
from .errors import ExecutionError, IdGenerationError, ResourceError, SchemaError
from .logging import get_logger
from .protocols import Executor
from .schema import Column, FieldSpec, PrimaryKey, ResourceSchema, parse_primary_key

logger = get_logger(__name__)

R = TypeVar("R", bound="Resource")


class Resource(BaseModel):
    """
    Base class for record types backed by a table.

    Subclasses declare their table mapping with the :func:`resource`
    decorator or by assigning ``__resource_schema__`` directly. They
    override :meth:`gen_id` when ids can be synthesized; the default
    raises :class:`IdGenerationError`.
    """

    __resource_schema__: ClassVar[ResourceSchema | None] = None

    # -- Schema ------------------------------------------------------------

    @classmethod
    def resource_schema(cls) -> ResourceSchema:
        """The table mapping of this record type.

        Raises:
            SchemaError: The class has no schema declared.
        """
        schema = cls.__resource_schema__
        if schema is None:
            raise SchemaError(
                f"{cls.__name__} has no resource schema; decorate it with @resource"
            )
        return schema

    @classmethod
    def statements(cls, backend: Backend | str) -> GeneratedStatements:
        """Compiled statements for ``backend`` (compiled once, then cached)."""
        return statements_for(cls.resource_schema(), backend)

    # -- Resource ids ------------------------------------------------------

    @classmethod
    async def gen_id(cls) -> Any:
        """Synthesize a resource id when the caller did not supply one.

        Must return a value shaped like the schema's id: a scalar for one
        key, a tuple for several. The default cannot generate anything.

        Raises:
            IdGenerationError: No id can be produced.
        """
        raise IdGenerationError(f"{cls.__name__} cannot generate resource ids")

    @classmethod
    async def resolve_id(cls, resource_id: Any | None) -> Any:
        """Return ``resource_id`` if given, else one generated by :meth:`gen_id`.

        Key-less resources have nothing to generate and resolve to ``None``.
        """
        if resource_id is not None:
            return resource_id
        if not cls.resource_schema().primary_keys:
            return None
        try:
            resource_id = await cls.gen_id()
        except IdGenerationError:
            raise
        except Exception as e:
            raise IdGenerationError(
                f"{cls.__name__} id generation failed: {e}", cause=e
            ) from e
        logger.debug("resource_id_generated", resource=cls.__name__)
        return resource_id

    # -- Binding -----------------------------------------------------------

    def field_values(self) -> tuple[Any, ...]:
        """Field values in schema field order."""
        return tuple(getattr(self, f.attr) for f in self.resource_schema().fields)

    def bind(self, resource_id: Any) -> tuple[Any, ...]:
        """All statement parameters: key values, then field values."""
        return self.resource_schema().key_values(resource_id) + self.field_values()

    # -- Operations --------------------------------------------------------

    async def insert(self, resource_id: Any | None, executor: Executor) -> None:
        """Insert one row, generating the id if none is supplied."""
        resource_id = await self.resolve_id(resource_id)
        statements = self.statements(executor.backend)
        await self._run("insert", statements.insert, self.bind(resource_id), executor)

    async def upsert(self, resource_id: Any | None, executor: Executor) -> None:
        """Insert or update one row, generating the id if none is supplied."""
        resource_id = await self.resolve_id(resource_id)
        statements = self.statements(executor.backend)
        await self._run("upsert", statements.upsert, self.bind(resource_id), executor)

    async def update(self, resource_id: Any, executor: Executor) -> None:
        """Write one row under an existing id.

        Runs the upsert statement, so a missing row is inserted rather than
        reported.
        """
        statements = self.statements(executor.backend)
        logger.debug("update_as_upsert", resource=type(self).__name__)
        await self._run("update", statements.update, self.bind(resource_id), executor)

    @classmethod
    async def drop(cls, resource_id: Any, executor: Executor) -> None:
        """Delete the row identified by ``resource_id``."""
        schema = cls.resource_schema()
        statements = cls.statements(executor.backend)
        await cls._run("drop", statements.delete, schema.key_values(resource_id), executor)

    @classmethod
    async def _run(
        cls,
        operation: str,
        sql: str,
        params: tuple[Any, ...],
        executor: Executor,
    ) -> None:
        backend = executor.backend
        try:
            await executor.execute(sql, params)
        except ResourceError as e:
            e.with_context(resource=cls.__name__, operation=operation, backend=backend.value)
            raise
        except Exception as e:
            raise ExecutionError(str(e), cause=e).with_context(
                resource=cls.__name__, operation=operation, backend=backend.value
            ) from e
        logger.debug(
            "statement_executed",
            resource=cls.__name__,
            operation=operation,
            backend=backend.value,
        )


def resource(
    *,
    pg_table_name: str,
    primary_key: str | Iterable[tuple[str, Any]] | Iterable[PrimaryKey],
    constraint: str,
    sqlite_table_name: str | None = None,
    schema_name: str | None = None,
) -> Callable[[type[R]], type[R]]:
    """Class decorator that builds a :class:`ResourceSchema` from a model.

    Fields become columns in declaration order. ``Annotated[..., Column()]``
    metadata overrides the column name or adds a PostgreSQL cast;
    ``Column(skip=True)`` leaves the attribute unmapped.

    Args:
        pg_table_name: PostgreSQL table (qualified by ``schema_name``)
        primary_key: ``"id:i64, gid:i64"`` or ``[("id", int), ("gid", int)]``
        constraint: Uniqueness constraint for the PostgreSQL upsert
        sqlite_table_name: SQLite table (default: ``pg_table_name``)
        schema_name: PostgreSQL schema
    """
    keys = parse_primary_key(primary_key)

    def decorate(cls: type[R]) -> type[R]:
        fields = []
        for attr, info in cls.model_fields.items():
            column = next((m for m in info.metadata if isinstance(m, Column)), None)
            if column is None:
                fields.append(FieldSpec(attr))
            elif not column.skip:
                fields.append(FieldSpec(attr, column.name, column.cast))

        cls.__resource_schema__ = ResourceSchema(
            pg_table_name=pg_table_name,
            sqlite_table_name=sqlite_table_name or pg_table_name,
            primary_keys=keys,
            fields=tuple(fields),
            constraint=constraint,
            schema_name=schema_name or None,
        )
        return cls

    return decorate


__all__ = [
    "Resource",
    "resource",
]
