"""Schema descriptions: which table, which key, which columns, in which order.

A ``ResourceSchema`` is pure data. It is built once per record type, either
directly by the caller or by the ``@resource`` decorator, and everything
downstream (compiled statements, value binding, id shapes on the wire) is
derived from it.

Column order is the one invariant that matters: primary keys first, in
declared order, then fields, in declared order. The compiler numbers
placeholders in that order and the runtime binds values in that order.

Examples:
    >>> schema = ResourceSchema(
    ...     pg_table_name="group_member",
    ...     sqlite_table_name="group_member",
    ...     primary_keys=parse_primary_key("id:i64, gid:i64"),
    ...     fields=(FieldSpec("level"), FieldSpec("timestamp")),
    ...     constraint="slep_group_member_pkey",
    ...     schema_name="slep",
    ... )
    >>> schema.columns
    ('id', 'gid', 'level', 'timestamp')
    >>> schema.key_values((1, 2))
    (1, 2)
"""

from __future__ import annotations

import datetime
import re
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .dialect import Backend, resolve_backend
from .errors import SchemaError

# Key type names accepted in ``primary_key="name:type"`` strings.
KEY_TYPES: dict[str, type] = {
    "i8": int,
    "i16": int,
    "i32": int,
    "i64": int,
    "u8": int,
    "u16": int,
    "u32": int,
    "u64": int,
    "int": int,
    "f32": float,
    "f64": float,
    "float": float,
    "bool": bool,
    "String": str,
    "str": str,
    "bytes": bytes,
    "uuid": uuid.UUID,
    "Uuid": uuid.UUID,
    "datetime": datetime.datetime,
    "date": datetime.date,
    "Decimal": Decimal,
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s\-]+|_{2,}")


def to_snake_case(identifier: str) -> str:
    """Column name for an attribute with no explicit override.

    >>> to_snake_case("addrTyp")
    'addr_typ'
    >>> to_snake_case("HTTPStatus")
    'http_status'
    >>> to_snake_case("type_")
    'type'
    """
    name = identifier.strip()
    # trailing underscore only avoids a clash with a builtin or keyword
    if name.endswith("_") and not name.endswith("__"):
        name = name[:-1]
    name = _CAMEL_BOUNDARY.sub("_", name)
    name = _SEPARATORS.sub("_", name)
    return name.lower()


@dataclass(frozen=True)
class PrimaryKey:
    """One primary-key column and the Python type of its values."""

    name: str
    type: type = int


@dataclass(frozen=True)
class Column:
    """Per-field override, used as ``Annotated[..., Column(...)]`` metadata.

    Attributes:
        name: Column name (default: snake_cased attribute name)
        cast: Type cast appended to the PostgreSQL placeholder (``$3::cast``)
        skip: Leave the attribute out of the table mapping entirely
    """

    name: str | None = None
    cast: str | None = None
    skip: bool = False


@dataclass(frozen=True)
class FieldSpec:
    """A non-key column: where the value comes from and where it goes."""

    attr: str
    column: str | None = None
    cast: str | None = None

    def __post_init__(self) -> None:
        if not self.attr:
            raise SchemaError("field attribute name must not be empty")
        if self.column is None:
            object.__setattr__(self, "column", to_snake_case(self.attr))


def parse_primary_key(spec: str | Iterable[tuple[str, Any]] | Iterable[PrimaryKey]) -> tuple[PrimaryKey, ...]:
    """Parse ``"id:i64, gid:i64"`` (or ``[("id", int)]``) into primary keys.

    Whitespace is ignored. Type names come from :data:`KEY_TYPES`; Python
    types may be passed directly in the pair form.

    Raises:
        SchemaError: Malformed entry or unknown type name.
    """
    if isinstance(spec, str):
        compact = "".join(spec.split())
        if not compact:
            return ()
        pairs: list[tuple[str, Any]] = []
        for part in compact.split(","):
            name, sep, type_name = part.partition(":")
            if not sep or not name or not type_name:
                raise SchemaError(f"invalid primary key entry {part!r}, expected 'name:type'")
            pairs.append((name, type_name))
    else:
        pairs = []
        for item in spec:
            if isinstance(item, PrimaryKey):
                pairs.append((item.name, item.type))
            else:
                name, key_type = item
                pairs.append((name, key_type))

    keys = []
    for name, key_type in pairs:
        if isinstance(key_type, str):
            if key_type not in KEY_TYPES:
                raise SchemaError(
                    f"unknown primary key type {key_type!r} for {name!r}. "
                    f"Supported: {sorted(KEY_TYPES)}"
                )
            key_type = KEY_TYPES[key_type]
        keys.append(PrimaryKey(name, key_type))
    return tuple(keys)


@dataclass(frozen=True)
class ResourceSchema:
    """
    Declarative description of one record type.

    Attributes:
        pg_table_name: Table name on PostgreSQL (qualified by ``schema_name``)
        sqlite_table_name: Table name on SQLite
        primary_keys: Ordered key columns; fixes parameter order and id shape
        fields: Ordered non-key columns; must match binding order
        constraint: Uniqueness constraint used as the PostgreSQL conflict target
        schema_name: Optional PostgreSQL schema
    """

    pg_table_name: str
    sqlite_table_name: str
    primary_keys: tuple[PrimaryKey, ...]
    fields: tuple[FieldSpec, ...]
    constraint: str
    schema_name: str | None = None
    _id_type: Any = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "primary_keys", tuple(self.primary_keys))
        object.__setattr__(self, "fields", tuple(self.fields))

        if not self.pg_table_name or not self.sqlite_table_name:
            raise SchemaError("table names must not be empty")

        seen: set[str] = set()
        for column in self.columns:
            if column in seen:
                raise SchemaError(f"duplicate column {column!r} in {self.pg_table_name}")
            seen.add(column)

        types = [key.type for key in self.primary_keys]
        if not types:
            id_type: Any = type(None)
        elif len(types) == 1:
            id_type = types[0]
        else:
            id_type = tuple[tuple(types)]
        object.__setattr__(self, "_id_type", id_type)

    # -- Column lists ------------------------------------------------------

    @property
    def key_columns(self) -> tuple[str, ...]:
        return tuple(key.name for key in self.primary_keys)

    @property
    def field_columns(self) -> tuple[str, ...]:
        return tuple(f.column for f in self.fields)

    @property
    def columns(self) -> tuple[str, ...]:
        """Keys then fields: the order of every column list and binding."""
        return self.key_columns + self.field_columns

    @property
    def casts(self) -> tuple[str | None, ...]:
        """Per-column cast, aligned with :attr:`columns` (keys never cast)."""
        return (None,) * len(self.primary_keys) + tuple(f.cast for f in self.fields)

    def table_name(self, backend: Backend | str) -> str:
        """Declared (unqualified) table name for ``backend``."""
        match resolve_backend(backend):
            case Backend.POSTGRES:
                return self.pg_table_name
            case Backend.SQLITE:
                return self.sqlite_table_name

    # -- Resource ids ------------------------------------------------------

    @property
    def id_type(self) -> Any:
        """``NoneType`` for no keys, the key type for one, a tuple type for many."""
        return self._id_type

    def key_values(self, resource_id: Any) -> tuple[Any, ...]:
        """Flatten a resource id into key values, in declared key order.

        Raises:
            SchemaError: ``resource_id`` does not have this schema's id shape.
        """
        count = len(self.primary_keys)
        if count == 0:
            return ()
        if count == 1:
            return (resource_id,)
        if not isinstance(resource_id, Sequence) or isinstance(resource_id, (str, bytes)):
            raise SchemaError(
                f"{self.pg_table_name} expects a {count}-part id, got {resource_id!r}"
            )
        if len(resource_id) != count:
            raise SchemaError(
                f"{self.pg_table_name} expects a {count}-part id, got {len(resource_id)} parts"
            )
        return tuple(resource_id)


__all__ = [
    "KEY_TYPES",
    "Column",
    "FieldSpec",
    "PrimaryKey",
    "ResourceSchema",
    "parse_primary_key",
    "to_snake_case",
]
