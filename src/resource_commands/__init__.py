"""
resource-commands: schema-driven SQL writes with transactional command batches.

Declare a record type once, get parameterized insert/upsert/delete SQL for
PostgreSQL and SQLite, and run writes as commands: one at a time, or as an
ordered all-or-nothing batch.

Examples:
    >>> from typing import Annotated
    >>> from resource_commands import Column, Command, Resource, Single, Upsert, resource
    >>> @resource(
    ...     schema_name="slep",
    ...     pg_table_name="message",
    ...     primary_key="id:i64",
    ...     constraint="slep_message_pkey",
    ... )
    ... class Message(Resource):
    ...     typ: Annotated[str, Column(cast="slep.message_type")]
    ...     sender: int
    ...     timestamp: int
    >>> await Single(Command(0, Upsert(message, id=7), "Send")).execute(pool)
"""

from resource_commands.core.actions import Action, Drop, Insert, Update, Upsert, execute_action
from resource_commands.core.adapters import PostgreSQLPool, SQLitePool
from resource_commands.core.commands import Command, Commands, Multi, Single, execute_commands
from resource_commands.core.compiler import GeneratedStatements, compile_statements, statements_for
from resource_commands.core.dialect import Backend, get_dialect
from resource_commands.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    ExecutionError,
    IdGenerationError,
    ResourceError,
    SchemaError,
    WireError,
)
from resource_commands.core.protocols import Executor, ExecutorPool
from resource_commands.core.resource import Resource, resource
from resource_commands.core.schema import Column, FieldSpec, PrimaryKey, ResourceSchema, parse_primary_key
from resource_commands.core.wire import ResourceSet

__version__ = "0.1.0"

__all__ = [
    # Schema + compiler
    "Backend",
    "Column",
    "FieldSpec",
    "GeneratedStatements",
    "PrimaryKey",
    "ResourceSchema",
    "compile_statements",
    "get_dialect",
    "parse_primary_key",
    "statements_for",
    # Runtime
    "Resource",
    "resource",
    "Executor",
    "ExecutorPool",
    "PostgreSQLPool",
    "SQLitePool",
    # Actions / commands
    "Action",
    "Insert",
    "Upsert",
    "Update",
    "Drop",
    "execute_action",
    "Command",
    "Commands",
    "Single",
    "Multi",
    "execute_commands",
    "ResourceSet",
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "ResourceError",
    "IdGenerationError",
    "ExecutionError",
    "SchemaError",
    "WireError",
    "ConfigError",
    "__version__",
]
