"""Core of resource-commands: schema, compiler, runtime, commands, wire.

Modules
-------
errors      ResourceError taxonomy (IdGenerationError, ExecutionError, ...)
logging     structlog configuration and LogContext
protocols   Executor / ExecutorPool contracts
dialect     Backend enum and PostgreSQL / SQLite SQL fragments
schema      ResourceSchema, PrimaryKey, FieldSpec, Column
compiler    ResourceSchema -> insert/upsert/delete text
resource    Resource base model and @resource decorator
actions     Insert / Upsert / Update / Drop
commands    Command, Single, Multi
wire        ResourceSet JSON codec
config      pydantic-settings configuration and pool factory
adapters    aiosqlite and asyncpg executor pools
"""
