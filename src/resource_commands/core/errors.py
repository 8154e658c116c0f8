"""
Structured error types for resource-commands.

Every failure surfaced by the statement compiler, the resource runtime or
the command layer is a ``ResourceError``. Operational failures come in
exactly two kinds, and both are fatal to the operation that raised them:

- **IdGenerationError:** an id had to be synthesized and could not be.
- **ExecutionError:** the executor reported a failure (constraint
  violation, lost connection, malformed statement).

The remaining subclasses describe caller mistakes caught before anything
touches a database (bad schema declarations, undecodable wire input,
invalid configuration).

Manifesto:
    - **Flat taxonomy:** One level below ResourceError, no deep trees
    - **No retry semantics:** Nothing in this package retries
    - **Rich context:** Errors carry resource, operation, trace and tag
    - **Error chaining:** Driver exceptions are kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       ResourceError                           │
        │            (category, context, cause)                         │
        ├──────────────────────────────────────────────────────────────┤
        │  IdGenerationError   ExecutionError    SchemaError            │
        │  (RESOURCE_ID)       (DATABASE)        (SCHEMA)               │
        │                                                               │
        │  WireError           ConfigError                              │
        │  (WIRE)              (CONFIG)                                 │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ExecutionError("UNIQUE constraint failed: message.id")
    >>> error.category
    <ErrorCategory.DATABASE: 'DATABASE'>
    >>> error.with_context(resource="Message", operation="insert").context.resource
    'Message'

Guardrails:
    ❌ DON'T: Let driver exceptions escape an adapter
    ✅ DO: Wrap them in ExecutionError with cause=

    ❌ DON'T: Retry on ExecutionError inside a batch
    ✅ DO: Let the batch abort and surface the error to the caller

Tags:
    error-handling, exception-hierarchy, error-context, resource-commands
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories for classification and structured logging.

    Attributes:
        RESOURCE_ID: Resource id could not be generated
        DATABASE: Executor / driver failures
        SCHEMA: Invalid resource schema declarations
        WIRE: Undecodable command payloads
        CONFIG: Missing or invalid settings
        INTERNAL: Bugs, unexpected state
    """

    RESOURCE_ID = "RESOURCE_ID"
    DATABASE = "DATABASE"
    SCHEMA = "SCHEMA"
    WIRE = "WIRE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set end up in ``to_dict()``, so the same context
    object can be logged as-is.

    Attributes:
        resource: Resource type name (e.g. ``"Message"``)
        operation: ``insert``, ``upsert``, ``update``, ``drop`` or ``commit``
        backend: Backend tag value (``"postgres"`` / ``"sqlite"``)
        trace: Command trace id
        tag: Command routing tag
        metadata: Additional key-value pairs
    """

    resource: str | None = None
    operation: str | None = None
    backend: str | None = None
    trace: int | None = None
    tag: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["resource", "operation", "backend", "trace", "tag"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ResourceError(Exception):
    """
    Base exception for all resource-commands errors.

    Subclasses set ``default_category``; callers may override it per
    instance. ``cause`` is chained onto ``__cause__`` so tracebacks show
    the original driver error.

    Examples:
        >>> try:
        ...     raise OSError("connection reset")
        ... except OSError as e:
        ...     error = ExecutionError("connection reset", cause=e)
        >>> error.cause
        OSError('connection reset')
        >>> error.to_dict()["error_type"]
        'ExecutionError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ResourceError:
        """
        Add context to this error (fluent API).

        Keys that are not ``ErrorContext`` fields go to ``metadata``.
        Fields already set are left alone so the innermost layer wins.
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                if getattr(self.context, key) is None:
                    setattr(self.context, key, value)
            else:
                self.context.metadata.setdefault(key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class IdGenerationError(ResourceError):
    """No id was supplied and the resource type could not generate one."""

    default_category = ErrorCategory.RESOURCE_ID

    def __init__(self, message: str = "resource id not set", **kwargs: Any):
        super().__init__(message, **kwargs)


class ExecutionError(ResourceError):
    """The executor failed to run a statement, commit or roll back."""

    default_category = ErrorCategory.DATABASE


class SchemaError(ResourceError):
    """A resource schema declaration is invalid."""

    default_category = ErrorCategory.SCHEMA


class WireError(ResourceError):
    """A command payload could not be encoded or decoded."""

    default_category = ErrorCategory.WIRE


class ConfigError(ResourceError):
    """Configuration is missing or invalid."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ResourceError",
    "IdGenerationError",
    "ExecutionError",
    "SchemaError",
    "WireError",
    "ConfigError",
]
