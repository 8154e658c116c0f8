"""Tests for resource_commands.core.errors module."""

import pytest

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


class TestErrorCategory:
    """Test ErrorCategory enum."""

    def test_string_values(self):
        assert ErrorCategory.DATABASE.value == "DATABASE"
        assert ErrorCategory("RESOURCE_ID") is ErrorCategory.RESOURCE_ID


class TestErrorContext:
    def test_empty_context(self):
        assert ErrorContext().to_dict() == {}

    def test_only_set_fields(self):
        ctx = ErrorContext(resource="Message", trace=0, metadata={"batch_index": 2})
        assert ctx.to_dict() == {"resource": "Message", "trace": 0, "batch_index": 2}


class TestResourceError:
    def test_default_category(self):
        assert ResourceError("x").category is ErrorCategory.INTERNAL

    @pytest.mark.parametrize(
        ("cls", "category"),
        [
            (IdGenerationError, ErrorCategory.RESOURCE_ID),
            (ExecutionError, ErrorCategory.DATABASE),
            (SchemaError, ErrorCategory.SCHEMA),
            (WireError, ErrorCategory.WIRE),
            (ConfigError, ErrorCategory.CONFIG),
        ],
    )
    def test_subclass_categories(self, cls, category):
        error = cls("failure")
        assert isinstance(error, ResourceError)
        assert error.category is category

    def test_id_generation_default_message(self):
        assert IdGenerationError().message == "resource id not set"

    def test_category_override(self):
        error = ExecutionError("x", category=ErrorCategory.INTERNAL)
        assert error.category is ErrorCategory.INTERNAL

    def test_cause_is_chained(self):
        cause = OSError("connection reset")
        error = ExecutionError("lost connection", cause=cause)
        assert error.cause is cause
        assert error.__cause__ is cause

    def test_with_context_keeps_inner_values(self):
        error = ExecutionError("x").with_context(operation="insert")
        error.with_context(operation="commit", trace=7)
        assert error.context.operation == "insert"
        assert error.context.trace == 7

    def test_with_context_unknown_keys_go_to_metadata(self):
        error = ExecutionError("x").with_context(batch_index=1)
        assert error.context.metadata == {"batch_index": 1}

    def test_to_dict(self):
        error = ExecutionError("failed", cause=ValueError("bad")).with_context(
            resource="Message", tag="Send"
        )
        assert error.to_dict() == {
            "error_type": "ExecutionError",
            "message": "failed",
            "category": "DATABASE",
            "context": {"resource": "Message", "tag": "Send"},
            "cause": "bad",
        }

    def test_repr(self):
        assert repr(WireError("bad json")) == "WireError('bad json', category=WIRE)"
