"""Tests for action dispatch."""

from __future__ import annotations

import pytest

from resource_commands.core.actions import (
    Drop,
    Insert,
    Update,
    Upsert,
    action_name,
    execute_action,
    resource_type_of,
)
from resource_commands.core.dialect import Backend
from resource_commands.core.errors import IdGenerationError

from fixtures.doubles import RecordingExecutor
from fixtures.slep import Group, GroupMember, Message, make_message


class TestActionMetadata:
    def test_names(self):
        message = make_message()
        assert action_name(Insert(message)) == "Insert"
        assert action_name(Upsert(message, 1)) == "Upsert"
        assert action_name(Update(message, 1)) == "Update"
        assert action_name(Drop(Message, 1)) == "Drop"

    def test_resource_type(self):
        assert resource_type_of(Upsert(make_message(), 1)) is Message
        assert resource_type_of(Drop(GroupMember, (1, 2))) is GroupMember

    def test_id_defaults_to_none(self):
        assert Insert(make_message()).id is None
        assert Upsert(make_message()).id is None

    def test_resource_type_of_rejects_other_values(self):
        with pytest.raises(TypeError):
            resource_type_of("Insert")


class TestExecuteAction:
    @pytest.mark.asyncio
    async def test_insert(self, pg_executor: RecordingExecutor):
        await execute_action(Insert(make_message(), 1), pg_executor)
        assert pg_executor.calls[0][0] == Message.statements(Backend.POSTGRES).insert

    @pytest.mark.asyncio
    async def test_upsert(self, pg_executor: RecordingExecutor):
        await execute_action(Upsert(make_message(), 1), pg_executor)
        assert pg_executor.calls[0][0] == Message.statements(Backend.POSTGRES).upsert

    @pytest.mark.asyncio
    async def test_update(self, pg_executor: RecordingExecutor):
        await execute_action(Update(make_message(), 1), pg_executor)
        assert pg_executor.calls[0][0] == Message.statements(Backend.POSTGRES).upsert

    @pytest.mark.asyncio
    async def test_drop(self, sqlite_executor: RecordingExecutor):
        await execute_action(Drop(Message, 5), sqlite_executor)
        assert sqlite_executor.calls == [("DELETE FROM message WHERE id = $1", (5,))]

    @pytest.mark.asyncio
    async def test_insert_without_id_generates(self, pg_executor: RecordingExecutor):
        await execute_action(Insert(Group(name="g", des="", timestamp=1)), pg_executor)
        assert pg_executor.calls[0][1][0] is not None

    @pytest.mark.asyncio
    async def test_upsert_without_id_and_no_generator(self, pg_executor: RecordingExecutor):
        with pytest.raises(IdGenerationError):
            await execute_action(Upsert(GroupMember(level=0, timestamp=0)), pg_executor)
        assert pg_executor.calls == []

    @pytest.mark.asyncio
    async def test_unknown_action(self, pg_executor: RecordingExecutor):
        with pytest.raises(TypeError, match="not an action"):
            await execute_action(object(), pg_executor)
