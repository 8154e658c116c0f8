"""Tests for the statement compiler."""

from __future__ import annotations

import pytest

from resource_commands.core.compiler import GeneratedStatements, compile_statements, statements_for
from resource_commands.core.dialect import Backend
from resource_commands.core.schema import FieldSpec, ResourceSchema, parse_primary_key

from fixtures.slep import AuditNote, GroupMember, Message, ReadMarker

MESSAGE_COLUMNS = (
    "id, typ, addr_typ, addr, stream, topic, message_type, content, sender, receiver, timestamp"
)
MESSAGE_SET_LIST = (
    "typ = EXCLUDED.typ, addr_typ = EXCLUDED.addr_typ, addr = EXCLUDED.addr, "
    "stream = EXCLUDED.stream, topic = EXCLUDED.topic, "
    "message_type = EXCLUDED.message_type, content = EXCLUDED.content, "
    "sender = EXCLUDED.sender, receiver = EXCLUDED.receiver, "
    "timestamp = EXCLUDED.timestamp"
)


class TestMessageStatements:
    def test_postgres_insert(self):
        stmts = compile_statements(Message.resource_schema(), Backend.POSTGRES)
        assert stmts.insert == (
            f"INSERT INTO slep.message ( {MESSAGE_COLUMNS} ) VALUES ( "
            "$1, $2::slep.message_type, $3::slep.message_addr_type, "
            "$4, $5, $6, $7, $8, $9, $10, $11 )"
        )

    def test_postgres_upsert(self):
        stmts = compile_statements(Message.resource_schema(), Backend.POSTGRES)
        assert stmts.upsert == (
            f"{stmts.insert} ON CONFLICT ON CONSTRAINT slep_message_pkey "
            f"DO UPDATE SET {MESSAGE_SET_LIST}"
        )

    def test_postgres_delete(self):
        stmts = compile_statements(Message.resource_schema(), Backend.POSTGRES)
        assert stmts.delete == "DELETE FROM slep.message WHERE id = $1"

    def test_sqlite_insert_has_no_casts(self):
        stmts = compile_statements(Message.resource_schema(), Backend.SQLITE)
        assert stmts.insert == (
            f"INSERT INTO message ( {MESSAGE_COLUMNS} ) VALUES ( "
            "$1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11 )"
        )
        assert "::" not in stmts.upsert

    def test_sqlite_upsert_targets_key_columns(self):
        stmts = compile_statements(Message.resource_schema(), Backend.SQLITE)
        assert stmts.upsert == f"{stmts.insert} ON CONFLICT (id) DO UPDATE SET {MESSAGE_SET_LIST}"

    def test_sqlite_delete(self):
        stmts = compile_statements(Message.resource_schema(), "sqlite")
        assert stmts.delete == "DELETE FROM message WHERE id = $1"


class TestCompositeKey:
    def test_delete_numbers_keys_only(self):
        stmts = compile_statements(GroupMember.resource_schema(), Backend.POSTGRES)
        assert stmts.delete == "DELETE FROM slep.group_member WHERE id = $1 AND gid = $2"

    def test_insert_keys_first(self):
        stmts = compile_statements(GroupMember.resource_schema(), Backend.POSTGRES)
        assert stmts.insert == (
            "INSERT INTO slep.group_member ( id, gid, level, timestamp ) "
            "VALUES ( $1, $2, $3, $4 )"
        )

    def test_sqlite_conflict_target(self):
        stmts = compile_statements(GroupMember.resource_schema(), Backend.SQLITE)
        assert stmts.upsert.endswith(
            "ON CONFLICT (id, gid) DO UPDATE SET level = EXCLUDED.level, "
            "timestamp = EXCLUDED.timestamp"
        )

    def test_set_list_excludes_keys(self):
        stmts = compile_statements(GroupMember.resource_schema(), Backend.POSTGRES)
        set_list = stmts.upsert.split("DO UPDATE SET ", 1)[1]
        assert "id =" not in set_list
        assert "gid =" not in set_list


class TestEdgeCases:
    def test_no_fields_upsert_does_nothing(self):
        stmts = compile_statements(ReadMarker.resource_schema(), Backend.POSTGRES)
        assert stmts.insert == "INSERT INTO read_marker ( id ) VALUES ( $1 )"
        assert stmts.upsert == (
            "INSERT INTO read_marker ( id ) VALUES ( $1 ) "
            "ON CONFLICT ON CONSTRAINT read_marker_pkey DO NOTHING"
        )

    def test_no_keys_delete_has_no_where(self):
        stmts = compile_statements(AuditNote.resource_schema(), Backend.POSTGRES)
        assert stmts.delete == "DELETE FROM audit_note"
        assert stmts.insert == "INSERT INTO audit_note ( note ) VALUES ( $1 )"

    def test_no_keys_sqlite_upsert_has_no_target(self):
        stmts = compile_statements(AuditNote.resource_schema(), Backend.SQLITE)
        assert stmts.upsert == (
            "INSERT INTO audit_note ( note ) VALUES ( $1 ) "
            "ON CONFLICT DO UPDATE SET note = EXCLUDED.note"
        )

    def test_unqualified_postgres_table(self):
        schema = ResourceSchema(
            pg_table_name="message",
            sqlite_table_name="message",
            primary_keys=parse_primary_key("id:i64"),
            fields=(FieldSpec("content"),),
            constraint="message_pkey",
        )
        assert compile_statements(schema, Backend.POSTGRES).delete == (
            "DELETE FROM message WHERE id = $1"
        )


class TestGeneratedStatements:
    def test_update_is_upsert(self):
        stmts = compile_statements(Message.resource_schema(), Backend.POSTGRES)
        assert stmts.update == stmts.upsert
        assert stmts.backend is Backend.POSTGRES

    def test_deterministic(self):
        schema = Message.resource_schema()
        assert compile_statements(schema, Backend.SQLITE) == compile_statements(
            schema, Backend.SQLITE
        )

    def test_statements_for_is_memoized(self):
        schema = GroupMember.resource_schema()
        first = statements_for(schema, Backend.POSTGRES)
        assert statements_for(schema, "postgresql") is first
        assert isinstance(first, GeneratedStatements)

    def test_backends_differ(self):
        schema = Message.resource_schema()
        assert statements_for(schema, Backend.POSTGRES) != statements_for(schema, Backend.SQLITE)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            compile_statements(Message.resource_schema(), "mysql")
