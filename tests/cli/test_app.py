"""Tests for the resource-commands CLI: statements / apply / --version."""

from __future__ import annotations

import json
import logging
import sqlite3
from unittest.mock import patch

import pytest
import structlog
from typer.testing import CliRunner

from resource_commands import __version__
from resource_commands.cli.app import app
from resource_commands.core.dialect import Backend

from fixtures.slep import SQLITE_DDL, GroupMember, Message

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep log lines out of command output; logging configuration is global."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING))
    with patch("resource_commands.cli.app.configure_from_settings"):
        yield


@pytest.fixture
def database(tmp_path):
    path = tmp_path / "slep.db"
    conn = sqlite3.connect(path)
    conn.executescript(SQLITE_DDL)
    conn.close()
    return path


def read_rows(path, sql: str) -> list[tuple]:
    conn = sqlite3.connect(path)
    try:
        return conn.execute(sql).fetchall()
    finally:
        conn.close()


def invoke_apply(path, payload: str, tmp_path, *extra: str):
    commands_file = tmp_path / "commands.json"
    commands_file.write_text(payload, encoding="utf-8")
    return runner.invoke(
        app,
        [
            "apply",
            str(commands_file),
            "--resources",
            "fixtures.slep:client",
            "--database-url",
            f"sqlite:///{path}",
            *extra,
        ],
    )


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"resource-commands {__version__}" in result.output


class TestStatements:
    def test_text_output(self):
        result = runner.invoke(app, ["statements", "fixtures.slep:GroupMember"])
        assert result.exit_code == 0
        stmts = GroupMember.statements(Backend.POSTGRES)
        assert f"insert: {stmts.insert}" in result.output
        assert f"delete: {stmts.delete}" in result.output

    def test_json_sqlite(self):
        result = runner.invoke(
            app, ["statements", "fixtures.slep:Message", "--backend", "sqlite", "--format", "json"]
        )
        assert result.exit_code == 0
        rendered = json.loads(result.output)
        assert rendered["upsert"] == Message.statements(Backend.SQLITE).upsert
        assert rendered["delete"] == "DELETE FROM message WHERE id = $1"

    def test_not_a_resource(self):
        result = runner.invoke(app, ["statements", "fixtures.slep:make_message"])
        assert result.exit_code != 0

    def test_bad_target(self):
        result = runner.invoke(app, ["statements", "fixtures.slep"])
        assert result.exit_code != 0

    def test_missing_module(self):
        result = runner.invoke(app, ["statements", "no_such_module:Thing"])
        assert result.exit_code != 0


class TestApply:
    def test_single(self, database, tmp_path):
        payload = json.dumps(
            {
                "GroupMember": {
                    "trace": 0,
                    "action": {"Insert": {"id": [1, 2], "resource": {"level": 1, "timestamp": 5}}},
                    "tag": "Join",
                }
            }
        )
        result = invoke_apply(database, payload, tmp_path)

        assert result.exit_code == 0, result.output
        assert "Applied 1 command(s) to sqlite" in result.output
        assert read_rows(database, "SELECT id, gid, level FROM group_member") == [(1, 2, 1)]

    def test_multi_rolls_back(self, database, tmp_path):
        payload = json.dumps(
            [
                {
                    "GroupMember": {
                        "trace": 0,
                        "action": {"Insert": {"id": [1, 2], "resource": {"level": 1, "timestamp": 5}}},
                        "tag": "Join",
                    }
                },
                {
                    "GroupMember": {
                        "trace": 1,
                        "action": {"Insert": {"id": [1, 3], "resource": {"level": -1, "timestamp": 5}}},
                        "tag": "Join",
                    }
                },
            ]
        )
        result = invoke_apply(database, payload, tmp_path)

        assert result.exit_code == 1
        assert "Error" in result.output
        assert read_rows(database, "SELECT * FROM group_member") == []

    def test_invalid_payload(self, database, tmp_path):
        result = invoke_apply(database, '{"Topic": {}}', tmp_path)
        assert result.exit_code == 1
        assert "unknown resource" in result.output

    def test_not_a_resource_set(self, database, tmp_path):
        commands_file = tmp_path / "commands.json"
        commands_file.write_text("[]", encoding="utf-8")
        result = runner.invoke(
            app, ["apply", str(commands_file), "--resources", "fixtures.slep:Message"]
        )
        assert result.exit_code != 0
