from __future__ import annotations

import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sqlitedb import SQLiteDB
from sqlitedb.cli.base import format_result
from sqlitedb.cli.commands.db import parse_parameters
from sqlitedb.cli.main import app
from sqlitedb.database import Named, Positional

runner = CliRunner()


@pytest.fixture
def cli_db(sqlite_path: Path) -> Path:
    """Database file with a users table holding alice and bob."""
    with SQLiteDB({"database": str(sqlite_path)}) as db:
        db.execute_script(
            """
            CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
            INSERT INTO users (name) VALUES ('alice');
            INSERT INTO users (name) VALUES ('bob');
            """
        )
    return sqlite_path


@pytest.mark.unit
def test_parse_parameters_positional() -> None:
    assert parse_parameters(["1", "x"], None) == Positional(("1", "x"))
    assert parse_parameters(None, None) == Positional(())


@pytest.mark.unit
def test_parse_parameters_named_strips_prefix() -> None:
    assert parse_parameters(None, [":id=5", "name=a=b"]) == Named({"id": "5", "name": "a=b"})


@pytest.mark.integration
def test_query_prints_rows(cli_db: Path) -> None:
    sql = "SELECT id, name FROM users ORDER BY id"
    result = runner.invoke(app, ["db", "query", str(cli_db), sql])

    assert result.exit_code == 0, result.output
    assert "✓ db query" in result.output
    assert "  id | name" in result.output
    assert "    1 | alice" in result.output
    assert "    2 | bob" in result.output
    assert "(2 rows)" in result.output


@pytest.mark.integration
def test_query_with_positional_param(cli_db: Path) -> None:
    result = runner.invoke(
        app, ["db", "query", str(cli_db), "SELECT name FROM users WHERE id = ?", "-p", "2"]
    )

    assert result.exit_code == 0, result.output
    assert "    bob" in result.output
    assert "(1 row)" in result.output


@pytest.mark.integration
def test_query_with_named_param(cli_db: Path) -> None:
    result = runner.invoke(
        app,
        ["db", "query", str(cli_db), "SELECT id FROM users WHERE name = :name", "-n", "name=alice"],
    )

    assert result.exit_code == 0, result.output
    assert "    1" in result.output
    assert "(1 row)" in result.output


@pytest.mark.integration
def test_exec_reports_rowcount_and_last_insert_id(cli_db: Path) -> None:
    result = runner.invoke(
        app, ["db", "exec", str(cli_db), "INSERT INTO users (name) VALUES (?)", "-p", "carol"]
    )

    assert result.exit_code == 0, result.output
    assert "rows affected: 1 | last insert id: 3" in result.output
    with SQLiteDB({"database": str(cli_db)}) as db:
        assert db.fetch_one("SELECT name FROM users WHERE id = 3") == {"name": "carol"}


@pytest.mark.integration
def test_exec_creates_missing_parent_directory(project_root: Path) -> None:
    target = project_root / "nested" / "new.sqlite"
    result = runner.invoke(app, ["db", "exec", str(target), "CREATE TABLE t (x)"])

    assert result.exit_code == 0, result.output
    assert target.exists()


@pytest.mark.integration
def test_script_runs_every_statement(cli_db: Path, project_root: Path) -> None:
    script = project_root / "seed.sql"
    script.write_text(
        "INSERT INTO users (name) VALUES ('dave');\nDELETE FROM users WHERE name = 'alice';\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["db", "script", str(cli_db), str(script)])

    assert result.exit_code == 0, result.output
    assert "Running" in result.output
    assert "Executed seed.sql" in result.output
    with SQLiteDB({"database": str(cli_db)}) as db:
        names = [row["name"] for row in db.fetch_all("SELECT name FROM users ORDER BY id")]
    assert names == ["bob", "dave"]


@pytest.mark.integration
def test_failed_statement_exits_with_code_1(cli_db: Path) -> None:
    result = runner.invoke(app, ["db", "query", str(cli_db), "SELECT * FROM missing"])

    assert result.exit_code == 1
    assert "✗ db query failed: no such table: missing" in result.output


@pytest.mark.integration
def test_malformed_named_value_is_usage_error(cli_db: Path) -> None:
    result = runner.invoke(app, ["db", "query", str(cli_db), "SELECT 1", "-n", "oops"])
    assert result.exit_code == 2


@pytest.mark.integration
def test_mixing_param_kinds_is_usage_error(cli_db: Path) -> None:
    result = runner.invoke(
        app, ["db", "query", str(cli_db), "SELECT ?, :x", "-p", "1", "-n", "x=2"]
    )
    assert result.exit_code == 2


@pytest.mark.integration
def test_debug_logs_interpolated_sql(
    cli_db: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.DEBUG, logger="sqlitedb")
    result = runner.invoke(
        app,
        [
            "db", "query", str(cli_db), "SELECT name\n  FROM users WHERE id = ?",
            "-p", "1", "--debug",
        ],
    )

    assert result.exit_code == 0, result.output
    assert f'CONNECT "sqlite:{cli_db}"' in caplog.messages
    assert "[1] SELECT name FROM users WHERE id = 1" in caplog.messages
    assert f'DISCONNECT "sqlite:{cli_db}"' in caplog.messages


@pytest.mark.unit
def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.strip()


@pytest.mark.unit
def test_format_result_renders_stats_and_rows() -> None:
    text = format_result(
        {"success": True, "columns": ["id", "name"], "rows": [{"id": 1, "name": None}]},
        operation="db query",
    )
    assert text.splitlines() == ["✓ db query", "  id | name", "    1 | NULL", "  (1 row)"]

    text = format_result({"success": True, "rowcount": 2, "last_insert_id": 7}, operation="db exec")
    assert text.splitlines() == ["✓ db exec", "  rows affected: 2 | last insert id: 7"]
