"""CLI commands for running statements against a database file."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer

from ..base import BaseCLI, enable_debug_logging
from ...database import Named, Positional, open_database

db_app = typer.Typer(help="Run SQL against a SQLite database file.")

DbPathArg = Annotated[Path, typer.Argument(help="Path to SQLite database file")]
SqlArg = Annotated[str, typer.Argument(help="Single SQL statement")]
ParamOpt = Annotated[
    list[str] | None,
    typer.Option("-p", "--param", help="Positional value for the next ? placeholder"),
]
NamedOpt = Annotated[
    list[str] | None,
    typer.Option("-n", "--named", help="Named value as NAME=VALUE for :NAME"),
]
DebugOpt = Annotated[
    bool,
    typer.Option("--debug", help="Log every statement with its values substituted"),
]


def parse_parameters(
    positional: list[str] | None,
    named: list[str] | None,
) -> Positional | Named:
    """Build the parameter set for a CLI invocation.

    Raises:
        typer.BadParameter: If both kinds are given, or a named value is
            not in NAME=VALUE form.
    """
    if positional and named:
        msg = "Use either --param or --named, not both"
        raise typer.BadParameter(msg)
    if not named:
        return Positional(tuple(positional or ()))

    values: dict[str, Any] = {}
    for item in named:
        name, sep, value = item.partition("=")
        if not sep or not name:
            msg = f"Expected NAME=VALUE, got {item!r}"
            raise typer.BadParameter(msg)
        values[name.lstrip(":")] = value
    return Named(values)


class DatabaseCLI(BaseCLI):
    """CLI helpers for statement execution."""

    def query(
        self,
        *,
        db_path: Path,
        sql: str,
        params: Positional | Named,
        debug: bool,
    ) -> dict[str, Any]:
        """Run a SELECT and return its rows as a standardized result dict.

        User Output:
            - Column header, one line per row and a row count.
        """
        return self.handle_cli_operation(
            operation="db query",
            op_callable=lambda: self._query_operation(
                db_path=db_path, sql=sql, params=params, debug=debug
            ),
        )

    def execute(
        self,
        *,
        db_path: Path,
        sql: str,
        params: Positional | Named,
        debug: bool,
    ) -> dict[str, Any]:
        """Run a write statement and report affected rows and last insert id."""
        return self.handle_cli_operation(
            operation="db exec",
            op_callable=lambda: self._exec_operation(
                db_path=db_path, sql=sql, params=params, debug=debug
            ),
        )

    def script(self, *, db_path: Path, script_path: Path, debug: bool) -> dict[str, Any]:
        """Run a multi-statement SQL file."""
        return self.handle_cli_operation(
            operation="db script",
            op_callable=lambda: self._script_operation(
                db_path=db_path, script_path=script_path, debug=debug
            ),
            pre_message=f"Running {script_path}...",
        )

    def _query_operation(
        self,
        *,
        db_path: Path,
        sql: str,
        params: Positional | Named,
        debug: bool,
    ) -> dict[str, Any]:
        with open_database(db_path, debug=debug) as db:
            statement = db.execute(sql, params)
            rows = list(db.fetch_rows(statement))
            return {
                "success": True,
                "columns": statement.columns,
                "rows": rows,
            }

    def _exec_operation(
        self,
        *,
        db_path: Path,
        sql: str,
        params: Positional | Named,
        debug: bool,
    ) -> dict[str, Any]:
        with open_database(db_path, debug=debug) as db:
            statement = db.execute(sql, params)
            return {
                "success": True,
                "rowcount": statement.rowcount,
                "last_insert_id": db.last_insert_id(),
            }

    def _script_operation(self, *, db_path: Path, script_path: Path, debug: bool) -> dict[str, Any]:
        script = script_path.read_text(encoding="utf-8")
        with open_database(db_path, debug=debug) as db:
            db.execute_script(script)
        return {"success": True, "message": f"Executed {script_path.name}"}


cli = DatabaseCLI()


@db_app.command("query")
def query_command(
    db_path: DbPathArg,
    sql: SqlArg,
    param: ParamOpt = None,
    named: NamedOpt = None,
    debug: DebugOpt = False,
) -> None:
    """Run a query and print the rows it returns.

    Positional values fill ? placeholders in order; named values fill
    :NAME placeholders. All values are passed as text and converted by
    column affinity.

    Exits with code 1 if the statement fails.
    """
    if debug:
        enable_debug_logging()
    params = parse_parameters(param, named)
    cli.query(db_path=db_path, sql=sql, params=params, debug=debug)


@db_app.command("exec")
def exec_command(
    db_path: DbPathArg,
    sql: SqlArg,
    param: ParamOpt = None,
    named: NamedOpt = None,
    debug: DebugOpt = False,
) -> None:
    """Run an INSERT/UPDATE/DELETE or DDL statement.

    Prints the number of affected rows and the last inserted rowid.

    Exits with code 1 if the statement fails.
    """
    if debug:
        enable_debug_logging()
    params = parse_parameters(param, named)
    cli.execute(db_path=db_path, sql=sql, params=params, debug=debug)


@db_app.command("script")
def script_command(
    db_path: DbPathArg,
    script_path: Annotated[
        Path,
        typer.Argument(help="SQL file with one or more statements", exists=True, dir_okay=False),
    ],
    debug: DebugOpt = False,
) -> None:
    """Run a SQL script file.

    Statements run in order; those before a failing statement stay
    applied unless the script manages its own BEGIN/COMMIT. Exits with
    code 1 on failure.
    """
    if debug:
        enable_debug_logging()
    cli.script(db_path=db_path, script_path=script_path, debug=debug)


app = db_app
