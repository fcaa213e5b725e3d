"""
sqlitedb core package.

A thin layer over the standard `sqlite3` driver providing:
- A lazily connected, single-connection access object (`SQLiteDB`)
- A per-connection prepared statement cache
- Positional / named parameter binding with unused-name filtering
- Explicit transaction control and interpolated-SQL debug logging
- A small Typer-based CLI (`sqlitedb.cli`) for running statements by hand

Configuration:
- Shared defaults live in `sqlitedb.global_config`.
- Per-instance settings live in `sqlitedb.database.config`.
"""

from .database import (
    DatabaseConfig,
    DatabaseConnectionError,
    ErrorKind,
    ExecutionError,
    FetchMode,
    Named,
    Positional,
    PreparedStatement,
    SQLiteDB,
    SQLiteDBError,
    StatementError,
    TransactionError,
    build_in_clause,
    classify,
    interpolate_for_display,
    open_database,
)

__all__ = [
    "SQLiteDB",
    "open_database",
    "DatabaseConfig",
    "FetchMode",
    "PreparedStatement",
    "Positional",
    "Named",
    "classify",
    "build_in_clause",
    "interpolate_for_display",
    "SQLiteDBError",
    "DatabaseConnectionError",
    "StatementError",
    "ExecutionError",
    "TransactionError",
    "ErrorKind",
]
