"""Public interface for the database package.

This module exposes the main primitives needed by host applications:
the `SQLiteDB` access object, parameter helpers and the error family.
"""

from .config import DatabaseConfig, FetchMode
from .connection import SQLiteDB, open_database
from .errors import (
    DatabaseConnectionError,
    ErrorKind,
    ExecutionError,
    SQLiteDBError,
    StatementError,
    TransactionError,
)
from .parameters import Named, Positional, build_in_clause, classify, interpolate_for_display
from .statements import PreparedStatement, StatementCache

__all__ = [
    "SQLiteDB",
    "open_database",
    "DatabaseConfig",
    "FetchMode",
    "PreparedStatement",
    "StatementCache",
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
