"""Database-specific exception types for the project.

Every driver failure that crosses the `SQLiteDB` boundary is re-raised as
one of the `SQLiteDBError` subclasses below, so callers only ever need to
catch a single exception family. The subclass (and the `kind` attribute)
tells which step failed; `code` carries the driver's numeric error code.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    """Which boundary operation a `SQLiteDBError` came from."""

    CONNECTION = "connection"
    STATEMENT = "statement"
    EXECUTION = "execution"
    TRANSACTION = "transaction"


class SQLiteDBError(Exception):
    """Base exception for database-related errors.

    Attributes:
        message: Driver message (or a message built by this package).
        code: Driver numeric error code, 0 when the driver supplied none.
        kind: Boundary operation that failed.
    """

    kind: ErrorKind = ErrorKind.EXECUTION

    def __init__(self, message: str = "", code: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.code = int(code)

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} (code {self.code})"
        return self.message


class DatabaseConnectionError(SQLiteDBError):
    """Raised when the connection cannot be opened."""

    kind = ErrorKind.CONNECTION


class StatementError(SQLiteDBError):
    """Raised when a statement cannot be prepared."""

    kind = ErrorKind.STATEMENT


class ExecutionError(SQLiteDBError):
    """Raised when binding or executing a prepared statement fails."""

    kind = ErrorKind.EXECUTION


class TransactionError(SQLiteDBError):
    """Raised when BEGIN, COMMIT or ROLLBACK is rejected by the driver."""

    kind = ErrorKind.TRANSACTION


_ERRORS_BY_KIND: dict[ErrorKind, type[SQLiteDBError]] = {
    ErrorKind.CONNECTION: DatabaseConnectionError,
    ErrorKind.STATEMENT: StatementError,
    ErrorKind.EXECUTION: ExecutionError,
    ErrorKind.TRANSACTION: TransactionError,
}


def error_code(error: BaseException) -> int:
    """Return the driver error code carried by `error`, or 0.

    `sqlite3` only attaches `sqlite_errorcode` to errors reported by the
    engine itself; errors raised by the Python module (closed connection,
    wrong binding count, bad keyword argument) have none.
    """
    return int(getattr(error, "sqlite_errorcode", 0) or 0)


def from_sqlite_error(kind: ErrorKind, error: BaseException) -> SQLiteDBError:
    """Map a raw driver error to the project-level error for `kind`.

    Args:
        kind: Boundary operation that failed.
        error: Exception raised by the driver (usually `sqlite3.Error`, but
            `TypeError`/`ValueError` from bad connect keywords are accepted).

    Returns:
        Instance of the `SQLiteDBError` subclass registered for `kind`,
        carrying the original message and code.
    """
    return _ERRORS_BY_KIND[kind](str(error), error_code(error))
