"""Prepared statements and the per-connection statement cache.

The sqlite3 module compiles SQL lazily, on first execution. To report
syntax errors at prepare time, `compile_statement` asks the engine to
compile the statement under `EXPLAIN`, which produces the program
listing without running it.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from collections.abc import Iterator
from typing import Any

from .config import FetchMode, row_factory_for
from .errors import ErrorKind, StatementError, from_sqlite_error

logger = logging.getLogger(__name__)

_EXPLAIN_RE = re.compile(r"\s*explain\b", re.IGNORECASE)


def _is_binding_error(error: sqlite3.ProgrammingError) -> bool:
    # Raised after a successful compile when no values were supplied for
    # the statement's placeholders.
    return "binding" in str(error).lower()


def compile_statement(conn: sqlite3.Connection, sql: str) -> None:
    """Compile `sql` on `conn` without executing it.

    Args:
        conn: Open connection.
        sql: Single SQL statement.

    Raises:
        sqlite3.Error: If the engine cannot compile the statement
            (syntax error, unknown table or column, several statements).
    """
    probe = sql if _EXPLAIN_RE.match(sql) else f"EXPLAIN {sql}"
    try:
        conn.execute(probe).close()
    except sqlite3.ProgrammingError as exc:
        if not _is_binding_error(exc):
            raise


class PreparedStatement:
    """A compiled statement reused across executions.

    Each execution gets a fresh cursor; the cursor of the previous
    execution is closed first, discarding any unfetched rows.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        sql: str,
        *,
        fetch_mode: FetchMode | str = FetchMode.ASSOC,
    ) -> None:
        self.sql = sql
        self.fetch_mode = FetchMode(fetch_mode)
        self.execution_count = 0
        self._conn = conn
        self._cursor: sqlite3.Cursor | None = None

    def __repr__(self) -> str:
        return f"PreparedStatement({self.sql!r}, fetch_mode={self.fetch_mode.value})"

    def close_cursor(self) -> None:
        """Release the cursor of the last execution, if any."""
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None

    def execute(self, bound: tuple[Any, ...] | dict[str, Any]) -> None:
        """Run the statement with already-bound values.

        The statement is left without an open cursor on failure.

        Raises:
            sqlite3.Error: If binding or execution fails.
            OverflowError: If an integer value does not fit in 64 bits.
        """
        self.close_cursor()
        cursor = self._conn.cursor()
        cursor.row_factory = row_factory_for(self.fetch_mode)
        try:
            cursor.execute(self.sql, bound)
        except (sqlite3.Error, OverflowError):
            cursor.close()
            raise
        self._cursor = cursor
        self.execution_count += 1

    def fetch(self) -> Any | None:
        """Return the next row of the last execution, or None when exhausted."""
        if self._cursor is None:
            return None
        return self._cursor.fetchone()

    @property
    def rowcount(self) -> int:
        """Rows modified by the last execution (-1 when not applicable)."""
        return -1 if self._cursor is None else self._cursor.rowcount

    @property
    def lastrowid(self) -> int | None:
        return None if self._cursor is None else self._cursor.lastrowid

    @property
    def columns(self) -> list[str]:
        """Column names of the last execution's result set."""
        if self._cursor is None or self._cursor.description is None:
            return []
        return [column[0] for column in self._cursor.description]


class StatementCache:
    """Mapping of exact SQL text to its `PreparedStatement`.

    Entries are never evicted; the whole cache is cleared when the owning
    connection is closed.
    """

    def __init__(self) -> None:
        self._statements: dict[str, PreparedStatement] = {}
        self.prepare_count = 0

    def __len__(self) -> int:
        return len(self._statements)

    def __contains__(self, sql: object) -> bool:
        return sql in self._statements

    def __iter__(self) -> Iterator[PreparedStatement]:
        return iter(list(self._statements.values()))

    def prepare(
        self,
        conn: sqlite3.Connection,
        sql: str,
        *,
        fetch_mode: FetchMode | str = FetchMode.ASSOC,
    ) -> PreparedStatement:
        """Return the cached statement for `sql`, compiling it on first use.

        `fetch_mode` only applies when the statement is first prepared.

        Raises:
            StatementError: If `sql` is empty or does not compile. Nothing
                is cached in that case.

        Logs:
            - DEBUG: "Prepared statement #{n}: {sql[:80]}" on a cache miss.
            - ERROR: "Statement preparation failed: {exc}" on failure.
        """
        cached = self._statements.get(sql)
        if cached is not None:
            return cached

        if not sql.strip():
            msg = "Cannot prepare an empty statement"
            raise StatementError(msg)

        try:
            compile_statement(conn, sql)
        except sqlite3.Error as exc:
            logger.exception("Statement preparation failed: %s", exc)
            raise from_sqlite_error(ErrorKind.STATEMENT, exc) from exc

        statement = PreparedStatement(conn, sql, fetch_mode=fetch_mode)
        self._statements[sql] = statement
        self.prepare_count += 1
        logger.debug("Prepared statement #%d: %s", self.prepare_count, sql[:80])
        return statement

    def clear(self) -> None:
        """Close every statement's cursor and drop all entries."""
        for statement in self._statements.values():
            statement.close_cursor()
        self._statements.clear()
