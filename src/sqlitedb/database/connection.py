"""Single-connection SQLite access object.

`SQLiteDB` owns one lazily opened connection, caches one prepared
statement per distinct SQL text while that connection is open, binds
positional or named parameters, wraps transaction control and, in debug
mode, logs every statement with its values substituted in.

The object is meant for single-threaded use; callers sharing an
instance between threads must serialize access themselves.
"""

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterator, Mapping, Sized
from pathlib import Path
from types import TracebackType
from typing import Any

from .. import global_config as g
from .config import (
    DatabaseConfig,
    driver_kwargs,
    merge_options,
    row_factory_for,
)
from .errors import (
    DatabaseConnectionError,
    ErrorKind,
    from_sqlite_error,
)
from .parameters import build_in_clause, classify, collapse_whitespace, interpolate_for_display
from .statements import PreparedStatement, StatementCache

logger = logging.getLogger(__name__)


class SQLiteDB:
    """Convenience wrapper around one `sqlite3` connection.

    Args:
        config: Mapping with optional `database`, `username` and
            `password` keys, or a `DatabaseConfig`.
        options: Driver options merged over the defaults (timeout=60,
            fetch_mode=ASSOC). `fetch_mode` is handled here; every other
            key is passed to `sqlite3.connect` as a keyword argument.
        debug: Initial debug mode.
        debug_logger: Logger receiving debug output. Defaults to this module's
            logger; lines are written at DEBUG level.

    Example:
        with SQLiteDB({"database": "app.sqlite"}) as db:
            stmt = db.execute("SELECT * FROM users WHERE id = :id", {"id": 5})
            for row in db.fetch_rows(stmt):
                print(row["name"])
    """

    def __init__(
        self,
        config: Mapping[str, Any] | DatabaseConfig | None = None,
        options: Mapping[str, Any] | None = None,
        *,
        debug: bool = False,
        debug_logger: logging.Logger | None = None,
    ) -> None:
        if isinstance(config, DatabaseConfig):
            self._config = config
        else:
            self._config = DatabaseConfig.from_mapping(config)
        self._options = merge_options(options)
        self._debug_mode = debug
        self._logger = debug_logger or logger
        self._query_counter = 0
        self._conn: sqlite3.Connection | None = None
        self._statements = StatementCache()

    def __repr__(self) -> str:
        state = "connected" if self.is_connected() else "disconnected"
        return f"SQLiteDB({self.dsn!r}, {state})"

    def __enter__(self) -> SQLiteDB:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.disconnect()

    # ------------------------------------------------------------------
    # Configuration and state
    # ------------------------------------------------------------------

    @property
    def dsn(self) -> str:
        return self._config.dsn

    @property
    def config(self) -> dict[str, str | None]:
        return self._config.as_dict()

    @property
    def options(self) -> dict[str, Any]:
        return dict(self._options)

    @property
    def query_count(self) -> int:
        """Number of statements and transaction commands issued so far."""
        return self._query_counter

    @property
    def statement_cache(self) -> StatementCache:
        return self._statements

    def set_option(self, key: str, value: Any) -> None:
        """Change one driver option; takes effect on the next connect."""
        self._options = merge_options({**self._options, key: value})

    def get_debug_mode(self) -> bool:
        return self._debug_mode

    def set_debug_mode(self, debug_mode: bool) -> None:
        self._debug_mode = debug_mode

    def is_connected(self) -> bool:
        return self._conn is not None

    def get_connection_handle(self) -> sqlite3.Connection | None:
        """Return the live `sqlite3.Connection`, or None. Never connects."""
        return self._conn

    def in_transaction(self) -> bool:
        return self._conn is not None and self._conn.in_transaction

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Open the connection if it is not open yet.

        Raises:
            DatabaseConnectionError: If the driver refuses to open the
                database or rejects an option.

        Logs:
            - DEBUG (debug mode): 'CONNECT "{dsn}"'.
        """
        if self._conn is not None:
            return

        self._debug(f'CONNECT "{self.dsn}"')
        conn: sqlite3.Connection | None = None
        try:
            conn = sqlite3.connect(
                self._config.database,
                isolation_level=None,
                **driver_kwargs(self._options),
            )
            conn.row_factory = row_factory_for(self._options["fetch_mode"])
        except (sqlite3.Error, TypeError, ValueError) as exc:
            if conn is not None:
                conn.close()
            logger.error("Failed to open %s: %s", self.dsn, exc)
            raise from_sqlite_error(ErrorKind.CONNECTION, exc) from exc
        self._conn = conn

    def disconnect(self) -> None:
        """Close the connection and drop every cached statement.

        Safe to call when not connected. An open transaction is rolled
        back by the engine when the connection closes.

        Logs:
            - DEBUG (debug mode): 'DISCONNECT "{dsn}"'.
        """
        if self._conn is None:
            return

        self._debug(f'DISCONNECT "{self.dsn}"')
        conn, self._conn = self._conn, None
        try:
            self._statements.clear()
        finally:
            conn.close()

    close = disconnect

    def _require_connection(self) -> sqlite3.Connection:
        self.connect()
        if self._conn is None:
            msg = f"Connection to {self.dsn} is not available"
            raise DatabaseConnectionError(msg)
        return self._conn

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _prepare(
        self,
        sql: str,
        prepare_options: Mapping[str, Any] | None = None,
    ) -> PreparedStatement:
        conn = self._require_connection()
        prepare_options = dict(prepare_options or {})
        fetch_mode = prepare_options.pop("fetch_mode", self._options["fetch_mode"])
        if prepare_options:
            msg = f"Unknown prepare options: {', '.join(sorted(prepare_options))}"
            raise ValueError(msg)
        return self._statements.prepare(conn, sql, fetch_mode=fetch_mode)

    def execute(
        self,
        sql: str,
        params: Any = None,
        prepare_options: Mapping[str, Any] | None = None,
    ) -> PreparedStatement:
        """Prepare (or reuse) `sql`, bind `params` and execute it.

        Args:
            sql: Single SQL statement with `?` or `:name` placeholders.
            params: Sequence for positional placeholders, mapping for named
                ones, or an explicit `Positional`/`Named`. Named values whose
                placeholder does not occur in `sql` are dropped.
            prepare_options: Options applied when the statement is first
                prepared. Only `fetch_mode` is recognized.

        Returns:
            The cached `PreparedStatement`, ready for `fetch_rows`.

        Raises:
            DatabaseConnectionError: If the lazy connect fails.
            StatementError: If the statement does not compile.
            ExecutionError: If binding or execution fails.
            TypeError: If `params` is neither a sequence nor a mapping.
            ValueError: If `prepare_options` holds unknown keys.
        """
        statement = self._prepare(sql, prepare_options)
        parameter_set = classify(params)
        self._debug_statement(sql, parameter_set)

        try:
            statement.execute(parameter_set.bind(sql))
        except (sqlite3.Error, OverflowError) as exc:
            logger.exception("Query execution failed: %s", exc)
            raise from_sqlite_error(ErrorKind.EXECUTION, exc) from exc
        return statement

    def execute_script(self, script: str) -> None:
        """Run a multi-statement SQL script without caching it.

        The driver commits any open transaction before running the script.

        Raises:
            ExecutionError: If any statement in the script fails.

        Logs:
            - INFO: "Executing SQL script ({n} chars)".
        """
        conn = self._require_connection()
        self._debug_statement(script)
        logger.info("Executing SQL script (%d chars)", len(script))
        try:
            conn.executescript(script)
        except sqlite3.Error as exc:
            logger.exception("Failed while executing SQL script")
            raise from_sqlite_error(ErrorKind.EXECUTION, exc) from exc

    def fetch_rows(self, statement: PreparedStatement) -> Iterator[Any]:
        """Return an iterator over the remaining rows of `statement`'s last execution.

        The iterator is forward-only and cannot be restarted: once it is
        exhausted, iterating again yields nothing until the statement is
        executed again. An iterator is bound to the execution current when
        it was created and ends once the statement is executed again.
        """
        return self._iter_rows(statement, statement.execution_count)

    @staticmethod
    def _iter_rows(statement: PreparedStatement, execution: int) -> Iterator[Any]:
        while statement.execution_count == execution and (row := statement.fetch()) is not None:
            yield row

    def fetch_one(self, sql: str, params: Any = None) -> Any | None:
        """Execute `sql` and return its first row, or None."""
        return self.execute(sql, params).fetch()

    def fetch_all(self, sql: str, params: Any = None) -> list[Any]:
        """Execute `sql` and return all of its rows."""
        return list(self.fetch_rows(self.execute(sql, params)))

    def last_insert_id(self, name: str | None = None) -> int:  # noqa: ARG002
        """Return the rowid of the most recent successful INSERT.

        Connects first if needed. `name` names a sequence on drivers that
        use them; SQLite has none and ignores it.
        """
        conn = self._require_connection()
        cursor = conn.cursor()
        # Plain tuples whatever the connection's fetch mode
        cursor.row_factory = None
        try:
            return int(cursor.execute("SELECT last_insert_rowid()").fetchone()[0])
        finally:
            cursor.close()

    @staticmethod
    def build_in_clause(count: int | Sized) -> str:
        return build_in_clause(count)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _transaction_command(self, sql: str, label: str) -> None:
        conn = self._require_connection()
        self._debug_statement(label)
        try:
            conn.execute(sql)
        except sqlite3.Error as exc:
            logger.error("%s failed: %s", label, exc)
            raise from_sqlite_error(ErrorKind.TRANSACTION, exc) from exc

    def begin_transaction(self) -> None:
        """Start a transaction. Nested BEGIN is rejected by the engine.

        Raises:
            TransactionError: If a transaction is already open.
        """
        self._transaction_command("BEGIN", g.BEGIN_LABEL)

    def commit_transaction(self) -> None:
        """Commit the open transaction.

        Raises:
            TransactionError: If no transaction is open.
        """
        self._transaction_command("COMMIT", g.COMMIT_LABEL)

    def rollback_transaction(self) -> None:
        """Roll back the open transaction.

        Raises:
            TransactionError: If no transaction is open.
        """
        self._transaction_command("ROLLBACK", g.ROLLBACK_LABEL)

    @contextlib.contextmanager
    def transaction(self) -> Iterator[SQLiteDB]:
        """Context manager for a transactional block.

        Commits on success and rolls back (then re-raises) on error.

        Logs:
            - ERROR: "Transaction rolled back due to error" on failure.
        """
        self.begin_transaction()
        try:
            yield self
        except Exception:
            logger.exception("Transaction rolled back due to error")
            if self.in_transaction():
                self.rollback_transaction()
            raise
        self.commit_transaction()

    # ------------------------------------------------------------------
    # Debug output
    # ------------------------------------------------------------------

    def _debug(self, message: str) -> None:
        if self._debug_mode:
            self._logger.debug(message)

    def _debug_statement(self, sql: str, params: Any = None) -> None:
        self._query_counter += 1
        if not self._debug_mode:
            return
        query = collapse_whitespace(interpolate_for_display(sql, params))
        self._debug(f"[{self._query_counter}] {query}")


def open_database(db_path: Path | str, *, debug: bool = False, **options: Any) -> SQLiteDB:
    """Return a connected `SQLiteDB` for `db_path`.

    Creates the parent directory of a file database if it is missing.

    Raises:
        DatabaseConnectionError: If the database cannot be opened.
    """
    database = str(db_path)
    if database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    db = SQLiteDB({"database": database}, options, debug=debug)
    db.connect()
    return db
