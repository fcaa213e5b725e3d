"""Connection configuration and driver options.

Construction of a `SQLiteDB` only stores what is defined here; nothing
touches the driver until the first `connect()`.
"""

from __future__ import annotations

import enum
import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Final

from .. import global_config as g


class FetchMode(enum.Enum):
    """Shape of the rows produced by a statement.

    ASSOC: dict mapping column name to value.
    NUM: plain tuple in column order.
    ROW: `sqlite3.Row` (indexable by position and by name).
    """

    ASSOC = "assoc"
    NUM = "num"
    ROW = "row"


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Row factory turning a result tuple into a column -> value dict."""
    return {column[0]: value for column, value in zip(cursor.description, row)}


_ROW_FACTORIES: Final[dict[FetchMode, Callable[..., Any] | None]] = {
    FetchMode.ASSOC: dict_factory,
    FetchMode.NUM: None,
    FetchMode.ROW: sqlite3.Row,
}


def row_factory_for(mode: FetchMode | str) -> Callable[..., Any] | None:
    """Return the sqlite3 row factory implementing `mode`.

    Raises:
        ValueError: If `mode` is not a known fetch mode.
    """
    return _ROW_FACTORIES[FetchMode(mode)]


@dataclass(frozen=True)
class DatabaseConfig:
    """Where and as whom to connect.

    SQLite has no authentication, so `username` and `password` are kept
    only so that callers can round-trip the configuration they passed in.

    Attributes:
        database: Path to the database file (or `:memory:`).
        username: Optional user name.
        password: Optional password.
    """

    database: str = g.DEFAULT_DATABASE
    username: str | None = None
    password: str | None = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None = None) -> DatabaseConfig:
        """Build a config from a partial mapping, keeping defaults for gaps.

        Raises:
            ValueError: If the mapping holds keys other than database,
                username and password.
        """
        values = dict(values or {})
        unknown = set(values) - {"database", "username", "password"}
        if unknown:
            msg = f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        if isinstance(values.get("database"), Path):
            values["database"] = str(values["database"])
        return replace(cls(), **values)

    @property
    def dsn(self) -> str:
        """Connection string shown in logs: `<scheme>:<database>`, unescaped."""
        return f"{g.DRIVER_SCHEME}:{self.database}"

    def as_dict(self) -> dict[str, str | None]:
        return {
            "database": self.database,
            "username": self.username,
            "password": self.password,
        }


DEFAULT_OPTIONS: Final[dict[str, Any]] = {
    "timeout": g.DEFAULT_TIMEOUT,
    "fetch_mode": FetchMode.ASSOC,
}

# Keys consumed by this package instead of being forwarded to sqlite3.connect
LOCAL_OPTIONS: Final[frozenset[str]] = frozenset({"fetch_mode"})


def merge_options(options: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Overlay user options on `DEFAULT_OPTIONS`.

    Values are not validated here: a malformed option only surfaces when
    the connection is opened.
    """
    return {**DEFAULT_OPTIONS, **(options or {})}


def driver_kwargs(options: Mapping[str, Any]) -> dict[str, Any]:
    """Return the subset of `options` forwarded to `sqlite3.connect`."""
    return {key: value for key, value in options.items() if key not in LOCAL_OPTIONS}
