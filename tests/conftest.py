from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from sqlitedb import SQLiteDB


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """
    A dedicated temp root directory for each test.
    All filesystem writes in tests should be under this root (or tmp_path directly).
    """
    root = tmp_path / "proj"
    (root / "data" / "out").mkdir(parents=True)
    return root


@pytest.fixture(autouse=True)
def chdir_to_project_root(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Automatically change working directory to project_root for all tests.
    This ensures relative-path operations (including the ./db.sqlite default)
    go into the temp directory.
    """
    monkeypatch.chdir(project_root)


@pytest.fixture
def sqlite_path(project_root: Path) -> Path:
    """
    On-disk SQLite DB under the temp project root (more realistic than :memory:).
    """
    return project_root / "data" / "out" / "test.sqlite"


@pytest.fixture
def db(sqlite_path: Path, project_root: Path) -> Iterator[SQLiteDB]:
    """
    A SQLiteDB instance that is always disconnected after each test.

    Safety enforcement:
    - Path assertion: DB must be under project_root (prevents touching real DBs)
    """
    try:
        sqlite_path.resolve().relative_to(project_root.resolve())
    except ValueError:
        raise AssertionError(
            f"SQLite path {sqlite_path} is not under project_root {project_root}. "
            "This prevents accidental writes to real databases."
        )

    instance = SQLiteDB({"database": str(sqlite_path)})
    try:
        yield instance
    finally:
        instance.disconnect()


@pytest.fixture
def users_db(db: SQLiteDB) -> SQLiteDB:
    """`db` with a small users table: (1, alice), (2, bob), (3, carol)."""
    db.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT)")
    for name in ("alice", "bob", "carol"):
        db.execute("INSERT INTO users (name) VALUES (?)", [name])
    return db


@pytest.fixture
def debug_caplog(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """caplog capturing the package's DEBUG records."""
    caplog.set_level(logging.DEBUG, logger="sqlitedb")
    return caplog
