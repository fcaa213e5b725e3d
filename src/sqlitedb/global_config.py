"""Global, project-wide configuration constants.
This module intentionally contains **no business logic** – only the
shared defaults that the database layer and the CLI import.

Per-instance settings (database path, credentials, driver options) live
in `sqlitedb.database.config` and build on top of these anchors.
"""

# Core Names
PACKAGE_NAME = "sqlitedb"

# Driver
DRIVER_SCHEME = "sqlite"
DEFAULT_DATABASE = "./db.sqlite"

# Seconds the driver waits on a locked database before giving up
DEFAULT_TIMEOUT: float = 60.0

# Marker that introduces a named placeholder in statement text
NAMED_PLACEHOLDER_MARKER = ":"
POSITIONAL_PLACEHOLDER = "?"

# Labels written to the debug log for transaction control
BEGIN_LABEL = "BEGIN TRANSACTION"
COMMIT_LABEL = "COMMIT TRANSACTION"
ROLLBACK_LABEL = "ROLLBACK TRANSACTION"
