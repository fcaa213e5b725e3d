from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from importlib.metadata import PackageNotFoundError, version
from typing import Any

import typer

from ..global_config import PACKAGE_NAME

_LOGGING_CONFIGURED = False


def get_package_version() -> str:
    try:
        return version(PACKAGE_NAME)
    except PackageNotFoundError:
        return "unknown"


def configure_logging(level: int = logging.INFO) -> None:
    """Configure CLI-wide logging once.

    Sets up basic logging configuration for the CLI. Safe to call multiple
    times; only configures on first call.

    Args:
        level: Logging level (defaults to INFO).

    Side Effects:
        - Configures Python logging module globally.
        - Sets module-level flag to prevent reconfiguration.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    _LOGGING_CONFIGURED = True


def enable_debug_logging() -> None:
    """Let the package's DEBUG records (interpolated SQL) through."""
    logging.getLogger(PACKAGE_NAME).setLevel(logging.DEBUG)


@contextmanager
def handle_errors(
    operation: str,
    *,
    logger: logging.Logger | None = None,
) -> Generator[None, None, None]:
    """Provide consistent exception handling for CLI operations.

    Context manager that catches exceptions, logs them, displays user-friendly
    error messages, and exits with code 1. Re-raises typer.Exit to allow
    normal CLI exit flow.

    Args:
        operation: Human-readable operation name for error messages.
        logger: Logger instance. Defaults to module logger if None.

    Yields:
        None (used as context manager).

    Raises:
        typer.Exit: Always exits with code 1 on exception (except typer.Exit
            which is re-raised).

    Logs:
        - ERROR: "Error during {operation}" with full exception traceback.

    User Output:
        - Prints error message via typer.secho() in red: "✗ {operation} failed: {exc}".
    """
    logger = logger or logging.getLogger(__name__)
    try:
        yield
    except typer.Exit:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Error during %s", operation)
        typer.secho(f"✗ {operation} failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(1) from exc


class BaseCLI:
    """Utility base class for CLI command groups."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def handle_cli_operation(
        self,
        *,
        operation: str,
        op_callable: Callable[[], dict[str, Any]],
        pre_message: str | None = None,
    ) -> dict[str, Any]:
        """Run an operation with consistent logging, formatting, and errors.

        Args:
            operation: Human-readable operation name for error handling.
            op_callable: Callable that performs the operation and returns
                a result dict.
            pre_message: Optional message to display before operation starts.

        Returns:
            Result from op_callable.

        User Output:
            - Prints pre_message via typer.echo() if provided.
            - Prints formatted result via typer.echo().
            - Error messages handled by handle_errors context manager.
        """
        if pre_message:
            typer.echo(pre_message)

        with handle_errors(operation, logger=self.logger):
            result = op_callable()

        typer.echo(format_result(result, operation=operation))
        return result


def format_result(result: dict[str, Any], *, operation: str) -> str:
    """Format an operation result dict into CLI-friendly text.

    Args:
        result: Result dictionary with optional keys: success, rowcount,
            last_insert_id, message, columns, rows.
        operation: Operation label to display.

    Returns:
        Formatted multi-line string.
    """
    icon = "✓" if result.get("success", True) else "✗"
    lines = [f"{icon} {operation}"]

    stats_order = [
        ("rowcount", "rows affected"),
        ("last_insert_id", "last insert id"),
    ]
    stats = [
        f"{label}: {result[key]}"
        for key, label in stats_order
        if key in result and result[key] is not None
    ]
    if stats:
        lines.append("  " + " | ".join(stats))

    message = result.get("message")
    if message:
        lines.append(f"  ℹ {message}")

    columns = result.get("columns") or []
    rows = result.get("rows")
    if rows is not None:
        if columns:
            lines.append("  " + " | ".join(columns))
        for row in rows:
            values = row.values() if isinstance(row, dict) else row
            lines.append("    " + " | ".join("NULL" if v is None else str(v) for v in values))
        lines.append(f"  ({len(rows)} row{'s' if len(rows) != 1 else ''})")

    return "\n".join(lines)
