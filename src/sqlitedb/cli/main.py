from __future__ import annotations

import typer

from .base import configure_logging, get_package_version
from .commands.db import app as db_app

configure_logging()
app = typer.Typer(
    help="Project CLI",
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(db_app, name="db")


@app.command("version")
def version() -> None:
    """Print the installed sqlitedb version."""
    typer.echo(get_package_version())


def main() -> None:
    """Main entry point for package CLI.

    Invokes the Typer application, which handles command parsing and
    execution.

    Side Effects:
        - Processes CLI arguments and executes commands.
        - May exit with non-zero code on errors.
    """
    app()


if __name__ == "__main__":
    main()
