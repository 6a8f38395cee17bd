"""fbsync - command line entry point.

Command groups:
    push          create work items (one or many feedback items)
    integrations  show which provider integrations of a project can act
    failures      inspect and prune swallowed fan-out failures
    db            create tables
"""

from typing import Annotated

import typer

from feedback_sync import __version__
from feedback_sync.cli import db as db_cmd
from feedback_sync.cli import failures as failures_cmd
from feedback_sync.cli import integrations as integrations_cmd
from feedback_sync.cli import push as push_cmd
from feedback_sync.cli.common import console
from feedback_sync.config import get_settings
from feedback_sync.db import use_database
from feedback_sync.logging import get_logger, setup_logging

app = typer.Typer(
    name="fbsync",
    help="Push feedback items to GitHub, ClickUp, Notion, Monday, Linear and Trello.",
    add_completion=False,
    no_args_is_help=True,
)
app.add_typer(push_cmd.app, name="push")
app.add_typer(integrations_cmd.app, name="integrations")
app.add_typer(failures_cmd.app, name="failures")
app.add_typer(db_cmd.app, name="db")


def _print_version(value: bool) -> None:
    if value:
        console.print(f"fbsync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=_print_version,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Debug logging, including SQL and HTTP."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only warnings and errors."),
    ] = False,
    database_url: Annotated[
        str | None,
        typer.Option(
            "--database-url",
            help="Async SQLAlchemy URL; overrides DATABASE_URL for this run.",
            show_default=False,
        ),
    ] = None,
) -> None:
    """Mirror feedback into external work trackers and inspect sync state."""
    settings = get_settings()
    log_file = settings.logging
    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=log_file.file,
        rotation=log_file.rotation,
        retention=log_file.retention,
        serialize=log_file.json_lines,
    )
    use_database(database_url)
    get_logger(__name__).debug("fbsync {} ({})", __version__, settings.environment)


if __name__ == "__main__":
    app()
