"""Database management commands."""

import typer

from feedback_sync.cli.common import console, run_async_command
from feedback_sync.db import create_tables, dispose_engine, get_engine

app = typer.Typer(help="Database management")


@app.command("init")
def init() -> None:
    """Create any missing tables in the configured database."""

    async def _init() -> str:
        url = get_engine().url.render_as_string()
        try:
            await create_tables()
        finally:
            await dispose_engine()
        return url

    url = run_async_command(_init(), error_prefix="Database init failed")
    console.print(f"[green]Tables created[/green] in {url}")
