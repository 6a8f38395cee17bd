"""Commands for inspecting swallowed fan-out failures."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

import typer
from rich.table import Table

from feedback_sync.cli.common import (
    OutputFormat,
    OutputFormatOption,
    console,
    print_json,
    run_async_command,
)
from feedback_sync.db import SyncFailureRepository, get_session

app = typer.Typer(help="Inspect fan-out failures")


@app.command("list")
def list_failures(
    provider: Annotated[
        str | None,
        typer.Option("--provider", "-p", help="Filter by provider, 'slack' or 'email'"),
    ] = None,
    project_id: Annotated[
        int | None,
        typer.Option("--project", help="Filter by project ID"),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, max=1000, help="Maximum rows to show"),
    ] = 20,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """List the most recent failures.

    Examples:
        fbsync failures list
        fbsync failures list --provider clickup --limit 50
    """

    async def _list() -> list[dict[str, Any]]:
        async with get_session() as session:
            failures = await SyncFailureRepository(session).get_recent(
                provider=provider, project_id=project_id, limit=limit
            )
            return [
                {
                    "id": f.id,
                    "failed_at": f.failed_at.isoformat(),
                    "provider": f.provider,
                    "operation": f.operation,
                    "project_id": f.project_id,
                    "feedback_id": f.feedback_id,
                    "http_status": f.http_status,
                    "error_type": f.error_type,
                    "error": f.error_message,
                }
                for f in failures
            ]

    rows = run_async_command(_list())

    if output_format == OutputFormat.JSON:
        print_json(rows)
        return

    if not rows:
        console.print("[dim]No failures recorded[/dim]")
        return

    table = Table(title="Recent fan-out failures")
    table.add_column("When", style="dim")
    table.add_column("Provider", style="cyan")
    table.add_column("Operation")
    table.add_column("Feedback", justify="right")
    table.add_column("HTTP", justify="right")
    table.add_column("Error")
    for row in rows:
        table.add_row(
            row["failed_at"][:19],
            row["provider"],
            row["operation"],
            str(row["feedback_id"] or "-"),
            str(row["http_status"] or "-"),
            row["error"][:60],
        )
    console.print(table)


@app.command("stats")
def stats(
    project_id: Annotated[
        int | None,
        typer.Option("--project", help="Filter by project ID"),
    ] = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Show failure counts per provider."""

    async def _stats() -> dict[str, Any]:
        async with get_session() as session:
            return await SyncFailureRepository(session).get_stats(project_id=project_id)

    result = run_async_command(_stats())

    if output_format == OutputFormat.JSON:
        print_json(result)
        return

    console.print("[bold]Fan-out failures[/bold]")
    for provider, count in result["by_provider"].items():
        console.print(f"  {provider:<10} {count}")
    console.print(f"  [bold]{'total':<10} {result['total']}[/bold]")


@app.command("prune")
def prune(
    days: Annotated[
        int,
        typer.Option("--days", "-d", min=1, help="Delete failures older than this many days"),
    ] = 30,
) -> None:
    """Delete old failure records.

    Examples:
        fbsync failures prune --days 7
    """

    async def _prune() -> int:
        cutoff = datetime.now(UTC) - timedelta(days=days)
        async with get_session() as session:
            return await SyncFailureRepository(session).delete_before(cutoff)

    deleted = run_async_command(_prune(), error_prefix="Prune failed")
    console.print(f"[green]Deleted[/green] {deleted} failure records older than {days} days")
