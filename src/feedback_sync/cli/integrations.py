"""Integration configuration inspection commands."""

from __future__ import annotations

from typing import Any

import typer
from rich.table import Table

from feedback_sync.cli.common import (
    OutputFormat,
    OutputFormatOption,
    ProjectArgument,
    console,
    print_json,
    run_async_command,
)
from feedback_sync.db import IntegrationConfigRepository, get_session
from feedback_sync.providers import AdapterMap, close_adapters, default_adapters
from feedback_sync.schemas import SLACK, IntegrationSettings, Provider

app = typer.Typer(help="Inspect project integrations")


def _describe(
    settings: IntegrationSettings,
    adapters: AdapterMap,
) -> dict[str, Any]:
    """Status summary of one integration row (credentials omitted)."""
    if settings.provider == SLACK:
        configured = bool(settings.webhook_url)
    else:
        configured = adapters[Provider(settings.provider)].is_configured(settings)
    return {
        "provider": settings.provider,
        "configured": configured,
        "active": configured and settings.is_active,
        "target": settings.container_name or settings.container_id,
        "default_labels": settings.default_labels,
        "sync_status": settings.sync_status_enabled,
        "sync_comments": settings.sync_comments_enabled,
        "votes_field": settings.votes_field,
    }


@app.command("show")
def show(
    project_id: ProjectArgument,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Show which integrations of a project can act.

    Examples:
        fbsync integrations show 1
        fbsync integrations show 1 --format json
    """

    async def _show() -> list[dict[str, Any]]:
        adapters = default_adapters()
        try:
            async with get_session() as session:
                rows = await IntegrationConfigRepository(session).list_for_project(project_id)
                return [_describe(IntegrationSettings.from_orm(row), adapters) for row in rows]
        finally:
            await close_adapters(adapters)

    rows = run_async_command(_show())

    if output_format == OutputFormat.JSON:
        print_json(rows)
        return

    if not rows:
        console.print(f"[dim]No integrations for project {project_id}[/dim]")
        return

    table = Table(title=f"Integrations for project {project_id}")
    table.add_column("Provider", style="cyan")
    table.add_column("Configured")
    table.add_column("Active")
    table.add_column("Target")
    table.add_column("Status sync")
    table.add_column("Comment sync")
    table.add_column("Votes field")

    def flag(value: bool) -> str:
        return "[green]yes[/green]" if value else "[dim]no[/dim]"

    for row in rows:
        table.add_row(
            row["provider"],
            flag(row["configured"]),
            flag(row["active"]),
            row["target"] or "-",
            flag(row["sync_status"]),
            flag(row["sync_comments"]),
            row["votes_field"] or "-",
        )
    console.print(table)
