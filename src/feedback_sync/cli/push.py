"""Commands that push feedback items to work trackers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated, Any

import typer

from feedback_sync.cli.common import (
    LabelsOption,
    OutputFormat,
    OutputFormatOption,
    ProjectArgument,
    ProviderArgument,
    console,
    exit_with_error,
    print_json,
    run_async_command,
)
from feedback_sync.config import get_settings
from feedback_sync.db import get_session, get_session_factory
from feedback_sync.providers import close_adapters, default_adapters
from feedback_sync.sync import (
    BackgroundTasks,
    SyncDispatcher,
    SyncError,
    SyncFailureRecorder,
)

app = typer.Typer(help="Push feedback to external trackers")


async def _with_dispatcher(work: Callable[[SyncDispatcher], Awaitable[Any]]) -> Any:
    """Run ``work`` with a dispatcher, then wait for its background calls."""
    settings = get_settings()
    adapters = default_adapters(settings)
    recorder = SyncFailureRecorder(get_session_factory()) if settings.sync.record_failures else None
    background = BackgroundTasks(on_failure=recorder)
    try:
        async with get_session() as session:
            dispatcher = SyncDispatcher(
                session, adapters, background=background, settings=settings
            )
            result = await work(dispatcher)
        # Links are committed; background calls only need the snapshots
        await background.drain(timeout=settings.http.timeout_seconds * 2)
        return result
    finally:
        await close_adapters(adapters)


@app.command("one")
def push_one(
    provider: ProviderArgument,
    project_id: ProjectArgument,
    feedback_id: Annotated[int, typer.Argument(help="Feedback item ID")],
    labels: LabelsOption = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Create a work item for one feedback item.

    Examples:
        fbsync push one clickup 1 42
        fbsync push one github 1 42 --label triage --format json
    """

    async def _push() -> dict[str, Any]:
        async def work(dispatcher: SyncDispatcher) -> dict[str, Any]:
            result = await dispatcher.push_one(provider, project_id, feedback_id, labels)
            return result.to_dict()

        try:
            data: dict[str, Any] = await _with_dispatcher(work)
        except SyncError as e:
            exit_with_error(e)
        return data

    result = run_async_command(_push(), error_prefix="Push failed")

    if output_format == OutputFormat.JSON:
        print_json(result)
        return

    identifier = f" ({result['identifier']})" if result.get("identifier") else ""
    console.print(
        f"[green]Created[/green] {provider.display_name} {provider.work_item_noun}"
        f"{identifier} for feedback #{feedback_id}: {result['url']}"
    )


@app.command("many")
def push_many(
    provider: ProviderArgument,
    project_id: ProjectArgument,
    feedback_ids: Annotated[list[int], typer.Argument(help="Feedback item IDs")],
    labels: LabelsOption = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Create work items for many feedback items.

    Items that are missing, already linked or rejected by the provider are
    reported as failed; the rest are still pushed.

    Examples:
        fbsync push many trello 1 40 41 42
        fbsync push many linear 1 40 41 --format json
    """

    async def _push() -> dict[str, Any]:
        async def work(dispatcher: SyncDispatcher) -> dict[str, Any]:
            result = await dispatcher.push_many(provider, project_id, feedback_ids, labels)
            return result.to_dict()

        try:
            data: dict[str, Any] = await _with_dispatcher(work)
        except SyncError as e:
            exit_with_error(e)
        return data

    result = run_async_command(_push(), error_prefix="Bulk push failed")

    if output_format == OutputFormat.JSON:
        print_json(result)
        return

    created = result["created"]
    failed = result["failed"]
    console.print(f"[bold]Bulk push to {provider.display_name}[/bold]")
    console.print(f"  [green]Created:[/green] {len(created)}")
    console.print(f"  [red]Failed:[/red]  {len(failed)}")

    for item in created:
        console.print(f"  #{item['feedback_id']}: {item['url']}")
    if failed:
        console.print()
        console.print("[bold]Failed items:[/bold]")
        errors = result.get("errors", {})
        for feedback_id in failed:
            console.print(f"  #{feedback_id}: {errors.get(str(feedback_id), 'Unknown error')[:80]}")
