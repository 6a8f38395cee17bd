"""Shared console, option types and output helpers for fbsync commands."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from enum import Enum
from typing import Annotated, Any, NoReturn, TypeVar

import typer
from rich.console import Console

from feedback_sync.schemas import Provider

console = Console()

T = TypeVar("T")


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


def run_async_command(
    coro: Coroutine[object, object, T],
    *,
    error_prefix: str = "Error",
) -> T:
    """Run ``coro`` to completion for a synchronous Typer command.

    ``typer.Exit`` raised inside the coroutine passes through untouched;
    any other exception is printed as ``<error_prefix>: <message>`` and
    turned into exit code 1.
    """
    try:
        return asyncio.run(coro)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]{error_prefix}:[/red] {e}")
        raise typer.Exit(1) from None


def exit_with_error(message: object) -> NoReturn:
    """Print ``message`` as an error and stop with exit code 1."""
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


def print_json(data: Any) -> None:
    """Pretty-print ``data``; datetimes and other non-JSON values become strings."""
    console.print_json(json.dumps(data, default=str))


# Typer option/argument types, kept as Annotated aliases so commands
# avoid calls in default arguments (B008).

OutputFormatOption = Annotated[
    OutputFormat,
    typer.Option("--format", "-f", help="Output format: text or json"),
]

ProviderArgument = Annotated[
    Provider,
    typer.Argument(help="Work tracker to push to", case_sensitive=False),
]

ProjectArgument = Annotated[int, typer.Argument(help="Project ID")]

LabelsOption = Annotated[
    list[str] | None,
    typer.Option(
        "--label",
        "-l",
        help="Extra label/tag (repeatable); project defaults and category are always added",
    ),
]
