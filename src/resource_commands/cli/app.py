"""
Root Typer application for the resource-commands CLI.

``statements`` prints the SQL compiled for a resource type; ``apply``
decodes a commands JSON file and executes it against the configured
database.
"""

from __future__ import annotations

import asyncio
import importlib
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from resource_commands.core.commands import Commands, Multi
from resource_commands.core.config import configure_from_settings, create_pool, get_settings
from resource_commands.core.dialect import Backend
from resource_commands.core.errors import ResourceError
from resource_commands.core.resource import Resource
from resource_commands.core.wire import ResourceSet

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="resource-commands",
    help="resource-commands: schema-driven SQL writes and command batches.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        from resource_commands import __version__

        typer.echo(f"resource-commands {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """resource-commands CLI: inspect compiled statements, apply commands."""


def import_target(target: str) -> Any:
    """Resolve ``package.module:attribute``."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"expected 'module:attribute', got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"cannot import {module_name!r}: {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError:
        raise typer.BadParameter(f"{module_name!r} has no attribute {attr!r}") from None


@app.command("statements")
def show_statements(
    target: str = typer.Argument(..., help="Resource class as module:Class"),
    backend: Backend = typer.Option(Backend.POSTGRES, "--backend", "-b", help="Target backend"),
    format: str = typer.Option("text", "--format", "-f", help="Output format: text, json"),
) -> None:
    """Show the insert/upsert/delete SQL compiled for a resource type."""
    configure_from_settings(get_settings())
    resource_type = import_target(target)
    if not (isinstance(resource_type, type) and issubclass(resource_type, Resource)):
        raise typer.BadParameter(f"{target!r} is not a Resource subclass")

    try:
        statements = resource_type.statements(backend)
    except ResourceError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    rendered = {
        "insert": statements.insert,
        "upsert": statements.upsert,
        "delete": statements.delete,
    }
    if format == "json":
        typer.echo(json.dumps(rendered, indent=2))
        return
    for name, sql in rendered.items():
        typer.echo(f"{name}: {sql}")


@app.command("apply")
def apply_commands(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Commands JSON file"),
    resources: str = typer.Option(..., "--resources", "-r", help="ResourceSet as module:attribute"),
    database_url: str | None = typer.Option(  # noqa: UP007
        None, "--database-url", help="Overrides RESOURCE_COMMANDS_DATABASE_URL"
    ),
) -> None:
    """Decode a commands file and execute it (arrays run as one transaction)."""
    resource_set = import_target(resources)
    if not isinstance(resource_set, ResourceSet):
        raise typer.BadParameter(f"{resources!r} is not a ResourceSet")

    settings = get_settings(_force_reload=True)
    if database_url:
        settings = settings.model_copy(update={"database_url": database_url})
    configure_from_settings(settings)

    try:
        backend = settings.backend
        commands = asyncio.run(_apply_with(resource_set, file.read_text(encoding="utf-8"), settings))
    except ResourceError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    count = len(commands) if isinstance(commands, Multi) else 1
    console.print(f"[green]✓[/green] Applied {count} command(s) to {backend.value}")


async def _apply_with(resource_set: ResourceSet, payload: str, settings: Any) -> Commands:
    # undecodable input fails before a connection is opened
    commands = resource_set.loads(payload)
    async with create_pool(settings) as pool:
        await commands.execute(pool)
    return commands


if __name__ == "__main__":
    app()
