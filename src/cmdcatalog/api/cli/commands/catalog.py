"""Catalog commands - inspect and rebuild discovered command definitions."""

import asyncio
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from cmdcatalog.api.cli.context import console, create_builder
from cmdcatalog.core.domain.definitions import DefinitionCacheItem
from cmdcatalog.core.domain.enums import DefinitionKind
from cmdcatalog.core.domain.errors import NotFoundError


def list_commands(
    ctx: typer.Context,
    kind: Optional[DefinitionKind] = typer.Option(
        None, "--kind", "-k", help="Only show commands of one origin"
    ),
) -> None:
    """List discovered commands."""
    builder = create_builder(ctx)
    cache = asyncio.run(builder.build())
    items = cache.definitions if kind is None else cache.definitions_of(kind)

    if not items:
        console.print("[yellow]No commands found.[/yellow]")
        return

    table = Table(title="Available Commands")
    table.add_column("Command", style="cyan")
    table.add_column("Kind", style="yellow")
    table.add_column("Description")
    table.add_column("Location", style="dim")

    for item in items:
        table.add_row(
            escape(item.name), item.kind.value, escape(item.description), item.location or ""
        )

    console.print(table)


def _add_branch(tree: Tree, item: DefinitionCacheItem) -> None:
    label = f"[cyan]{escape(item.name)}[/cyan]"
    if item.description:
        label += f" - {escape(item.description)}"
    if item.override:
        label += " [magenta](override)[/magenta]"
    branch = tree.add(label)
    for child in item.children:
        _add_branch(branch, child)


def show_command(
    ctx: typer.Context,
    path: list[str] = typer.Argument(..., help="Command path, e.g. 'conf read'"),
) -> None:
    """Show the definition tree of a command."""
    builder = create_builder(ctx)
    asyncio.run(builder.build())
    try:
        item = builder.require(path)
    except NotFoundError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1) from e
    command = escape(" ".join(path))

    console.print(f"[bold cyan]Command:[/bold cyan] {command}")
    console.print(f"[bold]Kind:[/bold] {item.kind.value}")
    if item.location:
        console.print(f"[bold]Location:[/bold] {item.location}")
    console.print(f"[bold]Updated:[/bold] {item.updated_at.isoformat()}")
    if item.description:
        console.print(f"[bold]Description:[/bold] {escape(item.description)}")

    if item.children:
        tree = Tree("[bold]Parameters[/bold]")
        for child in item.children:
            _add_branch(tree, child)
        console.print(tree)


def show_paths(ctx: typer.Context) -> None:
    """Show the application root and the profile layers in merge order."""
    builder = create_builder(ctx)

    table = Table(title="Definition Layers")
    table.add_column("Layer", style="cyan")
    table.add_column("Path")
    table.add_column("Cached", style="yellow")

    layers = [("builtin", builder.profiles.app_root_path)]
    layers.extend(("profile", path) for path in builder.layer_paths())
    for name, path in layers:
        table.add_row(name, str(path), "yes" if builder.store.exists(path) else "no")

    console.print(table)


def rebuild(ctx: typer.Context) -> None:
    """Discard cached definitions and rediscover all commands."""
    builder = create_builder(ctx)
    removed = builder.invalidate()
    cache = asyncio.run(builder.build())

    console.print(
        f"[green]Rebuilt {builder.stats.layers_rebuilt} layer(s)[/green] "
        f"with {len(cache)} command(s) "
        f"([dim]{builder.stats.queries} script queries, {len(removed)} cache file(s) discarded[/dim])"
    )
