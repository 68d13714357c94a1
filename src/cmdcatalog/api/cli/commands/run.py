"""Run command - execute the script or plugin behind a command."""

import asyncio
import shlex
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from cmdcatalog.api.cli.context import console, create_builder
from cmdcatalog.application.definition_builder import DefinitionBuilder
from cmdcatalog.core.domain.definitions import DefinitionCache, DefinitionCacheItem
from cmdcatalog.core.domain.enums import DefinitionKind, LineKind
from cmdcatalog.core.domain.errors import NotFoundError
from cmdcatalog.core.interfaces.scripts import ScriptRun

_LINE_STYLES = {
    LineKind.OUTPUT: None,
    LineKind.ERROR: "red",
    LineKind.EVENT: "dim",
}


def resolve_target(
    cache: DefinitionCache, name: str, arguments: list[str]
) -> tuple[DefinitionCacheItem | None, list[str]]:
    """
    Find the executable node for a command and the arguments it receives.

    ``<language> <script> args`` resolves to the language script. A command
    declared by a plugin or script under a different name (an alias or a
    promoted override) receives its own name as first argument.

    Returns:
        The node (None if the command is unknown or not script-backed) and
        the arguments to pass.
    """
    item = cache.get([name])
    if item is None or item.location is None:
        return None, arguments

    if item.kind == DefinitionKind.LANGUAGE and arguments:
        child = item.get(arguments[0])
        if child is not None and child.kind == DefinitionKind.LANGUAGE_SCRIPT:
            return child, arguments[1:]

    if item.name != Path(item.location).stem:
        arguments = [item.name, *arguments]
    return item, arguments


async def _run(builder: DefinitionBuilder, name: str, arguments: list[str]) -> ScriptRun:
    cache = await builder.build()
    target, arguments = resolve_target(cache, name, arguments)
    if target is None:
        raise NotFoundError(
            f"No script-backed command named: {name}", details={"name": name}
        )
    return await builder.runner.run(
        target.location, " ".join(shlex.quote(argument) for argument in arguments)
    )


def run_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Command to run"),
    arguments: Optional[list[str]] = typer.Argument(None, help="Arguments passed to the script"),
) -> None:
    """Run the script or plugin behind a command."""
    builder = create_builder(ctx)
    try:
        result = asyncio.run(_run(builder, name, list(arguments or [])))
    except NotFoundError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1) from e

    for line in result.lines:
        console.print(
            line.text,
            style=_LINE_STYLES[line.kind],
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    if not result.succeeded:
        raise typer.Exit(result.exit_code or 1)
