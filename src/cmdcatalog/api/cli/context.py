"""Shared CLI helpers: logging setup and builder creation."""

import logging
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.markup import escape

from cmdcatalog.application.definition_builder import DefinitionBuilder
from cmdcatalog.application.factory import create_definition_builder
from cmdcatalog.application.settings_loader import load_settings
from cmdcatalog.core.domain.errors import ConfigError

console = Console()


def configure_logging(debug: bool) -> None:
    """Route structlog output through a level filter."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def create_builder(ctx: typer.Context) -> DefinitionBuilder:
    """Load settings for the invocation and create a builder."""
    options = ctx.obj or {}
    working_directory = options.get("cwd") or Path.cwd()
    try:
        settings = load_settings(working_directory)
    except ConfigError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(e.message)}")
        if e.file_path:
            console.print(f"[dim]{e.file_path}[/dim]")
        raise typer.Exit(1) from e
    return create_definition_builder(settings)
