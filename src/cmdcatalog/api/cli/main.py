"""cmdcatalog CLI entry point."""

from pathlib import Path
from typing import Optional

import typer

from cmdcatalog.api.cli.commands import catalog, run
from cmdcatalog.api.cli.context import configure_logging, console

app = typer.Typer(
    name="cmdcatalog",
    help="cmdcatalog - discover and run commands provided by scripts and plugins",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.command("list")(catalog.list_commands)
app.command("show")(catalog.show_command)
app.command("paths")(catalog.show_paths)
app.command("rebuild")(catalog.rebuild)
app.command("run", context_settings={"allow_interspersed_args": False})(run.run_command)


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
    cwd: Optional[Path] = typer.Option(
        None,
        "--cwd",
        help="Directory to resolve profiles from (defaults to the current directory)",
        exists=True,
        file_okay=False,
        resolve_path=True,
    ),
):
    """cmdcatalog CLI."""
    configure_logging(debug)
    # Store global options in context for subcommands
    ctx.obj = {"debug": debug, "cwd": cwd}


@app.command()
def version():
    """Show cmdcatalog version."""
    from cmdcatalog import __version__

    console.print(f"[bold blue]Version:[/bold blue] [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
