"""
Built-in Command Table

Usage trees of the commands implemented by the ``cmdcatalog`` CLI itself.
They form the built-in layer of every catalog, below all profile layers.
"""

from cmdcatalog.core.domain.definitions import BuiltInCommand, UsageParameter


def _command(name: str, description: str) -> UsageParameter:
    return UsageParameter(name=name, description=description)


def builtin_commands() -> list[BuiltInCommand]:
    """Return the built-in command table."""
    list_usage = _command("list", "List discovered commands")
    list_usage.add(
        "[--kind]",
        "Only show commands of one origin: builtin, language, language-script, script",
    )

    show = _command("show", "Show the definition tree of a command")
    show.add("COMMAND", "Command path, e.g. 'conf read'")

    paths = _command("paths", "Show the application root and the profile layers")

    rebuild = _command("rebuild", "Discard cached definitions and rediscover all commands")

    run = _command("run", "Run the script or plugin behind a command")
    command = run.add("COMMAND", "Command to run")
    command.add("[ARGS]", "Arguments passed to the script")

    version = _command("version", "Show the cmdcatalog version")

    return [
        BuiltInCommand(name=usage.name, usage=usage)
        for usage in (list_usage, show, paths, rebuild, run, version)
    ]
