"""
Script Protocol

Defines the line protocol spoken with external scripts and plugins and the
contract of the component that runs them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from cmdcatalog.core.domain.enums import ERROR_PREFIX, EVENT_PREFIX, LineKind

# Argument asking a script to describe its commands
DEFINITIONS_QUERY = "get-command-definitions"


@dataclass(frozen=True)
class ScriptLine:
    """
    One line of script output.

    Attributes:
        text: Line text; error lines always start with ``error|``
        from_stderr: Whether the line was read from standard error
    """

    text: str
    from_stderr: bool = False

    @classmethod
    def from_stream(cls, line: str, from_stderr: bool) -> ScriptLine:
        """Tag a raw line, marking standard-error output as ``error|``."""
        line = line.rstrip("\r\n")
        if from_stderr and not line.startswith(ERROR_PREFIX):
            line = ERROR_PREFIX + line
        return cls(text=line, from_stderr=from_stderr)

    @property
    def kind(self) -> LineKind:
        if self.text.startswith(ERROR_PREFIX):
            return LineKind.ERROR
        if self.text.startswith(EVENT_PREFIX):
            return LineKind.EVENT
        return LineKind.OUTPUT

    @property
    def is_error(self) -> bool:
        return self.kind == LineKind.ERROR


@dataclass
class ScriptRun:
    """
    Completed script invocation.

    Attributes:
        script_path: Executable that was run
        arguments: Argument string after placeholder expansion
        lines: Tagged output lines; the last one is the ``event|`` audit line
        exit_code: Process exit code, None if spawning failed or timed out
    """

    script_path: str
    arguments: str
    lines: list[ScriptLine] = field(default_factory=list)
    exit_code: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> list[str]:
        """Text of normal output lines."""
        return [line.text for line in self.lines if line.kind == LineKind.OUTPUT]

    @property
    def errors(self) -> list[str]:
        """Text of error lines."""
        return [line.text for line in self.lines if line.is_error]


class ScriptRunnerProtocol(Protocol):
    """Runs scripts and plugins."""

    async def run(self, script_path: str, arguments: str = "") -> ScriptRun:
        """Run a script in command mode."""
        ...

    async def query(self, script_path: str) -> str:
        """Ask a script to describe its commands and return the raw response."""
        ...
