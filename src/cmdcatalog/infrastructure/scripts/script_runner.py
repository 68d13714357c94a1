"""
Script Runner

Executes plugins and user scripts as child processes and mediates the line
protocol spoken with them:

- Placeholders (``{run-location}``, ``{global-profile}``, ``{local-profile}``)
  are replaced by shell-quoted values before the argument string is split.
- Standard-error lines are tagged ``error|`` unless they already are.
- Every run ends with ``event|builtin command ran "<name>" <arguments>``.
- Spawn failures and timeouts surface as ``error|`` lines, never as
  exceptions, so one broken script cannot abort discovery.
"""

import asyncio
import shlex
from pathlib import Path

import structlog

from cmdcatalog.core.domain.enums import EVENT_PREFIX, LineKind
from cmdcatalog.core.domain.errors import ScriptQueryError
from cmdcatalog.core.interfaces.scripts import DEFINITIONS_QUERY, ScriptLine, ScriptRun

RUN_LOCATION = "{run-location}"
GLOBAL_PROFILE = "{global-profile}"
LOCAL_PROFILE = "{local-profile}"


def expand_placeholders(arguments: str, replacements: dict[str, str]) -> str:
    """
    Substitute placeholder tokens with shell-quoted values.

    Args:
        arguments: Argument string containing placeholder tokens
        replacements: Mapping of token to raw (unquoted) value

    Returns:
        Argument string safe to split with ``shlex.split``
    """
    for token, value in replacements.items():
        arguments = arguments.replace(token, shlex.quote(value))
    return arguments


class ScriptRunner:
    """
    Runs scripts with the placeholder and line protocol applied.

    Example:
        >>> runner = ScriptRunner(working_directory=Path.cwd())
        >>> response = await runner.query("/home/me/.cmdcatalog/scripts/deploy")
        >>> run = await runner.run("/home/me/.cmdcatalog/scripts/deploy", "staging")
        >>> run.lines[-1].text
        'event|builtin command ran "deploy" ...'
    """

    def __init__(
        self,
        working_directory: str | Path,
        global_profile: str = "default",
        local_profile: str = "default",
        timeout: float = 30.0,
    ):
        """
        Initialize the runner.

        Args:
            working_directory: Directory passed as ``{run-location}`` and
                used as the child's working directory
            global_profile: Active global profile name
            local_profile: Active local profile name
            timeout: Seconds before a child process is killed
        """
        self.working_directory = Path(working_directory)
        self.global_profile = global_profile
        self.local_profile = local_profile
        self.timeout = timeout
        self.logger = structlog.get_logger().bind(component="script_runner")

    async def run(self, script_path: str, arguments: str = "") -> ScriptRun:
        """
        Run a script in command mode.

        The script receives ``{run-location} {global-profile} {local-profile}``
        followed by ``arguments``.

        Args:
            script_path: Executable to run
            arguments: User argument string

        Returns:
            Completed ScriptRun with tagged lines
        """
        return await self._run(
            script_path,
            f"{RUN_LOCATION} {GLOBAL_PROFILE} {LOCAL_PROFILE} {arguments}".rstrip(),
            {
                RUN_LOCATION: str(self.working_directory),
                GLOBAL_PROFILE: self.global_profile,
                LOCAL_PROFILE: self.local_profile,
            },
        )

    async def query(self, script_path: str) -> str:
        """
        Ask a script to describe its commands.

        Args:
            script_path: Executable to query

        Returns:
            All normal output lines joined into one string

        Raises:
            ScriptQueryError: If the script failed or printed nothing usable
        """
        result = await self._run(
            script_path,
            f"{RUN_LOCATION} {DEFINITIONS_QUERY}",
            {RUN_LOCATION: str(self.working_directory)},
        )
        if not result.succeeded:
            raise ScriptQueryError(
                "; ".join(result.errors) or f"Script exited with code {result.exit_code}",
                script_path=script_path,
                exit_code=result.exit_code,
            )

        response = "".join(result.output)
        if not response.strip():
            raise ScriptQueryError(
                "Script returned no command definitions",
                script_path=script_path,
                exit_code=result.exit_code,
            )
        return response

    async def _run(
        self, script_path: str, arguments: str, replacements: dict[str, str]
    ) -> ScriptRun:
        expanded = expand_placeholders(arguments, replacements)
        result = ScriptRun(script_path=script_path, arguments=expanded)

        self.logger.debug("script.run", script=script_path, arguments=expanded)
        try:
            argv = [script_path, *shlex.split(expanded)]
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.working_directory),
            )
            try:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
                result.lines.append(
                    ScriptLine.from_stream(
                        f"Script timed out after {self.timeout:g}s", from_stderr=True
                    )
                )
                self.logger.warning(
                    "script.timeout", script=script_path, timeout=self.timeout
                )
            else:
                result.exit_code = process.returncode
                result.lines.extend(_split_lines(stdout, from_stderr=False))
                result.lines.extend(_split_lines(stderr, from_stderr=True))
        except (OSError, ValueError) as e:
            result.lines.append(ScriptLine.from_stream(str(e), from_stderr=True))
            self.logger.warning("script.spawn_failed", script=script_path, error=str(e))

        for line in result.lines:
            if line.kind == LineKind.ERROR:
                self.logger.debug("script.error_line", script=script_path, line=line.text)

        result.lines.append(
            ScriptLine(
                text=f'{EVENT_PREFIX}builtin command ran "{Path(script_path).stem}" {expanded}'
            )
        )
        return result


def _split_lines(data: bytes | None, from_stderr: bool) -> list[ScriptLine]:
    if not data:
        return []
    text = data.decode("utf-8", errors="replace")
    return [ScriptLine.from_stream(line, from_stderr) for line in text.splitlines()]
