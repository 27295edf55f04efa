"""process.py — External command invocation with an isolated PATH."""

import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from builder.config import TOOL_NAME, BuildContext, _console
from builder.errors import ToolNotFoundError

# Exit code reported for a step killed by --timeout (matches coreutils `timeout`).
TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def format_command(command: str | Sequence[str]) -> str:
    """Render *command* the way a shell user would type it."""
    if isinstance(command, str):
        return command
    return shlex.join(str(part) for part in command)


def env_overrides(ctx: BuildContext) -> dict[str, str]:
    """Return the environment additions for steps that must see the venv first.

    Nested interpreter lookups made by the tool (e.g. ``python`` for code
    cells) then resolve to the provisioned environment.
    """
    inherited = os.environ.get("PATH", "")
    bin_dir = str(ctx.env_bin.resolve())
    path = bin_dir + (os.pathsep + inherited if inherited else "")
    return {"PATH": path}


def invoke(
    command: str | Sequence[str],
    ctx: BuildContext,
    *,
    env: Mapping[str, str] | None = None,
    quiet: bool = False,
    echo: bool = True,
) -> ProcessResult:
    """Run *command* and block until it exits.

    Output streams straight through to the terminal; nothing is captured.

    Args:
        command: Argument list, or a string run through the shell.
        ctx:     Build context (supplies the optional timeout).
        env:     Variables layered over the inherited environment.
        quiet:   Discard the child's stdout (stderr still shows).
        echo:    Print the command line before running it.

    Returns:
        ProcessResult with the child's exit code.
    """
    if echo:
        _console.print(f"[dim]{format_command(command)}[/]", highlight=False)

    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)

    try:
        result = subprocess.run(
            command if isinstance(command, str) else [str(c) for c in command],
            shell=isinstance(command, str),
            env=full_env,
            stdout=subprocess.DEVNULL if quiet else None,
            timeout=ctx.timeout,
        )
    except subprocess.TimeoutExpired:
        _console.print(f"[red]Timed out after {ctx.timeout:g}s:[/] {format_command(command)}")
        return ProcessResult(TIMEOUT_EXIT_CODE, timed_out=True)
    except FileNotFoundError:
        # Executable missing; mirror the shell's "command not found".
        return ProcessResult(127)
    return ProcessResult(result.returncode)


def tool_command(ctx: BuildContext, *args: str | Path) -> list[str]:
    """Build a stencila argument list using the resolved tool path."""
    if ctx.tool is None:
        raise ToolNotFoundError(f"'{TOOL_NAME}' CLI not found on PATH.")
    return [ctx.tool, *(str(a) for a in args)]
