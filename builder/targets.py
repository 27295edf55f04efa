"""targets.py — The fixed target set: validation, setup, the three-step pipeline, housekeeping.

Pipeline:
    1) stencila convert <template.smd>      -> build/DNF.json
    2) stencila render  build/DNF.json      -> build/DNF_eval.json  (--force-all --pretty)
    3) stencila convert build/DNF_eval.json -> build/micropublication.html (--pretty)
"""

import shutil
import sys
from pathlib import Path
from typing import Callable

import questionary

from builder.config import (
    REQUIRED_PACKAGES,
    STENCILA_DOCS_URL,
    STENCILA_INSTALL_URL,
    TOOL_NAME,
    BuildContext,
    _console,
)
from builder.errors import ExecutionError, MissingInputError, ToolNotFoundError
from builder.graph import Target, TargetGraph, TargetKind
from builder.process import env_overrides, format_command, invoke, tool_command
from builder.provision import EnvironmentMarker, ensure_ready

# Shown by `help`, in this order.
PUBLIC_TARGETS: tuple[tuple[str, str], ...] = (
    ("compile", "Run the full pipeline to produce {micropub}"),
    ("setup", "Create venv and install Python deps ({packages})"),
    ("check", "Validate the template, data file, and stencila CLI"),
    ("init-data", "Create a stub {data} if it does not exist"),
    ("clean", "Remove build artifacts"),
    ("stencila-install", "Install the Stencila CLI (macOS/Linux) via official script"),
)

_TOOL_HINT = "\n".join(
    [
        "Install it (macOS/Linux):",
        f"  curl -LsSf {STENCILA_INSTALL_URL} | bash",
        "or run: micropub stencila-install",
        "If already installed, ensure its directory is on PATH "
        "(e.g. /usr/local/bin or /opt/homebrew/bin), or set STENCILA=<path>.",
        f"Docs: {STENCILA_DOCS_URL}",
    ]
)


# ── Validation ─────────────────────────────────────────────────────────────────


def _tool_available(tool: str | None) -> bool:
    if not tool:
        return False
    return shutil.which(tool) is not None or Path(tool).is_file()


def validate_inputs(ctx: BuildContext) -> None:
    """Check every precondition of the pipeline; touch nothing.

    Raises:
        MissingInputError: no template named/found, or template/data file absent.
        ToolNotFoundError: the stencila CLI is not discoverable.
    """
    if ctx.template is None:
        raise MissingInputError("No .smd file found. Specify with SMD=<file.smd>")
    if not ctx.template.is_file():
        raise MissingInputError(f"SMD file '{ctx.template}' not found")
    if not ctx.data.is_file():
        raise MissingInputError(
            f"Required data file '{ctx.data}' not found",
            hint="Create a stub with: micropub init-data",
        )
    if not _tool_available(ctx.tool):
        raise ToolNotFoundError(f"'{TOOL_NAME}' CLI not found on PATH.", hint=_TOOL_HINT)


# ── Actions ────────────────────────────────────────────────────────────────────


def print_help(ctx: BuildContext) -> None:
    """Print usage and the detected configuration."""
    fmt = {
        "micropub": ctx.micropub.as_posix(),
        "packages": ", ".join(REQUIRED_PACKAGES),
        "data": ctx.data.as_posix(),
    }
    _console.print("[bold]Usage:[/]")
    _console.print("  micropub compile [SMD=<file.smd>] [DATA=data.json] [BUILD_DIR=build]")
    _console.print()
    _console.print("[bold]Targets:[/]")
    width = max(len(name) for name, _ in PUBLIC_TARGETS)
    for name, text in PUBLIC_TARGETS:
        _console.print(f"  [cyan]{name:<{width}}[/]  {text.format(**fmt)}", highlight=False)
    _console.print()
    _console.print(f"Detected Stencila command: {ctx.tool or '(none found)'}", highlight=False)
    _console.print(
        f"Detected SMD: {ctx.template.as_posix() if ctx.template else '(none found)'}",
        highlight=False,
    )
    _console.print()
    _console.print("If 'stencila' is installed but not detected, add its dir to PATH, e.g.:")
    _console.print(
        '  export PATH="/usr/local/bin:$PATH"   # or /opt/homebrew/bin on macOS ARM',
        highlight=False,
        markup=False,
    )


def init_data(ctx: BuildContext) -> None:
    """Write an empty JSON object to the data file unless it already exists."""
    if ctx.data.exists():
        _console.print(f"{ctx.data} already exists", highlight=False)
        return
    ctx.data.write_text("{}\n", encoding="utf-8")
    _console.print(f"Created stub {ctx.data}", highlight=False)


def clean(ctx: BuildContext) -> None:
    """Remove the whole build directory, environment included."""
    _console.print("🧹 Cleaning build artifacts")
    if ctx.build_dir.exists():
        shutil.rmtree(ctx.build_dir)


def install_stencila(ctx: BuildContext) -> None:
    """Run the official Stencila install script after confirmation."""
    if not ctx.assume_yes and sys.stdin.isatty():
        confirmed = questionary.confirm(
            f"Download and run {STENCILA_INSTALL_URL}?", default=True
        ).ask()
        if not confirmed:
            _console.print("[yellow]Skipped Stencila install.[/]")
            return

    _console.print("📥 Installing Stencila CLI (may prompt for sudo if installing to /usr/local/bin)")
    command = f"curl -LsSf {STENCILA_INSTALL_URL} | bash"
    result = invoke(command, ctx)
    if not result.ok:
        raise ExecutionError(
            "stencila-install",
            f"install script exited with code {result.returncode}",
            command=command,
            returncode=result.returncode,
        )


def _pipeline_step(
    name: str, banner: str, args: Callable[[BuildContext], list]
) -> Callable[[BuildContext], None]:
    """Return an action that runs one stencila step with the venv first on PATH.

    A failed or interrupted step removes its (possibly partial) output so
    the next run rebuilds it.
    """

    def _action(ctx: BuildContext) -> None:
        _console.print(banner)
        command = tool_command(ctx, *args(ctx))
        try:
            result = invoke(command, ctx, env=env_overrides(ctx))
        except BaseException:
            Path(name).unlink(missing_ok=True)
            raise
        if not result.ok:
            Path(name).unlink(missing_ok=True)
            raise ExecutionError(
                name,
                f"{TOOL_NAME} exited with code {result.returncode}",
                command=format_command(command),
                returncode=result.returncode,
            )

    return _action


def _done(ctx: BuildContext) -> None:
    _console.print(f"[green]✅ Done:[/] {ctx.micropub.as_posix()}", highlight=False)


# ── Graph ──────────────────────────────────────────────────────────────────────


def build_graph(ctx: BuildContext) -> TargetGraph:
    """Return the target graph for *ctx*; paths are baked in at construction."""
    marker = EnvironmentMarker(ctx.env_dir)
    ready = marker.path.as_posix()
    dnf_json = ctx.dnf_json.as_posix()
    dnf_eval = ctx.dnf_eval.as_posix()
    micropub = ctx.micropub.as_posix()

    targets = [
        Target("help", TargetKind.PHONY, print_help, description="Show usage"),
        Target("check", TargetKind.PHONY, validate_inputs, description="Validate inputs"),
        Target("init-data", TargetKind.PHONY, init_data, description="Create a stub data file"),
        Target(
            ready,
            TargetKind.FILE,
            lambda c: ensure_ready(c, marker),
            output=marker.path,
            marker=marker,
            description="Provision the virtual environment",
        ),
        Target("setup", TargetKind.PHONY, prerequisites=(ready,), description="Provision only"),
        Target(
            dnf_json,
            TargetKind.FILE,
            _pipeline_step(
                dnf_json,
                "🧪 Running Stencila pipeline: convert -> DNF.json",
                lambda c: ["convert", c.template, c.dnf_json],
            ),
            prerequisites=(ctx.template.as_posix(),) if ctx.template else (),
            output=ctx.dnf_json,
            needs_tool=True,
        ),
        Target(
            dnf_eval,
            TargetKind.FILE,
            _pipeline_step(
                dnf_eval,
                "🔬 Evaluating DNF: render -> DNF_eval.json",
                lambda c: ["render", c.dnf_json, c.dnf_eval, "--force-all", "--pretty"],
            ),
            prerequisites=(dnf_json,),
            output=ctx.dnf_eval,
            needs_tool=True,
        ),
        Target(
            micropub,
            TargetKind.FILE,
            _pipeline_step(
                micropub,
                "🖨️  Producing final HTML: convert -> micropublication.html",
                lambda c: ["convert", c.dnf_eval, c.micropub, "--pretty"],
            ),
            prerequisites=(dnf_eval,),
            output=ctx.micropub,
            needs_tool=True,
        ),
        Target(
            "compile",
            TargetKind.PHONY,
            _done,
            prerequisites=("check", "setup", micropub),
            description="Run the full pipeline",
        ),
        Target("clean", TargetKind.PHONY, clean, description="Remove build artifacts"),
        Target("stencila-install", TargetKind.PHONY, install_stencila, description="Install Stencila"),
    ]
    return TargetGraph(targets)
