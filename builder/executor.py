"""executor.py — Run a target and its stale prerequisites in dependency order."""

from pathlib import Path

from builder.config import BuildContext, _console, is_verbose
from builder.errors import BuildError, ExecutionError
from builder.graph import Target, TargetGraph
from builder.staleness import is_stale
from builder.targets import validate_inputs


def _under(path: Path, directory: Path) -> bool:
    try:
        path.resolve().relative_to(directory.resolve())
    except ValueError:
        return False
    return True


def preflight(plan: list[Target], ctx: BuildContext) -> None:
    """Validate inputs once, before any action, when the plan reaches the tool."""
    if any(t.needs_tool for t in plan):
        validate_inputs(ctx)


def run(name: str, graph: TargetGraph, ctx: BuildContext) -> list[str]:
    """Bring target *name* up to date.

    Staleness is decided right before each target runs, so a rebuilt
    prerequisite makes its dependents stale.  The first failure aborts the
    run; later targets are not attempted.

    Returns:
        Names of the targets whose actions ran, in order.

    Raises:
        UnknownTargetError, CycleError: from graph resolution.
        MissingInputError, ToolNotFoundError: from the pre-flight check.
        ProvisionError: environment setup failed.
        ExecutionError: any other action failure.
    """
    plan = graph.resolve(name)
    if is_verbose():
        _console.print(f"[dim]Plan for {name}: {' → '.join(t.name for t in plan)}[/]")

    preflight(plan, ctx)

    ran: list[str] = []
    for target in plan:
        if not is_stale(target, graph):
            if is_verbose() or target.name == name:
                _console.print(f"[dim]'{target.name}' is up to date.[/]")
            continue

        try:
            if target.output is not None and _under(target.output, ctx.build_dir):
                ctx.build_dir.mkdir(parents=True, exist_ok=True)
            if target.action is not None:
                target.action(ctx)
        except BuildError:
            raise
        except OSError as exc:
            raise ExecutionError(target.name, exc) from exc
        if target.action is not None:
            ran.append(target.name)

    return ran
