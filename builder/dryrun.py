"""dryrun.py — Dry-run mode: show what a target would run without running it."""

from builder.config import BuildContext, _console
from builder.graph import TargetGraph
from builder.staleness import is_stale


def predict(name: str, graph: TargetGraph) -> list[tuple[str, bool]]:
    """Return ``(target, would_run)`` pairs for *name* in execution order.

    A target would run when it is stale now or when any of its prerequisite
    targets would run (its inputs are about to change).
    """
    plan = graph.resolve(name)
    will_run: dict[str, bool] = {}
    for target in plan:
        upstream = any(will_run[dep.name] for dep in graph.target_prerequisites(target))
        will_run[target.name] = upstream or is_stale(target, graph)
    return [(t.name, will_run[t.name]) for t in plan]


def dry_run(name: str, graph: TargetGraph, ctx: BuildContext) -> dict:
    """Print the predicted plan for *name* as a table.

    Returns:
        Summary dict with the plan and counts.
    """
    from rich.table import Table  # noqa: PLC0415

    from builder.config import rbox  # noqa: PLC0415

    rows = predict(name, graph)

    t = Table(
        box=rbox.ROUNDED,
        border_style="bright_black",
        title=f"[bold]Dry Run — {name}[/]",
        title_style="",
    )
    t.add_column("#", justify="right", style="dim")
    t.add_column("Target", no_wrap=True)
    t.add_column("Kind", style="cyan", no_wrap=True)
    t.add_column("Status", no_wrap=True)

    for i, (target_name, would_run) in enumerate(rows, start=1):
        target = graph.get(target_name)
        status = "[yellow]run[/]" if would_run else "[green]up to date[/]"
        t.add_row(str(i), target_name, target.kind.value, status)

    _console.print()
    _console.print(t)
    _console.print(f"  Build directory: {ctx.build_dir}", highlight=False)
    _console.print()

    to_run = [n for n, r in rows if r]
    return {
        "target": name,
        "plan": [n for n, _ in rows],
        "to_run": to_run,
        "up_to_date": len(rows) - len(to_run),
    }
