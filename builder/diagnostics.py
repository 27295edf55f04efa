"""diagnostics.py — Structured failure reports for pipeline and setup failures."""

import json
from datetime import datetime, timezone
from pathlib import Path

from rich.markup import escape

from builder.config import BuildContext, _err_console
from builder.errors import BuildError, ExecutionError, ProvisionError

FAILURE_REPORT_NAME = "failure_report.json"


def save_failure_report(error: BuildError, ctx: BuildContext) -> Path | None:
    """Save a JSON report for a failed action and return its path.

    Only action failures (``ExecutionError``, ``ProvisionError``) are
    reported; validation errors must leave the filesystem untouched, so they
    return None without writing.

    The report is saved at ``<build_dir>/logs/failure_report.json``.
    """
    if not isinstance(error, (ExecutionError, ProvisionError)):
        return None

    report = {
        "target": getattr(error, "target", "setup"),
        "error": str(error),
        "kind": type(error).__name__,
        "command": getattr(error, "command", "") or None,
        "returncode": getattr(error, "returncode", None),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "context": ctx.describe(),
    }

    report_dir = ctx.build_dir / "logs"
    report_dir.mkdir(parents=True, exist_ok=True)
    report_path = report_dir / FAILURE_REPORT_NAME
    report_path.write_text(json.dumps(report, indent=2), encoding="utf-8")

    _err_console.print("\n[red bold]── Failure Report ──[/]")
    _err_console.print(f"  [bold]Target:[/]       {report['target']}", highlight=False)
    _err_console.print(f"  [bold]Command:[/]      {escape(report['command'] or 'n/a')}", highlight=False)
    _err_console.print(
        f"  [bold]Exit code:[/]    {report['returncode'] if report['returncode'] is not None else 'n/a'}"
    )
    _err_console.print(f"  [bold]Report saved:[/] {report_path}", highlight=False)

    return report_path
