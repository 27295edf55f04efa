"""staleness.py — Decide whether a target's action must (re)run.

Errs toward re-running: any timestamp that cannot be read counts as stale.
Equal timestamps count as up to date.
"""

from pathlib import Path

from builder.graph import Target, TargetGraph


def _mtime(path: Path) -> float | None:
    """Return the modification time of *path*, or None when it cannot be read."""
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def is_stale(target: Target, graph: TargetGraph) -> bool:
    """Return True when *target* must run.

    - phony targets always run;
    - an environment target runs while its marker does not signal readiness;
    - a file target runs when its output is missing or older than any
      prerequisite output or source file.
    """
    if target.is_phony:
        return True

    if target.marker is not None and not target.marker.is_ready():
        return True

    if target.output is None:
        raise ValueError(f"File target '{target.name}' has no output path")
    own = _mtime(target.output)
    if own is None:
        return True

    for dep in graph.target_prerequisites(target):
        if dep.output is None:
            # A phony prerequisite always runs, so everything after it must too.
            return True
        dep_time = _mtime(dep.output)
        if dep_time is None or dep_time > own:
            return True

    for source in graph.source_prerequisites(target):
        src_time = _mtime(source)
        if src_time is None or src_time > own:
            return True

    return False
