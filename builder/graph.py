"""graph.py — Target definitions and dependency-order resolution."""

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable

from builder.errors import CycleError, UnknownTargetError

if TYPE_CHECKING:
    from builder.provision import EnvironmentMarker


class TargetKind(enum.Enum):
    PHONY = "phony"
    FILE = "file"


@dataclass(frozen=True)
class Target:
    """A named unit of work.

    ``prerequisites`` holds target names or plain file paths; a name that is
    not registered in the graph is treated as a source file.
    """

    name: str
    kind: TargetKind
    action: Callable | None = None
    prerequisites: tuple[str, ...] = ()
    output: Path | None = None
    description: str = ""
    # Steps that shell out to the document tool; checked before the run starts.
    needs_tool: bool = False
    # Readiness marker for environment targets (see provision.EnvironmentMarker).
    marker: "EnvironmentMarker | None" = field(default=None, compare=False)

    @property
    def is_phony(self) -> bool:
        return self.kind is TargetKind.PHONY


class TargetGraph:
    """Immutable DAG of targets, keyed by name, kept in declaration order."""

    def __init__(self, targets: Iterable[Target]) -> None:
        self._targets: dict[str, Target] = {}
        for target in targets:
            if target.kind is TargetKind.FILE and target.output is None:
                raise ValueError(f"File target '{target.name}' has no output path")
            if target.name in self._targets:
                raise ValueError(f"Duplicate target '{target.name}'")
            self._targets[target.name] = target

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    def __iter__(self):
        return iter(self._targets.values())

    def __len__(self) -> int:
        return len(self._targets)

    def get(self, name: str) -> Target:
        """Return the target called *name* or raise UnknownTargetError."""
        try:
            return self._targets[name]
        except KeyError:
            raise UnknownTargetError(name) from None

    def names(self) -> list[str]:
        return list(self._targets)

    def target_prerequisites(self, target: Target) -> list[Target]:
        """Return the prerequisites of *target* that are registered targets."""
        return [self._targets[p] for p in target.prerequisites if p in self._targets]

    def source_prerequisites(self, target: Target) -> list[Path]:
        """Return the prerequisites of *target* that are plain files."""
        return [Path(p) for p in target.prerequisites if p not in self._targets]

    def resolve(self, name: str) -> list[Target]:
        """Return *name* and its transitive prerequisites, dependencies first.

        Depth-first post-order; siblings keep declaration order.

        Raises:
            UnknownTargetError: *name* is not a registered target.
            CycleError:         a prerequisite chain loops back on itself.
        """
        root = self.get(name)
        order: list[Target] = []
        visited: set[str] = set()
        # Current DFS path; doubles as the "visiting" set.
        stack: list[str] = []

        def _visit(target: Target) -> None:
            if target.name in visited:
                return
            if target.name in stack:
                start = stack.index(target.name)
                raise CycleError(stack[start:] + [target.name])
            stack.append(target.name)
            for dep in self.target_prerequisites(target):
                _visit(dep)
            stack.pop()
            visited.add(target.name)
            order.append(target)

        _visit(root)
        return order

    def validate(self) -> None:
        """Resolve every target once so a cycle anywhere fails at startup."""
        for name in self._targets:
            self.resolve(name)
