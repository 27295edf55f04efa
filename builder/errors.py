"""errors.py — Exception hierarchy shared by the graph, executor, and CLI.

Every error is terminal for the current invocation.  The CLI prints
``str(exc)`` followed by any ``hint`` lines and exits with code 1.
"""


class BuildError(Exception):
    """Base class for all build failures surfaced to the user."""

    hint: str = ""

    def __init__(self, message: str, *, hint: str = "") -> None:
        super().__init__(message)
        if hint:
            self.hint = hint


class UnknownTargetError(BuildError):
    """Raised when a requested target is not part of the graph."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"No rule to make target '{name}'",
            hint="Run with no arguments to list the available targets.",
        )
        self.name = name


class CycleError(BuildError):
    """Raised when the prerequisite graph contains a cycle.

    ``path`` lists the targets on the cycle, starting and ending with the
    same target.
    """

    def __init__(self, path: list[str]) -> None:
        super().__init__(f"Dependency cycle: {' -> '.join(path)}")
        self.path = path


class MissingInputError(BuildError):
    """Raised when the template or data file is absent."""


class ToolNotFoundError(BuildError):
    """Raised when the stencila CLI cannot be located."""


class ProvisionError(BuildError):
    """Raised when a virtual-environment setup step fails.

    No readiness marker is written, so the next invocation retries from
    scratch.
    """

    def __init__(self, message: str, *, command: str = "", returncode: int | None = None) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class ExecutionError(BuildError):
    """Raised when a target's action fails; wraps the underlying cause."""

    def __init__(
        self,
        target: str,
        cause: BaseException | str,
        *,
        command: str = "",
        returncode: int | None = None,
    ) -> None:
        super().__init__(f"Target '{target}' failed: {cause}")
        self.target = target
        self.cause = cause
        self.command = command
        self.returncode = returncode
        self.hint = getattr(cause, "hint", "") or ""
