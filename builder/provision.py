"""provision.py — Idempotent virtual-environment setup gated by a marker file."""

from dataclasses import dataclass
from pathlib import Path

from builder.config import (
    BOOTSTRAP_PACKAGES,
    MARKER_NAME,
    REQUIRED_PACKAGES,
    BuildContext,
    _console,
    env_bin_dir,
)
from builder.errors import ProvisionError
from builder.process import format_command, invoke


@dataclass(frozen=True)
class EnvironmentMarker:
    """Readiness sentinel for one virtual environment.

    Only existence matters: the marker's content and timestamp are never
    read.  A marker whose environment has vanished does not count.
    """

    env_dir: Path

    @property
    def path(self) -> Path:
        return self.env_dir / MARKER_NAME

    @property
    def python(self) -> Path:
        name = "python.exe" if env_bin_dir(self.env_dir).name == "Scripts" else "python"
        return env_bin_dir(self.env_dir) / name

    def env_exists(self) -> bool:
        return self.python.exists()

    def is_ready(self) -> bool:
        return self.path.is_file() and self.env_exists()

    def mark_ready(self) -> None:
        self.path.touch()

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def _step(command: list, ctx: BuildContext, what: str, *, quiet: bool) -> None:
    """Run one provisioning command; raise ProvisionError on failure."""
    result = invoke(command, ctx, quiet=quiet, echo=False)
    if not result.ok:
        raise ProvisionError(
            f"{what} failed (exit code {result.returncode})",
            command=format_command(command),
            returncode=result.returncode,
        )


def ensure_ready(ctx: BuildContext, marker: EnvironmentMarker | None = None) -> bool:
    """Make sure the build environment exists and has the required packages.

    Returns:
        True when provisioning ran, False when the marker already signalled
        readiness (nothing is touched in that case).

    Raises:
        ProvisionError: a step failed; no marker is written.
    """
    marker = marker or EnvironmentMarker(ctx.env_dir)
    if marker.is_ready():
        return False

    # Stale marker from a half-deleted environment.
    marker.clear()

    _console.print(f"🔧 Setting up Python virtual environment at {ctx.env_dir}")
    ctx.build_dir.mkdir(parents=True, exist_ok=True)

    if not marker.env_exists():
        _step([ctx.python, "-m", "venv", str(ctx.env_dir)], ctx, "Creating the virtual environment", quiet=False)

    _step(
        [str(marker.python), "-m", "pip", "install", "--upgrade", *BOOTSTRAP_PACKAGES],
        ctx,
        f"Upgrading {', '.join(BOOTSTRAP_PACKAGES)}",
        quiet=True,
    )

    _console.print(f"📦 Installing Python packages: {' '.join(REQUIRED_PACKAGES)}")
    _step(
        [str(marker.python), "-m", "pip", "install", "--quiet", *REQUIRED_PACKAGES],
        ctx,
        f"Installing {', '.join(REQUIRED_PACKAGES)}",
        quiet=True,
    )

    marker.mark_ready()
    return True
