"""config.py — Global constants, Rich consoles, and BuildContext resolution."""

import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from rich import (
    box as rbox,  # noqa: F401  re-exported; imported via `from builder.config import rbox`
)
from rich.console import Console

# ── Windows UTF-8 console ──────────────────────────────────────────────────────
# Banners use emoji; reconfigure Python's own streams so they survive cp1252.
if sys.platform == "win32":
    if not os.environ.get("PYTHONIOENCODING"):
        os.environ["PYTHONIOENCODING"] = "utf-8"
    if hasattr(sys.stdout, "reconfigure"):
        try:
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")  # type: ignore[union-attr]
        except (OSError, ValueError):
            pass

# soft_wrap keeps long artifact paths on one line.
_console = Console(legacy_windows=False, soft_wrap=True)
_err_console = Console(stderr=True, legacy_windows=False, soft_wrap=True)

# ── Pipeline constants ─────────────────────────────────────────────────────────

TEMPLATE_GLOB = "*.smd"
DEFAULT_DATA = "data.json"
DEFAULT_BUILD_DIR = "build"

# Artifact file names, relative to the build directory.
DNF_JSON_NAME = "DNF.json"
DNF_EVAL_NAME = "DNF_eval.json"
MICROPUB_NAME = "micropublication.html"

# Environment directory (relative to the build directory) and its marker.
VENV_NAME = ".venv"
MARKER_NAME = ".ready"

# Packages the template's code cells import during evaluation.
REQUIRED_PACKAGES: tuple[str, ...] = ("pandas", "rocrate")
BOOTSTRAP_PACKAGES: tuple[str, ...] = ("pip", "wheel")

# ── stencila binary ────────────────────────────────────────────────────────────

TOOL_NAME = "stencila"

# Probed in order when the tool is not on PATH.
TOOL_SEARCH_DIRS: tuple[Path, ...] = (
    Path("/usr/local/bin"),
    Path.home() / ".local" / "bin",
    Path("/opt/homebrew/bin"),
)

STENCILA_INSTALL_URL = "https://stencila.io/install.sh"
STENCILA_DOCS_URL = "https://github.com/stencila/stencila#install"

# Keys accepted as NAME=value on the command line and as environment variables.
OVERRIDE_KEYS: tuple[str, ...] = ("SMD", "DATA", "BUILD_DIR", "PY", "VENV", "STENCILA")


def find_tool(
    name: str = TOOL_NAME, search_dirs: tuple[Path, ...] = TOOL_SEARCH_DIRS
) -> str | None:
    """Return the absolute path of *name*: PATH lookup first, then *search_dirs*."""
    found = shutil.which(name)
    if found:
        return found
    for directory in search_dirs:
        candidate = directory / name
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate)
    return None


def find_template(cwd: Path) -> Path | None:
    """Return the first template file in *cwd*, or None."""
    return next((p for p in sorted(cwd.glob(TEMPLATE_GLOB)) if p.is_file()), None)


def env_bin_dir(env_dir: Path) -> Path:
    """Return the executables directory of the virtual environment at *env_dir*."""
    return env_dir / ("Scripts" if sys.platform == "win32" else "bin")


# ── Build context ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BuildContext:
    """Configuration resolved once per invocation; read-only afterwards."""

    template: Path | None
    data: Path
    build_dir: Path
    python: str
    env_dir: Path
    tool: str | None
    timeout: float | None = None
    assume_yes: bool = False

    @property
    def dnf_json(self) -> Path:
        return self.build_dir / DNF_JSON_NAME

    @property
    def dnf_eval(self) -> Path:
        return self.build_dir / DNF_EVAL_NAME

    @property
    def micropub(self) -> Path:
        return self.build_dir / MICROPUB_NAME

    @property
    def marker(self) -> Path:
        return self.env_dir / MARKER_NAME

    @property
    def env_bin(self) -> Path:
        return env_bin_dir(self.env_dir)

    def describe(self) -> dict[str, str]:
        """Return a printable snapshot for failure reports."""
        return {
            "template": str(self.template) if self.template else "",
            "data": str(self.data),
            "build_dir": str(self.build_dir),
            "python": self.python,
            "env_dir": str(self.env_dir),
            "tool": self.tool or "",
        }


def resolve_context(
    overrides: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    *,
    timeout: float | None = None,
    assume_yes: bool = False,
) -> BuildContext:
    """Build a BuildContext with precedence: explicit override > environment > default.

    Args:
        overrides: ``NAME=value`` assignments from the command line.
        environ:   Environment mapping (defaults to ``os.environ``).
        cwd:       Directory searched for the default template.
    """
    overrides = dict(overrides or {})
    environ = os.environ if environ is None else environ
    cwd = Path(".") if cwd is None else cwd

    def _pick(key: str) -> str | None:
        value = overrides.get(key)
        if value is None:
            value = environ.get(key)
        return value if value else None

    smd = _pick("SMD")
    template = Path(smd) if smd else find_template(cwd)

    build_dir = Path(_pick("BUILD_DIR") or DEFAULT_BUILD_DIR)
    venv = _pick("VENV")
    tool = _pick("STENCILA") or environ.get("STENCILA_CMD") or find_tool()

    return BuildContext(
        template=template,
        data=Path(_pick("DATA") or DEFAULT_DATA),
        build_dir=build_dir,
        python=_pick("PY") or sys.executable,
        env_dir=Path(venv) if venv else build_dir / VENV_NAME,
        tool=tool,
        timeout=timeout,
        assume_yes=assume_yes,
    )


# ── Verbosity mode ─────────────────────────────────────────────────────────────

# Compact by default: up-to-date targets are skipped silently.
_verbose: bool = False


def set_verbose(v: bool) -> None:
    """Switch the global verbosity mode.  True = report every target decision."""
    global _verbose
    _verbose = v


def is_verbose() -> bool:
    """Return True when verbose mode is active."""
    return _verbose
