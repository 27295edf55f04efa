"""Shared fixtures for builder unit tests."""

import os
import sys
import textwrap
from pathlib import Path

import pytest

_FAKE_STENCILA = textwrap.dedent(
    """\
    #!{python}
    import os, shutil, sys

    cmd, src, dst = sys.argv[1:4]
    log = os.environ.get("FAKE_STENCILA_LOG")
    if log:
        first_path = os.environ.get("PATH", "").split(os.pathsep)[0]
        with open(log, "a", encoding="utf-8") as fh:
            fh.write(f"{{cmd}} {{dst}} {{first_path}}\\n")
    if os.environ.get("FAKE_STENCILA_FAIL") == cmd:
        print("fake stencila: simulated failure", file=sys.stderr)
        sys.exit(1)
    shutil.copyfile(src, dst)
    """
)


@pytest.fixture()
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A working directory holding a template ``t.smd`` and a ``data.json`` stub."""
    work = tmp_path / "work"
    work.mkdir()
    (work / "t.smd").write_text("# Title\n\nSome text.\n", encoding="utf-8")
    (work / "data.json").write_text("{}\n", encoding="utf-8")
    monkeypatch.chdir(work)
    for key in ("SMD", "DATA", "BUILD_DIR", "PY", "VENV", "STENCILA", "STENCILA_CMD"):
        monkeypatch.delenv(key, raising=False)
    return work


@pytest.fixture()
def fake_tool(workdir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Install a fake ``stencila`` that copies input to output and logs each call.

    Each log line is ``<command> <output> <first PATH entry>``.
    """
    if sys.platform == "win32":
        pytest.skip("fake stencila relies on a shebang")
    bin_dir = tmp_path / "tools"
    bin_dir.mkdir()
    tool = bin_dir / "stencila"
    tool.write_text(_FAKE_STENCILA.format(python=sys.executable), encoding="utf-8")
    tool.chmod(0o755)
    log = tmp_path / "stencila-calls.log"
    monkeypatch.setenv("STENCILA", str(tool))
    monkeypatch.setenv("FAKE_STENCILA_LOG", str(log))
    return tool


@pytest.fixture()
def tool_calls(tmp_path: Path):
    """Return a callable that reads the fake tool's call log as a list of lines."""
    log = tmp_path / "stencila-calls.log"

    def _read() -> list[str]:
        if not log.exists():
            return []
        return log.read_text(encoding="utf-8").splitlines()

    return _read


def make_ready_env(env_dir: Path) -> None:
    """Lay out a fake provisioned environment: interpreter stub plus marker."""
    from builder.config import env_bin_dir

    bin_dir = env_bin_dir(env_dir)
    bin_dir.mkdir(parents=True, exist_ok=True)
    (bin_dir / ("python.exe" if bin_dir.name == "Scripts" else "python")).touch()
    (env_dir / ".ready").touch()


@pytest.fixture()
def ready_env(workdir: Path) -> Path:
    """A provisioned environment under ``build/.venv``."""
    env_dir = workdir / "build" / ".venv"
    make_ready_env(env_dir)
    return env_dir


@pytest.fixture()
def fake_provision(monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
    """Replace provisioning subprocesses with a recorder; ``-m venv`` creates the stub."""
    from builder.process import ProcessResult

    calls: list[list[str]] = []

    def _invoke(command, ctx, **kwargs):
        calls.append([str(c) for c in command])
        if "venv" in command:
            env_dir = Path(command[-1])
            from builder.config import env_bin_dir

            bin_dir = env_bin_dir(env_dir)
            bin_dir.mkdir(parents=True, exist_ok=True)
            (bin_dir / ("python.exe" if bin_dir.name == "Scripts" else "python")).touch()
        return ProcessResult(0)

    monkeypatch.setattr("builder.provision.invoke", _invoke)
    return calls


def set_mtime(path: Path, offset: float) -> None:
    """Set *path*'s atime/mtime to now + *offset* seconds."""
    import time

    t = time.time() + offset
    os.utime(path, (t, t))
