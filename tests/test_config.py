"""Tests for builder.config — context resolution, tool discovery, verbosity."""

import os
import sys
from pathlib import Path

import pytest

# -- find_tool -------------------------------------------------------------------


class TestFindTool:
    def test_path_lookup_wins(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        import builder.config as cfg

        monkeypatch.setattr(cfg.shutil, "which", lambda name: "/on/path/stencila")
        assert cfg.find_tool("stencila", (tmp_path,)) == "/on/path/stencila"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX executable bit")
    def test_falls_back_to_search_dirs_in_order(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        import builder.config as cfg

        monkeypatch.setattr(cfg.shutil, "which", lambda name: None)
        first, second = tmp_path / "one", tmp_path / "two"
        for d in (first, second):
            d.mkdir()
            tool = d / "stencila"
            tool.write_text("#!/bin/sh\n", encoding="utf-8")
            tool.chmod(0o755)
        assert cfg.find_tool("stencila", (first, second)) == str(first / "stencila")

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX executable bit")
    def test_skips_non_executable(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        import builder.config as cfg

        monkeypatch.setattr(cfg.shutil, "which", lambda name: None)
        (tmp_path / "stencila").write_text("not executable", encoding="utf-8")
        os.chmod(tmp_path / "stencila", 0o644)
        assert cfg.find_tool("stencila", (tmp_path,)) is None

    def test_none_when_nowhere(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        import builder.config as cfg

        monkeypatch.setattr(cfg.shutil, "which", lambda name: None)
        assert cfg.find_tool("stencila", (tmp_path / "missing",)) is None


# -- find_template ---------------------------------------------------------------


class TestFindTemplate:
    def test_first_in_sorted_order(self, tmp_path: Path) -> None:
        from builder.config import find_template

        for name in ("zeta.smd", "alpha.smd", "notes.md"):
            (tmp_path / name).write_text("", encoding="utf-8")
        assert find_template(tmp_path) == tmp_path / "alpha.smd"

    def test_none_without_templates(self, tmp_path: Path) -> None:
        from builder.config import find_template

        (tmp_path / "readme.md").write_text("", encoding="utf-8")
        assert find_template(tmp_path) is None

    def test_skips_directories(self, tmp_path: Path) -> None:
        from builder.config import find_template

        (tmp_path / "a.smd").mkdir()
        (tmp_path / "b.smd").write_text("", encoding="utf-8")
        assert find_template(tmp_path) == tmp_path / "b.smd"


# -- resolve_context -------------------------------------------------------------


class TestResolveContext:
    @pytest.fixture(autouse=True)
    def _no_tool_probe(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import builder.config as cfg

        monkeypatch.setattr(cfg, "find_tool", lambda: "/detected/stencila")

    def test_defaults(self, tmp_path: Path) -> None:
        from builder.config import resolve_context

        (tmp_path / "paper.smd").write_text("", encoding="utf-8")
        ctx = resolve_context({}, environ={}, cwd=tmp_path)
        assert ctx.template == tmp_path / "paper.smd"
        assert ctx.data == Path("data.json")
        assert ctx.build_dir == Path("build")
        assert ctx.env_dir == Path("build") / ".venv"
        assert ctx.python == sys.executable
        assert ctx.tool == "/detected/stencila"

    def test_default_template_is_relative_to_working_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from builder.config import resolve_context

        (tmp_path / "t.smd").write_text("", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        ctx = resolve_context({}, environ={})
        assert ctx.template == Path("t.smd")

    def test_environment_beats_default(self, tmp_path: Path) -> None:
        from builder.config import resolve_context

        env = {"DATA": "inputs.json", "BUILD_DIR": "out", "PY": "python3.12"}
        ctx = resolve_context({}, environ=env, cwd=tmp_path)
        assert ctx.data == Path("inputs.json")
        assert ctx.build_dir == Path("out")
        assert ctx.env_dir == Path("out") / ".venv"
        assert ctx.python == "python3.12"

    def test_override_beats_environment(self, tmp_path: Path) -> None:
        from builder.config import resolve_context

        ctx = resolve_context(
            {"SMD": "chosen.smd", "BUILD_DIR": "cli"},
            environ={"SMD": "env.smd", "BUILD_DIR": "env"},
            cwd=tmp_path,
        )
        assert ctx.template == Path("chosen.smd")
        assert ctx.build_dir == Path("cli")

    def test_no_template_found(self, tmp_path: Path) -> None:
        from builder.config import resolve_context

        assert resolve_context({}, environ={}, cwd=tmp_path).template is None

    def test_venv_override(self, tmp_path: Path) -> None:
        from builder.config import resolve_context

        ctx = resolve_context({"VENV": "/envs/pub"}, environ={}, cwd=tmp_path)
        assert ctx.env_dir == Path("/envs/pub")
        assert ctx.marker == Path("/envs/pub/.ready")

    def test_tool_override_and_env(self, tmp_path: Path) -> None:
        from builder.config import resolve_context

        ctx = resolve_context({}, environ={"STENCILA_CMD": "/env/stencila"}, cwd=tmp_path)
        assert ctx.tool == "/env/stencila"
        ctx = resolve_context(
            {"STENCILA": "/cli/stencila"}, environ={"STENCILA_CMD": "/env/stencila"}, cwd=tmp_path
        )
        assert ctx.tool == "/cli/stencila"

    def test_empty_value_falls_through(self, tmp_path: Path) -> None:
        from builder.config import resolve_context

        ctx = resolve_context({"BUILD_DIR": ""}, environ={"BUILD_DIR": "env"}, cwd=tmp_path)
        assert ctx.build_dir == Path("env")

    def test_context_is_frozen(self, tmp_path: Path) -> None:
        import dataclasses

        from builder.config import resolve_context

        ctx = resolve_context({}, environ={}, cwd=tmp_path)
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.build_dir = Path("elsewhere")  # type: ignore[misc]

    def test_artifact_paths(self, tmp_path: Path) -> None:
        from builder.config import resolve_context

        ctx = resolve_context({"BUILD_DIR": "b"}, environ={}, cwd=tmp_path)
        assert ctx.dnf_json == Path("b/DNF.json")
        assert ctx.dnf_eval == Path("b/DNF_eval.json")
        assert ctx.micropub == Path("b/micropublication.html")


# -- Verbosity mode ----------------------------------------------------------------


class TestVerbosityMode:
    def test_default_is_compact(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import builder.config as cfg

        monkeypatch.setattr(cfg, "_verbose", False)
        assert cfg.is_verbose() is False

    def test_set_verbose_round_trip(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import builder.config as cfg

        monkeypatch.setattr(cfg, "_verbose", False)
        cfg.set_verbose(True)
        assert cfg.is_verbose() is True
        cfg.set_verbose(False)
        assert cfg.is_verbose() is False
