from __future__ import annotations

from pathlib import Path

from click.testing import CliRunner

from buildgraph.cli import cli
from buildgraph.errors import GraphError


def _project(tmp_path: Path, manifest: str | None = '.version = "0.3.1",\n') -> Path:
    p = tmp_path / "buildgraph_project.py"
    p.write_text(
        "from buildgraph.config import ProjectConfig\n"
        "PROJECT = ProjectConfig(app_name='demo')\n",
        encoding="utf-8",
    )
    if manifest is not None:
        (tmp_path / "build.manifest").write_text(manifest, encoding="utf-8")
    return p


def test_version_prints_manifest_version(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["--project", str(_project(tmp_path)), "version"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "0.3.1"


def test_version_falls_back_to_dev(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["--project", str(_project(tmp_path, manifest=None)), "version"])
    assert result.exit_code == 0
    assert result.output.strip() == "dev"


def test_strict_version_fails(tmp_path: Path) -> None:
    project = _project(tmp_path, manifest='.version = "open\n')
    result = CliRunner().invoke(cli, ["--project", str(project), "version", "--strict"])
    assert result.exit_code == 1
    assert "InvalidVersionFormat" in result.output


def test_steps_for_web_target_have_no_package(tmp_path: Path) -> None:
    project = str(_project(tmp_path))
    native = CliRunner().invoke(cli, ["--project", project, "steps", "--target", "x86_64-linux-gnu"])
    web = CliRunner().invoke(cli, ["--project", project, "steps", "--target", "wasm32-emscripten"])
    assert native.exit_code == 0 and web.exit_code == 0
    assert "package" in native.output
    assert "package" not in web.output
    assert "fmt-check" in web.output


def test_build_unknown_step(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["--project", str(_project(tmp_path)), "build", "deploy"])
    assert result.exit_code == 1
    assert "No such step: deploy" in result.output


def test_build_bad_target(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["--project", str(_project(tmp_path)), "build", "--target", "linux"])
    assert result.exit_code == 2


def test_missing_project_file(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["--project", str(tmp_path / "nope.py"), "version"])
    assert result.exit_code == 1
    assert "Project file not found" in result.output


def test_clean_removes_outputs(tmp_path: Path) -> None:
    project = _project(tmp_path)
    (tmp_path / "zig-out" / "bin").mkdir(parents=True)
    (tmp_path / ".buildgraph-cache").mkdir()
    result = CliRunner().invoke(cli, ["--project", str(project), "clean"])
    assert result.exit_code == 0
    assert not (tmp_path / "zig-out").exists()
    assert not (tmp_path / ".buildgraph-cache").exists()


def test_steps_reports_bad_project_file(tmp_path: Path) -> None:
    p = tmp_path / "buildgraph_project.py"
    p.write_text("PROJECT = {'app_name': 'demo'}\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["--project", str(p), "steps"])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_steps_reports_invalid_graph(tmp_path: Path, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise GraphError("Step graph has a cycle. Stuck steps: ['a', 'b']")

    monkeypatch.setattr("buildgraph.cli.configure", broken)
    result = CliRunner().invoke(cli, ["--project", str(_project(tmp_path)), "steps"])
    assert result.exit_code == 1
    assert "Invalid step graph" in result.output
