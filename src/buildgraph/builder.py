# builder.py
from __future__ import annotations

import os
import shutil
import stat
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .config import ProjectConfig
from .errors import StepActionFailure
from .graph import StepGraph
from .model import Artifact, ArtifactKind, CompileUnit, Step, TargetPlatform
from .toolchain import Toolchain, run_command


class CapturedOutput:
    """Stdout of a command step, available once that step has succeeded."""

    def __init__(self, producer: str):
        self.producer = producer
        self.value: Optional[str] = None

    def get(self, consumer: str) -> str:
        if self.value is None:
            raise StepActionFailure(
                step=consumer,
                action="read captured output",
                message=f"output of '{self.producer}' is not available",
            )
        return self.value


class Builder:
    """
    Owns the step graph for one invocation and hands out build primitives
    (compile, install, run, system command, write file, fmt).

    Nothing here runs at configure time; every primitive only adds a step
    whose action does the work later.
    """

    def __init__(
        self,
        project: ProjectConfig,
        toolchain: Toolchain,
        *,
        prefix: str | Path | None = None,
        host: TargetPlatform | None = None,
        run_args: Sequence[str] = (),
    ):
        self.project = project
        self.toolchain = toolchain
        self.root = project.project_root
        self.prefix = Path(prefix) if prefix is not None else self.root / project.output_dir
        self.cache_root = self.root / project.cache_dir
        self.host = host or TargetPlatform.host()
        self.run_args = list(run_args)
        self.graph = StepGraph()
        self._counts: Dict[str, int] = {}
        self.install_step = self.graph.step("install", "Copy build artifacts to prefix path")

    # ---- paths ----

    def path(self, rel: str | Path) -> Path:
        return self.root / rel

    def install_path(self, *parts: str) -> Path:
        return self.prefix.joinpath(*parts)

    def _unique(self, name: str) -> str:
        n = self._counts.get(name, 0) + 1
        self._counts[name] = n
        return name if n == 1 else f"{name} ({n})"

    # ---- primitives ----

    def step(self, name: str, description: str) -> Step:
        return self.graph.step(name, description)

    def add_compile(self, name: str, unit: CompileUnit, kind: ArtifactKind) -> Tuple[Step, Artifact]:
        out_dir = self.cache_root / unit.target.query / unit.optimize.value
        if kind is ArtifactKind.LIBRARY:
            filename = f"lib{name}.a"
        elif unit.target.os == "windows":
            filename = f"{name}.exe"
        else:
            filename = name
        artifact = Artifact(name=name, kind=kind, unit=unit, path=out_dir / filename)

        step_name = self._unique(f"compile {kind.value} {name}")
        toolchain = self.toolchain

        def action() -> None:
            toolchain.compile(step_name, artifact)

        step = self.graph.add(step_name, f"Compile {name} for {unit.target}", action)
        return step, artifact

    def add_install_artifact(self, compile_step: Step, artifact: Artifact, dest: Path) -> Step:
        step_name = self._unique(f"install {artifact.name} -> {dest.name}")

        def action() -> None:
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(artifact.path, dest)
                if artifact.kind is not ArtifactKind.LIBRARY:
                    mode = dest.stat().st_mode
                    dest.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            except OSError as e:
                raise StepActionFailure(step=step_name, action=f"install {dest}", message=str(e)) from e

        step = self.graph.add(step_name, f"Install {artifact.name} to {dest}", action)
        self.graph.depend_on(step, compile_step)
        return step

    def add_run_artifact(self, path: Path, args: Sequence[str] = (), *, capture: bool = True) -> Step:
        step_name = self._unique(f"run {path.name}")
        argv: List[str] = [str(path), *args]

        def action() -> None:
            run_command(step_name, argv, cwd=self.root, action=f"run {path.name}", capture=capture)

        return self.graph.add(step_name, f"Run {path}", action)

    def add_system_command(self, argv: Sequence[str]) -> Tuple[Step, CapturedOutput]:
        step_name = self._unique(f"run {os.path.basename(str(argv[0]))}")
        captured = CapturedOutput(step_name)
        argv = list(argv)

        def action() -> None:
            captured.value = run_command(step_name, argv, cwd=self.root)

        step = self.graph.add(step_name, f"Run {' '.join(map(str, argv))}", action)
        return step, captured

    def add_install_file(self, source: CapturedOutput, dest: Path) -> Step:
        step_name = self._unique(f"install {dest.name}")

        def action() -> None:
            text = source.get(step_name)
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                dest.write_text(text, encoding="utf-8")
            except OSError as e:
                raise StepActionFailure(step=step_name, action=f"write {dest}", message=str(e)) from e

        step = self.graph.add(step_name, f"Install {dest}", action)
        self.graph.depend_on(step, source.producer)
        return step

    def add_fmt(self, paths: Sequence[str], *, check: bool) -> Step:
        step_name = self._unique("fmt check" if check else "fmt apply")
        resolved = [self.path(p) for p in paths]
        toolchain = self.toolchain

        def action() -> None:
            toolchain.fmt(step_name, resolved, check=check)

        return self.graph.add(step_name, f"Format {', '.join(paths)}", action)
