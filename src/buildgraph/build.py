# build.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from . import app as app_build
from . import steps as build_steps
from .builder import Builder
from .config import ProjectConfig
from .graph import StepGraph
from .metadata import resolve_release_version
from .model import BuildContext, OptimizeMode, TargetPlatform
from .targets import SelectedTarget, select_target
from .toolchain import CommandToolchain, Toolchain
from .websdk import EmscriptenSdk, WebSdk


@dataclass(frozen=True)
class BuildPlan:
    """Result of the configure pass: the frozen graph plus what was chosen."""
    ctx: BuildContext
    target: SelectedTarget
    release_version: str

    @property
    def builder(self) -> Builder:
        return self.ctx.builder

    @property
    def graph(self) -> StepGraph:
        return self.ctx.builder.graph


def configure(
    project: ProjectConfig,
    *,
    target: TargetPlatform | None = None,
    optimize: OptimizeMode = OptimizeMode.DEBUG,
    release_version: Optional[str] = None,
    prefix: str | Path | None = None,
    toolchain: Toolchain | None = None,
    web_sdk: WebSdk | None = None,
    host: TargetPlatform | None = None,
    run_args: Sequence[str] = (),
) -> BuildPlan:
    """
    Build the whole step graph for one invocation.

    Single pass, no execution: every tool runs later, from the runner.
    """
    toolchain = toolchain or CommandToolchain(project.compiler, cwd=project.project_root)
    b = Builder(project, toolchain, prefix=prefix, host=host, run_args=run_args)
    target = target or b.host

    version = resolve_release_version(release_version, b.path(project.manifest_file))

    dependency = project.dependency.resolve(b.root, target, optimize)
    ctx = BuildContext(builder=b, target=target, optimize=optimize, dependency=dependency)
    root_module = app_build.create_root_module(ctx)

    run_step = b.step("run", "Run the app")
    test_step = b.step("test", "Run unit tests on host")
    run_unit_tests = app_build.add_unit_tests(ctx)
    b.graph.depend_on(test_step, run_unit_tests)

    fmt_steps = build_steps.add_fmt_steps(b)
    build_steps.add_ci_step(b, fmt_steps.fmt_check, b.install_step, test_step)

    # web exports are completely separate
    if target.is_web and web_sdk is None:
        web_sdk = EmscriptenSdk()
    selected = select_target(ctx, root_module, run_step, web_sdk=web_sdk, release_version=version)

    b.graph.freeze()
    return BuildPlan(ctx=ctx, target=selected, release_version=version)
