# app.py
from __future__ import annotations

from typing import Tuple

from .model import Artifact, ArtifactKind, BuildContext, CompileUnit, Step


def create_root_module(ctx: BuildContext) -> CompileUnit:
    """The app's compilation unit for ctx.target, importing the dependency by name."""
    b = ctx.builder
    return CompileUnit(
        root_source=b.path(b.project.root_source_file),
        target=ctx.target,
        optimize=ctx.optimize,
        imports={ctx.dependency.name: ctx.dependency},
    )


def create_native_executable(ctx: BuildContext, root_module: CompileUnit) -> Tuple[Step, Artifact]:
    return ctx.builder.add_compile(ctx.builder.project.app_name, root_module, ArtifactKind.EXECUTABLE)


def create_web_library(ctx: BuildContext, root_module: CompileUnit) -> Tuple[Step, Artifact]:
    return ctx.builder.add_compile(ctx.builder.project.app_name, root_module, ArtifactKind.LIBRARY)


def add_unit_tests(ctx: BuildContext) -> Step:
    """
    Compile and run the unit tests.

    The test unit always targets the host, whatever was requested, so the
    tests can actually execute on the machine running the build.
    """
    b = ctx.builder
    test_module = create_root_module(ctx.with_target(b.host))
    compile_step, tests = b.add_compile(b.project.test_name, test_module, ArtifactKind.TEST)

    run_tests = b.add_run_artifact(tests.path)
    b.graph.depend_on(run_tests, compile_step)
    return run_tests
