# targets.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from . import app as app_build
from .model import Artifact, BuildContext, CompileUnit, Step
from .steps import add_package_step
from .websdk import WebSdk


@dataclass(frozen=True)
class NativeTarget:
    """Natively linked executable installed under <prefix>/bin."""
    artifact: Artifact
    install: Step
    run: Step
    package: Step


@dataclass(frozen=True)
class WebTarget:
    """Library handed to the web SDK and bundled under <prefix>/web."""
    artifact: Artifact
    bundle: Step
    launch: Step


SelectedTarget = Union[NativeTarget, WebTarget]


def select_target(
    ctx: BuildContext,
    root_module: CompileUnit,
    run_step: Step,
    *,
    web_sdk: Optional[WebSdk],
    release_version: str,
) -> SelectedTarget:
    """Wire exactly one artifact branch, chosen from the target's OS."""
    if ctx.target.is_web:
        if web_sdk is None:
            raise ValueError(f"Target {ctx.target} needs a web SDK, none configured")
        return wire_web(ctx, root_module, run_step, web_sdk)
    return wire_native(ctx, root_module, run_step, release_version=release_version)


def wire_web(ctx: BuildContext, root_module: CompileUnit, run_step: Step, sdk: WebSdk) -> WebTarget:
    b = ctx.builder
    compile_step, wasm = app_build.create_web_library(ctx, root_module)

    html = b.install_path("web", f"{wasm.name}.html")
    flags = sdk.default_flags(ctx.optimize)
    settings = sdk.default_settings(ctx.optimize)
    embed = [b.path(b.project.resources_dir)]
    dependency_library = ctx.dependency.library

    def bundle_action() -> None:
        sdk.bundle(
            bundle.name,
            library=wasm,
            dependency_library=dependency_library,
            output=html,
            flags=flags,
            settings=settings,
            embed_paths=embed,
        )

    bundle = b.graph.add("bundle web", f"Bundle {wasm.name} into {html}", bundle_action)
    b.graph.depend_on(bundle, compile_step)
    b.graph.depend_on(b.install_step, bundle)

    run_args = list(b.run_args)

    def launch_action() -> None:
        sdk.launch(launch.name, html, run_args)

    launch = b.graph.add("launch browser", f"Open {html.name} in a browser", launch_action)
    b.graph.depend_on(launch, bundle)
    b.graph.depend_on(run_step, launch)

    return WebTarget(artifact=wasm, bundle=bundle, launch=launch)


def wire_native(
    ctx: BuildContext,
    root_module: CompileUnit,
    run_step: Step,
    *,
    release_version: str,
) -> NativeTarget:
    b = ctx.builder
    compile_step, exe = app_build.create_native_executable(ctx, root_module)

    installed = b.install_path("bin", exe.path.name)
    install_exe = b.add_install_artifact(compile_step, exe, installed)
    b.graph.depend_on(b.install_step, install_exe)

    run_cmd = b.add_run_artifact(installed, b.run_args, capture=False)
    b.graph.depend_on(run_cmd, b.install_step)
    b.graph.depend_on(run_step, run_cmd)

    package = add_package_step(b, compile_step, exe, release_version)
    return NativeTarget(artifact=exe, install=install_exe, run=run_cmd, package=package)
