# cli.py
from __future__ import annotations

import shutil
import sys
from pathlib import Path

import click

from buildgraph.build import configure
from buildgraph.config import ProjectConfig, find_project_files, load_project
from buildgraph.errors import GraphError, VersionResolutionError
from buildgraph.metadata import resolve_release_version
from buildgraph.model import OptimizeMode, TargetPlatform
from buildgraph.runner import run_steps, succeeded
from buildgraph.ui.console import Console, get_console, set_console


def discover_project(project_arg: str | None) -> ProjectConfig:
    """
    Load the project from --project, from the single *_project.py in the
    current directory, or fall back to the built-in defaults.

    Raises:
        SystemExit: If the given file is missing or several candidates exist
    """
    console = get_console()

    if project_arg:
        project_path = Path(project_arg)
        if not project_path.exists():
            console.print_error(
                "Project file not found",
                f"Could not find project file: {project_arg}",
                suggestion="Create buildgraph_project.py or pass an existing file:\n  buildgraph --project my_project.py build",
            )
            sys.exit(1)
        return load_project(project_path)

    project_files = find_project_files(".")
    if len(project_files) > 1:
        console.print_error(
            "Multiple project files found",
            "Found multiple project files. Please specify which one to use:",
            details=[str(f) for f in project_files],
            suggestion="Specify a project explicitly:\n  buildgraph --project buildgraph_project.py build",
        )
        sys.exit(1)
    if project_files:
        return load_project(project_files[0])

    console.print_debug("No project file found, using defaults")
    return ProjectConfig()


def _parse_target(value: str | None) -> TargetPlatform | None:
    if value is None:
        return None
    try:
        return TargetPlatform.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--target")


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option("--project", "project_file", default=None, help="Project file (defaults to buildgraph_project.py if present)")
@click.pass_context
def cli(ctx, debug, project_file):
    """buildgraph: dependency-ordered build steps for the app."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["project_file"] = project_file


@cli.command()
@click.argument("step_names", nargs=-1)
@click.option("--target", default=None, help="Target platform: native or arch-os[-abi] (e.g. wasm32-emscripten)")
@click.option(
    "--optimize",
    default=OptimizeMode.DEBUG.value,
    show_default=True,
    type=click.Choice([m.value for m in OptimizeMode], case_sensitive=False),
    help="Optimize mode",
)
@click.option("--release-version", default=None, help="Release version for artifact naming (default: manifest .version)")
@click.option("--prefix", default=None, help="Output root for installed artifacts")
@click.option("--workers", default=None, type=int, help="Number of parallel workers")
@click.option("--fail-fast/--no-fail-fast", default=False, help="Stop scheduling new steps after first failure")
@click.option("--arg", "run_args", multiple=True, help="Argument passed to the app by the run step (repeatable)")
@click.pass_context
def build(ctx, step_names, target, optimize, release_version, prefix, workers, fail_fast, run_args):
    """Run build steps (default: install)."""
    console = get_console()

    requested = list(step_names) or ["install"]

    try:
        project = discover_project(ctx.obj.get("project_file"))
        plan = configure(
            project,
            target=_parse_target(target),
            optimize=OptimizeMode.parse(optimize),
            release_version=release_version,
            prefix=prefix,
            run_args=list(run_args),
        )

        unknown = [n for n in requested if n not in plan.graph or not plan.graph[n].top_level]
        if unknown:
            available = ", ".join(s.name for s in plan.graph.top_level_steps())
            console.print_error(
                "Unknown step",
                f"No such step: {', '.join(unknown)}",
                details=[f"Available: {available}"],
            )
            sys.exit(1)

        console.print_build_started(
            project=project.app_name,
            target=str(plan.ctx.target),
            optimize=plan.ctx.optimize.value,
            steps=requested,
        )
        console.print_debug(f"Release version: {plan.release_version}")

        results = run_steps(plan.graph, requested, max_workers=workers, fail_fast=fail_fast)
        console.print_results(results, requested)

        if not succeeded(results, requested):
            sys.exit(1)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except click.ClickException:
        raise
    except GraphError as e:
        console.print_error("Invalid step graph", str(e))
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.option("--target", default=None, help="Target platform the step list is computed for")
@click.pass_context
def steps(ctx, target):
    """List the steps available for a target."""
    console = get_console()
    try:
        project = discover_project(ctx.obj.get("project_file"))
        plan = configure(project, target=_parse_target(target))
        console.print_steps((s.name, s.description) for s in plan.graph.top_level_steps())
    except click.ClickException:
        raise
    except GraphError as e:
        console.print_error("Invalid step graph", str(e))
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.option("--strict/--no-strict", default=False, help="Fail instead of falling back to 'dev'")
@click.pass_context
def version(ctx, strict):
    """Print the release version read from the manifest."""
    console = get_console()
    project = discover_project(ctx.obj.get("project_file"))
    manifest = project.project_root / project.manifest_file
    try:
        console.print_info(resolve_release_version(None, manifest, strict=strict))
    except VersionResolutionError as e:
        console.print_error("Cannot resolve version", f"{type(e).__name__}: {e}")
        sys.exit(1)


@cli.command()
@click.pass_context
def clean(ctx):
    """Remove the build cache, default output dir and dist."""
    console = get_console()
    project = discover_project(ctx.obj.get("project_file"))
    root = project.project_root
    for rel in (project.cache_dir, project.output_dir, project.dist_dir):
        path = root / rel
        if path.exists():
            shutil.rmtree(path)
            console.print_info(f"removed {path}")


if __name__ == "__main__":
    cli()
