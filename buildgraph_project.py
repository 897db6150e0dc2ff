# buildgraph_project.py
# Project description for the app: entry point, formatter paths, and the
# rendering library the app imports.
from __future__ import annotations

from buildgraph.config import DependencySpec, ProjectConfig


def project():
    return ProjectConfig(
        app_name="app",
        test_name="app-tests",
        root_source_file="src/main.zig",
        manifest_file="build.manifest",
        resources_dir="resources/",
        fmt_paths=["build.zig", "build", "src"],
        dependency=DependencySpec(
            name="raylib",
            module_root="deps/raylib/raylib.zig",
            library="deps/raylib/lib/{target}/{optimize}/libraylib.a",
        ),
    )
