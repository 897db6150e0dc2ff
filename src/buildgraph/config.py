# config.py
from __future__ import annotations

import runpy
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional

from .model import Dependency, OptimizeMode, TargetPlatform

DEFAULT_PROJECT_FILE = "buildgraph_project.py"


@dataclass(frozen=True)
class DependencySpec:
    """
    Where the external library lives.

    `library` may contain `{target}` and `{optimize}` placeholders so one
    prebuilt copy per target/optimize pair can be picked.
    """
    name: str = "raylib"
    module_root: str = "deps/raylib/raylib.zig"
    library: Optional[str] = None

    def resolve(self, root: Path, target: TargetPlatform, optimize: OptimizeMode) -> Dependency:
        library = None
        if self.library:
            library = root / self.library.format(target=target.query, optimize=optimize.value)
        return Dependency(name=self.name, module_root=root / self.module_root, library=library)


@dataclass(frozen=True)
class ProjectConfig:
    """Static description of the application being built."""
    app_name: str = "app"
    test_name: str = "app-tests"
    root_source_file: str = "src/main.zig"
    manifest_file: str = "build.manifest"
    resources_dir: str = "resources/"
    fmt_paths: List[str] = field(default_factory=lambda: ["build.zig", "build", "src"])
    dependency: DependencySpec = field(default_factory=DependencySpec)

    compiler: str = "zig"
    checksum_command: List[str] = field(default_factory=lambda: ["sha256sum"])
    output_dir: str = "zig-out"
    cache_dir: str = ".buildgraph-cache"
    dist_dir: str = "dist"

    # filled in by load_project when left unset
    root: Optional[Path] = None

    @property
    def project_root(self) -> Path:
        return self.root if self.root is not None else Path.cwd()


def find_project_files(directory: str | Path = ".") -> List[Path]:
    """Return candidate project files in a directory (default name first)."""
    current = Path(directory)
    found: List[Path] = []
    default = current / DEFAULT_PROJECT_FILE
    if default.exists():
        found.append(default)
    for path in sorted(current.glob("*_project.py")):
        if path != default:
            found.append(path)
    return found


def load_project(path: str | Path) -> ProjectConfig:
    """
    Load a ProjectConfig from a python file.

    The file must define either:
      - project() -> ProjectConfig
      - PROJECT = ProjectConfig(...)

    The returned config is rooted at the file's directory unless the file
    sets `root` explicitly.
    """
    project_path = Path(path).expanduser().resolve()
    if not project_path.exists():
        raise FileNotFoundError(f"Project file not found: {project_path}")
    if project_path.suffix != ".py":
        raise ValueError(f"Project file must be a .py file, got: {project_path.name}")

    globals_dict = runpy.run_path(str(project_path), run_name=f"buildgraph_project_{project_path.stem}")

    cfg = None
    if "project" in globals_dict and callable(globals_dict["project"]):
        cfg = globals_dict["project"]()
    elif "PROJECT" in globals_dict:
        cfg = globals_dict["PROJECT"]

    if not isinstance(cfg, ProjectConfig):
        raise TypeError(
            "Project file must return/define a ProjectConfig. "
            "Define project() -> ProjectConfig or PROJECT = ProjectConfig(...)."
        )

    if cfg.root is None:
        cfg = replace(cfg, root=project_path.parent)
    return cfg
