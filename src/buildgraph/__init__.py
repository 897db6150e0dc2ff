from .build import BuildPlan, configure
from .config import DependencySpec, ProjectConfig, load_project
from .metadata import read_package_version, resolve_release_version
from .model import BuildContext, OptimizeMode, TargetPlatform
from .runner import run_steps

__all__ = [
    "BuildPlan",
    "configure",
    "DependencySpec",
    "ProjectConfig",
    "load_project",
    "read_package_version",
    "resolve_release_version",
    "BuildContext",
    "OptimizeMode",
    "TargetPlatform",
    "run_steps",
]
