# steps.py
from __future__ import annotations

from dataclasses import dataclass

from .builder import Builder
from .model import Artifact, Step, TargetPlatform

CHECKSUM_FILE = "SHA256SUMS.txt"


@dataclass(frozen=True)
class FmtSteps:
    fmt: Step
    fmt_check: Step


def add_fmt_steps(b: Builder) -> FmtSteps:
    format_apply = b.add_fmt(b.project.fmt_paths, check=False)
    format_check = b.add_fmt(b.project.fmt_paths, check=True)

    fmt_step = b.step("fmt", "Format sources")
    b.graph.depend_on(fmt_step, format_apply)

    fmt_check_step = b.step("fmt-check", "Check source formatting")
    b.graph.depend_on(fmt_check_step, format_check)

    return FmtSteps(fmt=fmt_step, fmt_check=fmt_check_step)


def add_ci_step(b: Builder, fmt_check: Step, install_step: Step, test_step: Step) -> Step:
    ci_step = b.step("ci", "Run formatting checks, build, and tests")
    b.graph.depend_on(ci_step, fmt_check, install_step, test_step)
    return ci_step


def release_asset_name(app_name: str, version: str, target: TargetPlatform) -> str:
    return f"{app_name}-{version}-{target.triplet}-elf"


def add_package_step(b: Builder, compile_step: Step, exe: Artifact, release_version: str) -> Step:
    """
    Install the executable as <app>-<version>-<os>-<arch>-elf under the
    prefix and write the checksum tool's stdout next to it.
    """
    asset_name = release_asset_name(b.project.app_name, release_version, exe.unit.target)
    release_path = b.install_path(asset_name)

    install_release = b.add_install_artifact(compile_step, exe, release_path)

    checksum_cmd, checksum_out = b.add_system_command([*b.project.checksum_command, str(release_path)])
    b.graph.depend_on(checksum_cmd, install_release)

    install_checksum = b.add_install_file(checksum_out, b.install_path(CHECKSUM_FILE))

    package_step = b.step("package", "Create release artifact and SHA256SUMS under --prefix")
    b.graph.depend_on(package_step, install_release, install_checksum)
    return package_step
