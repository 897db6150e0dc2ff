# websdk.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from .errors import StepActionFailure
from .model import Artifact, OptimizeMode
from .toolchain import run_command


class WebSdk(Protocol):
    """
    External web-export SDK: flag derivation, bundling, browser launch.

    Tests substitute a fake with the same methods.
    """

    def default_flags(self, optimize: OptimizeMode) -> List[str]: ...

    def default_settings(self, optimize: OptimizeMode) -> Dict[str, str]: ...

    def bundle(
        self,
        step: str,
        *,
        library: Artifact,
        dependency_library: Optional[Path],
        output: Path,
        flags: Sequence[str],
        settings: Dict[str, str],
        embed_paths: Sequence[Path],
    ) -> None: ...

    def launch(self, step: str, html: Path, args: Sequence[str] = ()) -> None: ...


_OPT_FLAGS = {
    OptimizeMode.DEBUG: ["-O0", "-g"],
    OptimizeMode.RELEASE_SAFE: ["-O2"],
    OptimizeMode.RELEASE_FAST: ["-O3"],
    OptimizeMode.RELEASE_SMALL: ["-Oz"],
}


class EmscriptenSdk:
    """WebSdk driving `emcc` / `emrun` from an activated emsdk."""

    def __init__(self, emcc: str = "emcc", emrun: str = "emrun", shell_file: Optional[Path] = None):
        self.emcc = emcc
        self.emrun = emrun
        self.shell_file = shell_file

    def default_flags(self, optimize: OptimizeMode) -> List[str]:
        return list(_OPT_FLAGS[optimize])

    def default_settings(self, optimize: OptimizeMode) -> Dict[str, str]:
        settings = {
            "USE_GLFW": "3",
            "ALLOW_MEMORY_GROWTH": "1",
            "ASYNCIFY": "1",
            "USE_OFFSET_CONVERTER": "1",
        }
        if optimize is OptimizeMode.DEBUG:
            settings["ASSERTIONS"] = "1"
        return settings

    def bundle(
        self,
        step: str,
        *,
        library: Artifact,
        dependency_library: Optional[Path],
        output: Path,
        flags: Sequence[str],
        settings: Dict[str, str],
        embed_paths: Sequence[Path],
    ) -> None:
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StepActionFailure(step=step, action="emcc", message=str(e)) from e
        argv: List[str] = [self.emcc, *flags]
        for key, value in sorted(settings.items()):
            argv += ["-s", f"{key}={value}"]
        if self.shell_file is not None:
            argv += ["--shell-file", str(self.shell_file)]
        for path in embed_paths:
            argv += ["--embed-file", str(path)]
        argv.append(str(library.path))
        if dependency_library is not None:
            argv.append(str(dependency_library))
        argv += ["-o", str(output)]
        run_command(step, argv, action="emcc")

    def launch(self, step: str, html: Path, args: Sequence[str] = ()) -> None:
        run_command(step, [self.emrun, str(html), *args], action="emrun")
