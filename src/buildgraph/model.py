# model.py
from __future__ import annotations

import platform
import sys
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple

if TYPE_CHECKING:
    from .builder import Builder


WEB_OS = "emscripten"

_ARCH_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "i686": "x86",
    "i386": "x86",
}

_OS_ALIASES = {
    "darwin": "macos",
    "win32": "windows",
    "cygwin": "windows",
}

_DEFAULT_ABI = {
    "linux": "gnu",
    "windows": "gnu",
    "macos": "none",
    WEB_OS: "musl",
}


class OptimizeMode(str, Enum):
    DEBUG = "Debug"
    RELEASE_SAFE = "ReleaseSafe"
    RELEASE_FAST = "ReleaseFast"
    RELEASE_SMALL = "ReleaseSmall"

    @classmethod
    def parse(cls, value: str) -> OptimizeMode:
        for mode in cls:
            if mode.value.lower() == value.lower():
                return mode
        raise ValueError(
            f"Unknown optimize mode {value!r}. Known: {[m.value for m in cls]}"
        )


@dataclass(frozen=True)
class TargetPlatform:
    """OS/architecture/ABI triple an artifact is built for."""
    arch: str
    os: str
    abi: str = "none"

    @classmethod
    def host(cls) -> TargetPlatform:
        machine = platform.machine().lower() or "x86_64"
        arch = _ARCH_ALIASES.get(machine, machine)
        os_name = sys.platform
        if os_name.startswith("linux"):
            os_name = "linux"
        os_name = _OS_ALIASES.get(os_name, os_name)
        return cls(arch=arch, os=os_name, abi=_DEFAULT_ABI.get(os_name, "none"))

    @classmethod
    def parse(cls, spec: str) -> TargetPlatform:
        """Parse `native` or `arch-os[-abi]`, e.g. `wasm32-emscripten`."""
        if spec in ("", "native"):
            return cls.host()
        parts = spec.split("-")
        if len(parts) not in (2, 3) or not all(parts):
            raise ValueError(f"Target must look like 'arch-os[-abi]', got: {spec!r}")
        arch = _ARCH_ALIASES.get(parts[0], parts[0])
        os_name = _OS_ALIASES.get(parts[1], parts[1])
        abi = parts[2] if len(parts) == 3 else _DEFAULT_ABI.get(os_name, "none")
        return cls(arch=arch, os=os_name, abi=abi)

    @property
    def is_web(self) -> bool:
        return self.os == WEB_OS

    @property
    def triplet(self) -> str:
        # release naming order: os first
        return f"{self.os}-{self.arch}"

    @property
    def query(self) -> str:
        return f"{self.arch}-{self.os}-{self.abi}"

    def __str__(self) -> str:
        return self.query


@dataclass(frozen=True)
class Dependency:
    """Handle on the external library: importable module + optional prebuilt lib."""
    name: str
    module_root: Path
    library: Optional[Path] = None


@dataclass(frozen=True)
class CompileUnit:
    root_source: Path
    target: TargetPlatform
    optimize: OptimizeMode
    imports: Dict[str, Dependency] = field(default_factory=dict)


class ArtifactKind(str, Enum):
    EXECUTABLE = "executable"
    LIBRARY = "library"
    TEST = "test"


@dataclass(frozen=True)
class Artifact:
    """A build output bound to one target; `path` is where the compile step writes it."""
    name: str
    kind: ArtifactKind
    unit: CompileUnit
    path: Path


@dataclass(frozen=True)
class Step:
    """
    A named unit of build work.

    `needs` lists steps that must succeed before this one runs. Only
    StepGraph.depend_on changes it, by replacing the step.
    Top-level steps are the ones a user can request by name.
    """
    name: str
    description: str = ""
    action: Optional[Callable[[], None]] = None
    needs: Tuple[str, ...] = ()
    top_level: bool = False


@dataclass(frozen=True)
class BuildContext:
    """Per-invocation configuration handed to every factory."""
    builder: "Builder"
    target: TargetPlatform
    optimize: OptimizeMode
    dependency: Dependency

    def with_target(self, target: TargetPlatform) -> BuildContext:
        return replace(self, target=target)
