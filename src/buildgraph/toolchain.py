# toolchain.py
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Protocol, Sequence

from .errors import StepActionFailure
from .model import Artifact, ArtifactKind, CompileUnit


TOOL_HINTS = {
    "zig": "Install the Zig compiler or fix PATH.",
    "emcc": "Install the Emscripten SDK and source emsdk_env.sh.",
    "emrun": "Install the Emscripten SDK and source emsdk_env.sh.",
    "sha256sum": "Install GNU coreutils (sha256sum) or fix PATH.",
}


def run_command(
    step: str,
    argv: Sequence[str],
    *,
    cwd: str | Path | None = None,
    action: str | None = None,
    capture: bool = True,
) -> str:
    """
    Run one external tool and return its stdout.

    Any failure (tool missing, non-zero exit, OS error) becomes a
    StepActionFailure tagged with the step name. With capture=False the
    tool shares our stdio and "" is returned.
    """
    argv = [str(a) for a in argv]
    action = action or argv[0]
    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd) if cwd is not None else None,
            text=True,
            capture_output=capture,
        )
    except FileNotFoundError as e:
        hint = TOOL_HINTS.get(Path(argv[0]).name, f"Install {argv[0]} or fix PATH.")
        raise StepActionFailure(
            step=step,
            action=action,
            message=f"{argv[0]} is not available",
            details={"hint": hint},
        ) from e
    except OSError as e:
        raise StepActionFailure(step=step, action=action, message=str(e)) from e

    if proc.returncode != 0:
        raise StepActionFailure(
            step=step,
            action=action,
            message=" ".join(argv),
            exit_code=proc.returncode,
            stderr=(proc.stderr or "")[-4000:],
        )
    return proc.stdout or ""


class Toolchain(Protocol):
    """The compiler + formatter the graph drives. Each call blocks until done."""

    def compile(self, step: str, artifact: Artifact) -> None: ...

    def fmt(self, step: str, paths: Sequence[Path], *, check: bool) -> None: ...


class CommandToolchain:
    """Toolchain backed by a compiler CLI found on PATH."""

    _SUBCOMMANDS = {
        ArtifactKind.EXECUTABLE: "build-exe",
        ArtifactKind.LIBRARY: "build-lib",
        ArtifactKind.TEST: "test",
    }

    def __init__(self, compiler: str = "zig", *, cwd: Path | None = None):
        self.compiler = compiler
        self.cwd = cwd

    def compile_argv(self, artifact: Artifact) -> List[str]:
        unit: CompileUnit = artifact.unit
        argv = [
            self.compiler,
            self._SUBCOMMANDS[artifact.kind],
            "-target", unit.target.query,
            "-O", unit.optimize.value,
        ]
        for name in unit.imports:
            argv += ["--dep", name]
        argv.append(f"-Mroot={unit.root_source}")
        for name, dep in unit.imports.items():
            argv.append(f"-M{name}={dep.module_root}")
            if dep.library is not None:
                argv.append(str(dep.library))
        if artifact.kind is ArtifactKind.TEST:
            argv.append("--test-no-exec")
        argv.append(f"-femit-bin={artifact.path}")
        return argv

    def compile(self, step: str, artifact: Artifact) -> None:
        action = f"compile {artifact.name}"
        try:
            artifact.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StepActionFailure(step=step, action=action, message=str(e)) from e
        run_command(step, self.compile_argv(artifact), cwd=self.cwd, action=action)

    def fmt(self, step: str, paths: Sequence[Path], *, check: bool) -> None:
        argv = [self.compiler, "fmt"]
        if check:
            argv.append("--check")
        argv.extend(str(p) for p in paths)
        run_command(step, argv, cwd=self.cwd, action="fmt --check" if check else "fmt")
