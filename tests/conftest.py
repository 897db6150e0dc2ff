from __future__ import annotations

import stat
import sys
import threading
from pathlib import Path

import pytest

from buildgraph.config import ProjectConfig
from buildgraph.errors import StepActionFailure
from buildgraph.model import ArtifactKind, TargetPlatform

HOST = TargetPlatform(arch="x86_64", os="linux", abi="gnu")

CHECKSUM_OK = 'import sys\nprint("0123abcd  " + sys.argv[1])\n'
CHECKSUM_FAIL = 'import sys\nsys.stderr.write("nope\\n")\nsys.exit(3)\n'


class FakeToolchain:
    """Writes tiny shell scripts instead of compiling; records every call."""

    def __init__(self, *, fail_compile=(), fail_fmt_check=False, failing_tests=False):
        self.fail_compile = set(fail_compile)
        self.fail_fmt_check = fail_fmt_check
        self.failing_tests = failing_tests
        self.compiled = []
        self.fmt_calls = []
        self._lock = threading.Lock()

    def compile(self, step, artifact):
        with self._lock:
            self.compiled.append(artifact)
        if artifact.name in self.fail_compile:
            raise StepActionFailure(step=step, action=f"compile {artifact.name}", message="error: boom", exit_code=1)
        exit_code = 1 if (artifact.kind is ArtifactKind.TEST and self.failing_tests) else 0
        artifact.path.parent.mkdir(parents=True, exist_ok=True)
        # each run leaves its argv next to the script that was invoked
        artifact.path.write_text(f"#!/bin/sh\nprintf '%s\\n' \"$@\" > \"$0.args\"\nexit {exit_code}\n")
        artifact.path.chmod(artifact.path.stat().st_mode | stat.S_IXUSR)

    def fmt(self, step, paths, *, check):
        with self._lock:
            self.fmt_calls.append((tuple(paths), check))
        if check and self.fail_fmt_check:
            raise StepActionFailure(step=step, action="fmt --check", message="src/main.zig", exit_code=1)


class FakeWebSdk:
    def __init__(self):
        self.calls = []

    def default_flags(self, optimize):
        return ["-Ofake"]

    def default_settings(self, optimize):
        return {"FAKE": "1"}

    def bundle(self, step, *, library, dependency_library, output, flags, settings, embed_paths):
        self.calls.append(("bundle", library.name, output, list(flags), dict(settings), list(embed_paths)))
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text("<html></html>")

    def launch(self, step, html, args=()):
        self.calls.append(("launch", html))


def write_script(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


@pytest.fixture
def host() -> TargetPlatform:
    return HOST


@pytest.fixture
def project(tmp_path: Path) -> ProjectConfig:
    (tmp_path / "build.manifest").write_text('.{\n    .name = .demo,\n    .version = "0.3.1",\n}\n', encoding="utf-8")
    checksum = write_script(tmp_path / "checksum.py", CHECKSUM_OK)
    return ProjectConfig(
        app_name="demo",
        test_name="demo-tests",
        root=tmp_path,
        checksum_command=[sys.executable, str(checksum)],
    )


@pytest.fixture
def toolchain() -> FakeToolchain:
    return FakeToolchain()


@pytest.fixture
def web_sdk() -> FakeWebSdk:
    return FakeWebSdk()
