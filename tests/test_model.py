from __future__ import annotations

import pytest

from buildgraph.model import OptimizeMode, TargetPlatform


def test_parse_web_target() -> None:
    t = TargetPlatform.parse("wasm32-emscripten")
    assert t.is_web
    assert t.arch == "wasm32"


def test_parse_native_triple() -> None:
    t = TargetPlatform.parse("x86_64-linux-gnu")
    assert not t.is_web
    assert t.triplet == "linux-x86_64"
    assert t.query == "x86_64-linux-gnu"


def test_parse_aliases_and_default_abi() -> None:
    t = TargetPlatform.parse("arm64-darwin")
    assert (t.arch, t.os, t.abi) == ("aarch64", "macos", "none")


def test_native_is_host() -> None:
    assert TargetPlatform.parse("native") == TargetPlatform.host()


@pytest.mark.parametrize("bad", ["linux", "x86_64--gnu", "a-b-c-d"])
def test_parse_rejects_malformed(bad: str) -> None:
    with pytest.raises(ValueError):
        TargetPlatform.parse(bad)


def test_optimize_mode_parse_is_case_insensitive() -> None:
    assert OptimizeMode.parse("releasesafe") is OptimizeMode.RELEASE_SAFE
    with pytest.raises(ValueError):
        OptimizeMode.parse("Fastest")
