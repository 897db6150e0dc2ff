from __future__ import annotations

import pytest

from buildgraph.errors import GraphError, StepActionFailure
from buildgraph.graph import StepGraph
from buildgraph.runner import BLOCKED, CANCELLED, FAILED, OK, run_steps, succeeded


def _ok(calls, name):
    def action():
        calls.append(name)
    return action


def _fail(calls, name):
    def action():
        calls.append(name)
        raise StepActionFailure(step=name, action="tool", message="boom", exit_code=2)
    return action


def _ci_graph(calls, failing=None):
    g = StepGraph()
    for name in ("fmt-check", "install", "test"):
        action = _fail(calls, name) if name == failing else _ok(calls, name)
        g.add(name, action=action)
    g.step("ci", "all of it")
    g.depend_on("ci", "fmt-check", "install", "test")
    return g


def test_ci_succeeds_when_all_dependencies_succeed() -> None:
    calls = []
    results = run_steps(_ci_graph(calls), ["ci"])
    assert results == {"fmt-check": OK, "install": OK, "test": OK, "ci": OK}
    assert sorted(calls) == ["fmt-check", "install", "test"]
    assert succeeded(results, ["ci"])


@pytest.mark.parametrize("failing", ["fmt-check", "install", "test"])
def test_ci_fails_when_any_dependency_fails(failing: str) -> None:
    calls = []
    results = run_steps(_ci_graph(calls, failing=failing), ["ci"])
    assert results[failing] == FAILED
    assert results["ci"] == BLOCKED
    assert not succeeded(results, ["ci"])
    # independent branches still ran
    assert sorted(calls) == ["fmt-check", "install", "test"]


def test_dependent_never_runs_after_failure() -> None:
    calls = []
    g = StepGraph()
    g.add("compile", action=_fail(calls, "compile"))
    g.add("install", action=_ok(calls, "install"))
    g.add("checksum", action=_ok(calls, "checksum"))
    g.depend_on("install", "compile")
    g.depend_on("checksum", "install")

    results = run_steps(g, ["checksum"])

    assert calls == ["compile"]
    assert results == {"compile": FAILED, "install": BLOCKED, "checksum": BLOCKED}


def test_unexpected_exception_counts_as_failure() -> None:
    g = StepGraph()

    def explode():
        raise RuntimeError("unexpected")

    g.add("x", action=explode)
    assert run_steps(g, ["x"]) == {"x": FAILED}


def test_only_requested_closure_runs() -> None:
    calls = []
    g = StepGraph()
    g.add("a", action=_ok(calls, "a"))
    g.add("b", action=_ok(calls, "b"))
    results = run_steps(g, ["a"])
    assert results == {"a": OK}
    assert calls == ["a"]


def test_dependencies_finish_before_dependents_start() -> None:
    calls = []
    g = StepGraph()
    for name in ("a", "b", "c", "d"):
        g.add(name, action=_ok(calls, name))
    g.depend_on("b", "a")
    g.depend_on("c", "a")
    g.depend_on("d", "b", "c")

    run_steps(g, ["d"], max_workers=4)

    assert calls[0] == "a"
    assert calls[-1] == "d"


def test_fail_fast_stops_scheduling() -> None:
    calls = []
    g = StepGraph()
    g.add("a", action=_fail(calls, "a"))
    g.add("b", action=_ok(calls, "b"))
    g.add("c", action=_ok(calls, "c"))
    g.depend_on("c", "b")

    results = run_steps(g, ["a", "c"], max_workers=1, fail_fast=True)

    assert results["a"] == FAILED
    assert results["c"] == CANCELLED
    assert "c" not in calls


def test_run_freezes_graph() -> None:
    g = StepGraph()
    g.add("a")
    run_steps(g, ["a"])
    assert g.frozen


def test_edges_forced_in_after_freeze_are_reported() -> None:
    calls = []
    g = StepGraph()
    g.add("a", action=_ok(calls, "a"))
    g.add("b", action=_ok(calls, "b"))
    g.depend_on("b", "a")
    g.freeze()
    # bypass the frozen dataclass to sneak a cycle past freeze()
    object.__setattr__(g["a"], "needs", ("b",))

    with pytest.raises(GraphError, match="cycle"):
        run_steps(g, ["b"])
    assert calls == []
