# runner.py
from __future__ import annotations

import os
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Dict, Iterable, List, Set

from .errors import GraphError, StepActionFailure
from .graph import StepGraph
from .model import Step
from .ui.console import get_console

OK = "ok"
FAILED = "failed"
BLOCKED = "blocked"
CANCELLED = "cancelled"


def _run_step(step: Step) -> str:
    console = get_console()
    if step.action is not None:
        console.print_step(step.name)
        step.action()
    return step.name


def _block_dependents(name: str, adj: Dict[str, Set[str]], results: Dict[str, str]) -> None:
    stack = list(adj[name])
    while stack:
        nxt = stack.pop()
        if nxt in results:
            continue
        results[nxt] = BLOCKED
        stack.extend(adj[nxt])


def run_steps(
    graph: StepGraph,
    requested: Iterable[str],
    *,
    max_workers: int | None = None,
    fail_fast: bool = False,
) -> Dict[str, str]:
    """
    Execute the requested steps and everything they need.

    A step is submitted only after all its needs reported ok. A failure marks
    every transitive dependent as blocked; independent branches keep going
    unless fail_fast, in which case nothing new is scheduled.

    Returns {step name: ok | failed | blocked | cancelled}.
    """
    console = get_console()
    graph.freeze()

    selected = graph.closure(requested)
    graph.topo_levels(selected)
    adj: Dict[str, Set[str]] = {n: set() for n in selected}
    indeg: Dict[str, int] = {n: 0 for n in selected}
    for name in selected:
        for dep in graph[name].needs:
            adj[dep].add(name)
            indeg[name] += 1

    ready: List[str] = sorted((n for n, d in indeg.items() if d == 0), reverse=True)
    results: Dict[str, str] = {}
    failed = False

    if max_workers is None:
        c = os.cpu_count() or 2
        max_workers = max(1, c - 1)

    in_flight: Dict[Future, str] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        while ready or in_flight:
            # schedule all currently ready
            while ready and not (fail_fast and failed):
                name = ready.pop()
                in_flight[pool.submit(_run_step, graph[name])] = name

            if not in_flight:
                break

            done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
            for fut in done:
                name = in_flight.pop(fut)
                try:
                    fut.result()
                except StepActionFailure as e:
                    results[name] = FAILED
                    console.print_failure(name, str(e), exit_code=e.exit_code,
                                          hint=e.details.get("hint"), stderr=e.stderr)
                except Exception as e:
                    results[name] = FAILED
                    console.print_failure(name, f"{type(e).__name__}: {e}")
                else:
                    results[name] = OK
                    console.print_success(name)

                # unlock dependents only on success
                if results[name] == OK:
                    for nxt in sorted(adj[name]):
                        indeg[nxt] -= 1
                        if indeg[nxt] == 0 and nxt not in results:
                            ready.append(nxt)
                else:
                    failed = True
                    _block_dependents(name, adj, results)

    # without fail-fast every step ends ok, failed or blocked
    stuck = sorted(n for n in selected if n not in results)
    if stuck and not (fail_fast and failed):
        raise GraphError(f"Steps were never scheduled: {stuck}")
    for name in selected:
        results.setdefault(name, CANCELLED)
    return results


def succeeded(results: Dict[str, str], requested: Iterable[str]) -> bool:
    return all(results.get(name) == OK for name in requested)
