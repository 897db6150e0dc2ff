# graph.py
from __future__ import annotations

from collections import deque
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Set

from .errors import GraphError
from .model import Step


class StepGraph:
    """
    Named steps plus "needs" edges.

    Edges point from a step to the steps that must succeed before it.
    Once frozen (the runner freezes before executing) the step set and edges
    can no longer change.
    """

    def __init__(self) -> None:
        self._steps: Dict[str, Step] = {}
        self._frozen = False

    # ---- construction ----

    def _check_mutable(self) -> None:
        if self._frozen:
            raise GraphError("Step graph is frozen; steps and edges are fixed before execution")

    def add(
        self,
        name: str,
        description: str = "",
        action: Optional[Callable[[], None]] = None,
        *,
        top_level: bool = False,
    ) -> Step:
        self._check_mutable()
        if name in self._steps:
            raise GraphError(f"Duplicate step name: {name}")
        step = Step(name=name, description=description, action=action, top_level=top_level)
        self._steps[name] = step
        return step

    def step(self, name: str, description: str) -> Step:
        """Add a top-level (user-requestable) step with no action of its own."""
        return self.add(name, description, top_level=True)

    def depend_on(self, step: Step | str, *needs: Step | str) -> None:
        self._check_mutable()
        name = step if isinstance(step, str) else step.name
        if name not in self._steps:
            raise GraphError(f"Unknown step: {name}")
        target = self._steps[name]
        for dep in needs:
            dep_name = dep if isinstance(dep, str) else dep.name
            if dep_name not in self._steps:
                raise GraphError(
                    f"Step '{name}' depends on missing step '{dep_name}'. "
                    f"Known steps: {sorted(self._steps)}"
                )
            if dep_name == name:
                raise GraphError(f"Step '{name}' cannot depend on itself")
            if dep_name not in target.needs:
                target = replace(target, needs=target.needs + (dep_name,))
        self._steps[name] = target

    def freeze(self) -> None:
        """Validate acyclicity and lock the graph."""
        if not self._frozen:
            self.topo_levels()
            self._frozen = True

    # ---- queries ----

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._steps

    def __getitem__(self, name: str) -> Step:
        return self._steps[name]

    def names(self) -> List[str]:
        return list(self._steps)

    def top_level_steps(self) -> List[Step]:
        return [s for s in self._steps.values() if s.top_level]

    def dependents(self) -> Dict[str, Set[str]]:
        """dep -> steps that need it"""
        adj: Dict[str, Set[str]] = {n: set() for n in self._steps}
        for step in self._steps.values():
            for dep in step.needs:
                adj[dep].add(step.name)
        return adj

    def closure(self, requested: Iterable[str]) -> Set[str]:
        """Requested steps plus everything they transitively need."""
        seen: Set[str] = set()
        stack = list(requested)
        while stack:
            name = stack.pop()
            if name in seen:
                continue
            if name not in self._steps:
                raise GraphError(f"Unknown step: {name}. Known steps: {sorted(self._steps)}")
            seen.add(name)
            stack.extend(self._steps[name].needs)
        return seen

    def topo_levels(self, only: Optional[Set[str]] = None) -> List[List[str]]:
        """
        Convert the graph into topological "levels".
        Steps within a level have no edges between them.
        """
        names = set(self._steps) if only is None else set(only)
        indeg: Dict[str, int] = {n: 0 for n in names}
        adj: Dict[str, Set[str]] = {n: set() for n in names}
        for n in names:
            for dep in self._steps[n].needs:
                if dep in names:
                    adj[dep].add(n)
                    indeg[n] += 1

        q = deque(sorted(n for n, d in indeg.items() if d == 0))
        levels: List[List[str]] = []
        processed = 0

        while q:
            level: List[str] = []
            for _ in range(len(q)):
                node = q.popleft()
                level.append(node)
                processed += 1
                for child in sorted(adj[node]):
                    indeg[child] -= 1
                    if indeg[child] == 0:
                        q.append(child)
            levels.append(level)

        if processed != len(indeg):
            remaining = sorted(n for n, d in indeg.items() if d > 0)
            raise GraphError(f"Step graph has a cycle. Stuck steps: {remaining}")

        return levels
