"""Step dependency graph.

Nodes are step ids; an edge runs from a dependency to the step that needs it.
Needs on ids that are not steps of the graph are ignored here and reported by
the validator instead.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import WorkflowStep


@dataclass(frozen=True, slots=True)
class CycleResult:
    has_cycle: bool
    cycle: list[str] = field(default_factory=list)
    topological_order: list[str] | None = None


class WorkflowDAG:
    """Dependency graph over the steps of one resolved workflow."""

    def __init__(self, order: list[str], needs: dict[str, list[str]]) -> None:
        self._order = order
        self._index = {step_id: i for i, step_id in enumerate(order)}
        self._needs = {
            step_id: [dep for dep in deps if dep in self._index] for step_id, deps in needs.items()
        }
        self._dependents: dict[str, list[str]] = {step_id: [] for step_id in order}
        for step_id in order:
            for dep in self._needs[step_id]:
                self._dependents[dep].append(step_id)

    @classmethod
    def from_steps(cls, steps: Iterable[WorkflowStep]) -> WorkflowDAG:
        order: list[str] = []
        needs: dict[str, list[str]] = {}
        for step in steps:
            order.append(step.id)
            needs[step.id] = list(step.needs)
        return cls(order, needs)

    @property
    def step_ids(self) -> list[str]:
        return list(self._order)

    def dependencies(self, step_id: str) -> list[str]:
        return list(self._needs.get(step_id, []))

    def dependents(self, step_id: str) -> list[str]:
        return list(self._dependents.get(step_id, []))

    def detect_cycles(self) -> CycleResult:
        cycle = self._find_cycle()
        if cycle:
            return CycleResult(has_cycle=True, cycle=cycle)
        return CycleResult(has_cycle=False, topological_order=self._kahn_order())

    def _find_cycle(self) -> list[str]:
        """Depth-first search with an on-stack set.

        Returns the first cycle found as a closed path (`[a, b, a]`), or an
        empty list. Nodes and edges are visited in declaration order.
        """

        visited: set[str] = set()
        on_stack: set[str] = set()
        path: list[str] = []

        for root in self._order:
            if root in visited:
                continue
            # Iterative DFS: each frame is (node, iterator over its dependents).
            stack = [(root, iter(self._dependents[root]))]
            visited.add(root)
            on_stack.add(root)
            path.append(root)

            while stack:
                node, children = stack[-1]
                advanced = False
                for child in children:
                    if child in on_stack:
                        start = path.index(child)
                        return [*path[start:], child]
                    if child not in visited:
                        visited.add(child)
                        on_stack.add(child)
                        path.append(child)
                        stack.append((child, iter(self._dependents[child])))
                        advanced = True
                        break
                if not advanced:
                    stack.pop()
                    on_stack.discard(node)
                    path.pop()

        return []

    def _kahn_order(self) -> list[str]:
        """Kahn's algorithm; ready steps are taken in declaration order."""

        remaining = {step_id: len(self._needs[step_id]) for step_id in self._order}
        ready = [self._index[s] for s, count in remaining.items() if count == 0]
        heapq.heapify(ready)

        order: list[str] = []
        while ready:
            step_id = self._order[heapq.heappop(ready)]
            order.append(step_id)
            for dependent in self._dependents[step_id]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, self._index[dependent])

        if len(order) != len(self._order):
            # Unreachable when _find_cycle returned no cycle.
            raise RuntimeError("Step graph contains a cycle")
        return order
