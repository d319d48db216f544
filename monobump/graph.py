"""Module dependency graph.

The graph is a flat arena of modules keyed by id plus two string-keyed
adjacency maps: "depends on" (deps) and its inverse (dependents). It is
built once per run and never mutated. Bumps cascade along the inverse
direction: a bump on B reaches every A that depends on B.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Iterator

from .errors import (
    DependencyCycleError,
    DuplicateModuleError,
    MissingRootModuleError,
    UnknownModuleError,
)
from .models import ROOT_MODULE_ID, Module


class ModuleGraph:
    """Read-only view over a fixed module set and its dependency edges.

    Raises:
        DuplicateModuleError: If two modules share an id.
        UnknownModuleError: If a module depends on an id not in the set.
    """

    def __init__(self, modules: Iterable[Module]) -> None:
        self._modules: dict[str, Module] = {}
        for module in modules:
            if module.id in self._modules:
                raise DuplicateModuleError(module.id)
            self._modules[module.id] = module

        self._deps: dict[str, frozenset[str]] = {}
        reverse: dict[str, set[str]] = {n: set() for n in self._modules}
        for name, module in self._modules.items():
            for dep in module.deps:
                if dep not in self._modules:
                    raise UnknownModuleError(dep, referenced_by=name)
                reverse[dep].add(name)
            self._deps[name] = frozenset(module.deps)
        self._dependents = {n: frozenset(d) for n, d in reverse.items()}

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._modules

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    @property
    def ids(self) -> list[str]:
        """Module ids in declaration order."""
        return list(self._modules)

    def get(self, module_id: str) -> Module:
        try:
            return self._modules[module_id]
        except KeyError:
            raise UnknownModuleError(module_id) from None

    def root(self) -> Module:
        """Return the root module (id ":")."""
        root = self._modules.get(ROOT_MODULE_ID)
        if root is None:
            raise MissingRootModuleError()
        return root

    def dependencies_of(self, module_id: str) -> frozenset[str]:
        """Ids of the modules that module_id depends on."""
        try:
            return self._deps[module_id]
        except KeyError:
            raise UnknownModuleError(module_id) from None

    def dependents_of(self, module_id: str) -> frozenset[str]:
        """Ids of the modules that declare a dependency on module_id."""
        try:
            return self._dependents[module_id]
        except KeyError:
            raise UnknownModuleError(module_id) from None

    def topological_order(self, *, reverse: bool = False) -> list[str]:
        """Order module ids so that dependencies come before dependents.

        Uses Kahn's algorithm. Among modules that are ready at the same
        time, ids are taken in ascending order (descending when reverse is
        set), so the output is deterministic. Both orders are valid
        linearizations of the same graph.

        Raises:
            DependencyCycleError: If the dependency relation has a cycle.

        Example:
            If :a depends on :b, and :b depends on :c:
            topological_order() → [":c", ":b", ":a"]
        """
        in_degree = {n: len(deps) for n, deps in self._deps.items()}

        def key(name: str) -> tuple[int, ...] | str:
            # heapq is a min-heap; invert code points for descending order
            return tuple(-ord(c) for c in name) + (1,) if reverse else name

        ready = [(key(n), n) for n, d in in_degree.items() if d == 0]
        heapq.heapify(ready)
        order: list[str] = []

        while ready:
            _, node = heapq.heappop(ready)
            order.append(node)
            for dependent in self._dependents[node]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, (key(dependent), dependent))

        if len(order) != len(self._modules):
            remaining = set(self._modules) - set(order)
            cycle = self._cycle_within(remaining) or sorted(remaining)
            raise DependencyCycleError(cycle, remaining)

        return order

    def find_cycle(self) -> list[str] | None:
        """Return one dependency cycle as a closed path, or None."""
        return self._cycle_within(set(self._modules))

    def _cycle_within(self, candidates: set[str]) -> list[str] | None:
        # Iterative DFS with white/grey/black colouring over the candidates.
        state: dict[str, int] = {}
        for start in sorted(candidates):
            if state.get(start):
                continue
            stack: list[tuple[str, Iterator[str]]] = [
                (start, iter(sorted(self._deps[start] & candidates)))
            ]
            path = [start]
            state[start] = 1
            while stack:
                node, children = stack[-1]
                child = next(children, None)
                if child is None:
                    state[node] = 2
                    stack.pop()
                    path.pop()
                    continue
                if state.get(child) == 1:
                    return path[path.index(child) :] + [child]
                if not state.get(child):
                    state[child] = 1
                    path.append(child)
                    stack.append(
                        (child, iter(sorted(self._deps[child] & candidates)))
                    )
        return None
