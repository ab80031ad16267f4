"""Deterministic module dependency graph over scanned checkouts."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator, Sequence
from heapq import heapify, heappop, heappush

from gitscan.domain.models import RepoFact


class ModuleGraph:
    """Directed graph of module identities with edges ``dependency -> dependent``.

    Only identities of scanned checkouts become nodes, so every edge joins two
    modules that live in the scanned population.
    """

    __slots__ = ("_nodes", "_dependents", "_dependencies", "_facts")

    def __init__(self) -> None:
        self._nodes: set[str] = set()
        self._dependents: dict[str, set[str]] = {}
        self._dependencies: dict[str, set[str]] = {}
        self._facts: dict[str, RepoFact] = {}

    @classmethod
    def from_facts(cls, facts: Iterable[RepoFact]) -> ModuleGraph:
        """Build the graph from root-manifest dependencies.

        Facts without an identity are skipped. When identities collide the
        first fact in input order owns the node.
        """
        graph = cls()
        owners = _identity_owners(facts)
        for identity, fact in owners.items():
            graph.add_node(identity)
            graph._facts[identity] = fact
        for identity, fact in owners.items():
            for dependency in fact.dependencies:
                if dependency in owners:
                    graph.add_edge(dependency, identity)
        return graph

    @property
    def nodes(self) -> tuple[str, ...]:
        """All module identities in deterministic order."""
        return tuple(sorted(self._nodes))

    @property
    def edges(self) -> tuple[tuple[str, str], ...]:
        """All edges as ``(dependency, dependent)`` pairs in deterministic order."""
        ordered_edges: list[tuple[str, str]] = []
        for dependency in sorted(self._nodes):
            for dependent in sorted(self._dependents[dependency]):
                ordered_edges.append((dependency, dependent))
        return tuple(ordered_edges)

    def fact_for(self, identity: str) -> RepoFact | None:
        return self._facts.get(identity)

    def add_node(self, identity: str) -> None:
        """Add a node if it does not already exist."""
        if not identity:
            raise ValueError("module identity must be non-empty")
        if identity in self._nodes:
            return
        self._nodes.add(identity)
        self._dependents[identity] = set()
        self._dependencies[identity] = set()

    def add_edge(self, dependency: str, dependent: str) -> None:
        """Record that ``dependent`` requires ``dependency``."""
        self.add_node(dependency)
        self.add_node(dependent)
        self._dependents[dependency].add(dependent)
        self._dependencies[dependent].add(dependency)

    def dependents(self, identity: str) -> tuple[str, ...]:
        """Direct dependents of ``identity`` in sorted order."""
        return tuple(sorted(self._dependents.get(identity, ())))

    def reachable_dependents(self, seeds: Iterable[str]) -> set[str]:
        """Breadth-first closure of ``seeds`` over the dependent edges, seeds included."""
        visited: set[str] = set()
        queue: deque[str] = deque()
        for seed in seeds:
            if seed and seed not in visited:
                visited.add(seed)
                queue.append(seed)

        while queue:
            identity = queue.popleft()
            for dependent in sorted(self._dependents.get(identity, ())):
                if dependent not in visited:
                    visited.add(dependent)
                    queue.append(dependent)
        return visited

    def topological_order(self) -> tuple[tuple[str, ...], tuple[str, ...]]:
        """Kahn's algorithm with a lexicographic min-heap ready set.

        Returns ``(ordered, cyclic)``. Nodes that never reach in-degree zero sit
        on or behind a cycle; they are left out of ``ordered`` and returned
        sorted in ``cyclic``.
        """
        indegree: dict[str, int] = {node: len(self._dependencies[node]) for node in self._nodes}
        ready: list[str] = [node for node, degree in indegree.items() if degree == 0]
        heapify(ready)

        order: list[str] = []
        while ready:
            node = heappop(ready)
            order.append(node)

            for dependent in sorted(self._dependents[node]):
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    heappush(ready, dependent)

        cyclic = tuple(sorted(node for node, degree in indegree.items() if degree > 0))
        return tuple(order), cyclic

    def detect_cycles(self) -> tuple[tuple[str, ...], ...]:
        """
        Detect directed cycles.

        Returns cycle paths as closed paths, e.g. ``("a", "b", "a")``, each in
        its lexicographically smallest rotation.
        """
        state: dict[str, int] = {}
        stack: list[str] = []
        stack_index: dict[str, int] = {}
        cycles: dict[tuple[str, ...], None] = {}

        for start in sorted(self._nodes):
            if state.get(start, 0) != 0:
                continue

            state[start] = 1
            stack.append(start)
            stack_index[start] = len(stack) - 1
            frames: list[tuple[str, Iterator[str]]] = [
                (start, iter(sorted(self._dependents[start])))
            ]

            while frames:
                node, child_iter = frames[-1]

                try:
                    child = next(child_iter)
                except StopIteration:
                    frames.pop()
                    state[node] = 2
                    stack.pop()
                    del stack_index[node]
                    continue

                child_state = state.get(child, 0)
                if child_state == 0:
                    state[child] = 1
                    stack_index[child] = len(stack)
                    stack.append(child)
                    frames.append((child, iter(sorted(self._dependents[child]))))
                    continue

                if child_state == 1:
                    start_index = stack_index[child]
                    cycle = tuple(stack[start_index:] + [child])
                    cycles[_canonicalize_cycle(cycle)] = None

        return tuple(sorted(cycles))


def _identity_owners(facts: Iterable[RepoFact]) -> dict[str, RepoFact]:
    owners: dict[str, RepoFact] = {}
    for fact in facts:
        if fact.module_identity and fact.module_identity not in owners:
            owners[fact.module_identity] = fact
    return owners


def _canonicalize_cycle(cycle: Sequence[str]) -> tuple[str, ...]:
    if len(cycle) < 2:
        raise ValueError("Cycle path must contain at least two nodes.")

    core = tuple(cycle[:-1])
    if len(core) == 1:
        return (core[0], core[0])

    best = core
    for offset in range(1, len(core)):
        rotated = core[offset:] + core[:offset]
        if rotated < best:
            best = rotated

    return best + (best[0],)


def internal_dependencies(fact: RepoFact, all_facts: Sequence[RepoFact]) -> list[str]:
    """Directory names of ``fact``'s root dependencies that are scanned checkouts.

    Names come back in the manifest's declaration order.
    """
    owners = _identity_owners(all_facts)
    return [owners[dependency].name for dependency in fact.dependencies if dependency in owners]


def transitive_dependents(
    seeds: Iterable[RepoFact],
    all_facts: Sequence[RepoFact],
) -> list[RepoFact]:
    """Every fact that depends, directly or transitively, on any seed.

    Seeds with an identity are part of the result. The result follows
    ``all_facts`` order.
    """
    graph = ModuleGraph.from_facts(all_facts)
    visited = graph.reachable_dependents(seed.module_identity for seed in seeds)
    return [
        fact for fact in all_facts if fact.module_identity and fact.module_identity in visited
    ]


def topological_sort(all_facts: Sequence[RepoFact]) -> tuple[list[RepoFact], list[str]]:
    """Order facts so every module follows its in-population dependencies.

    Returns ``(ordered, cyclic)``; ``cyclic`` holds the sorted identities that
    could not be ordered because of a dependency cycle.
    """
    graph = ModuleGraph.from_facts(all_facts)
    order, cyclic = graph.topological_order()
    ordered: list[RepoFact] = []
    for identity in order:
        fact = graph.fact_for(identity)
        if fact is not None:
            ordered.append(fact)
    return ordered, list(cyclic)


__all__ = [
    "ModuleGraph",
    "internal_dependencies",
    "topological_sort",
    "transitive_dependents",
]
