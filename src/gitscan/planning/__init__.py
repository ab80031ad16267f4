"""Dependency graph queries over scanned checkouts."""

from gitscan.planning.module_graph import (
    ModuleGraph,
    internal_dependencies,
    topological_sort,
    transitive_dependents,
)

__all__ = [
    "ModuleGraph",
    "internal_dependencies",
    "topological_sort",
    "transitive_dependents",
]
