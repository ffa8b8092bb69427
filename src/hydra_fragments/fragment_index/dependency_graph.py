"""Reference edges between fragments, keyed by canonical UHL string."""

from __future__ import annotations

import logging
from graphlib import CycleError, TopologicalSorter

LOGGER = logging.getLogger(__name__)


class DependencyGraph:
    """Directed graph where an edge ``A -> B`` means fragment A references B."""

    def __init__(self) -> None:
        self._dependencies: dict[str, list[str]] = {}

    def add_node(self, node: str) -> None:
        self._dependencies.setdefault(node, [])

    def add_edge(self, source: str, target: str) -> None:
        self.add_node(source)
        self.add_node(target)
        if target not in self._dependencies[source]:
            self._dependencies[source].append(target)

    def dependencies_of(self, node: str) -> list[str]:
        return list(self._dependencies.get(node, ()))

    def dependents_of(self, node: str) -> list[str]:
        return [source for source, targets in self._dependencies.items() if node in targets]

    def nodes(self) -> list[str]:
        return list(self._dependencies)

    def edges(self) -> list[tuple[str, str]]:
        return [
            (source, target) for source, targets in self._dependencies.items() for target in targets
        ]

    def topological_order(self) -> list[str]:
        """Nodes with dependencies before their dependents.

        A cyclic graph has no such order; nodes are then returned in
        insertion order.
        """
        sorter: TopologicalSorter[str] = TopologicalSorter()
        for node, targets in self._dependencies.items():
            sorter.add(node, *targets)
        try:
            return list(sorter.static_order())
        except CycleError as exc:
            LOGGER.debug("Fragment references form a cycle %s, using insertion order", exc.args[1])
            return self.nodes()

    def __len__(self) -> int:
        return len(self._dependencies)

    def __contains__(self, node: object) -> bool:
        return node in self._dependencies
