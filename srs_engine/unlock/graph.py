"""
Prerequisite graph.

Items reference their prerequisites by id. Before any unlock computation
those loose references are turned into an explicit graph and checked:
- unknown ids are collected per item (data-integrity warnings)
- cycles are found with Tarjan's strongly connected components; a
  self-reference counts as a cycle

A graph with cycles is a configuration error. validate() raises
DependencyCycle; the resolver also refuses to unlock any cycle member.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from loguru import logger

from srs_engine.core.errors import DependencyCycle, UnknownPrerequisite
from srs_engine.core.items import LearnableItem


@dataclass(frozen=True)
class PrerequisiteGraph:
    """Validated prerequisite structure of an item collection."""

    prerequisites: Mapping[str, tuple[str, ...]]  # item -> known prerequisite ids
    levels: Mapping[str, int]
    unknown: Mapping[str, frozenset[str]] = field(default_factory=dict)
    cycles: tuple[frozenset[str], ...] = ()

    @classmethod
    def from_items(cls, items: Iterable[LearnableItem]) -> PrerequisiteGraph:
        """
        Build the graph from an item snapshot.

        Args:
            items: Full item collection

        Returns:
            PrerequisiteGraph with unknown references and cycles recorded
        """
        by_id = {item.id: item for item in items}
        prerequisites: dict[str, tuple[str, ...]] = {}
        unknown: dict[str, frozenset[str]] = {}

        for item_id in sorted(by_id):
            refs = by_id[item_id].prerequisite_ids
            known = tuple(sorted(ref for ref in refs if ref in by_id))
            missing = frozenset(ref for ref in refs if ref not in by_id)
            prerequisites[item_id] = known
            if missing:
                unknown[item_id] = missing

        cycles = tuple(
            component
            for component in _strongly_connected(prerequisites)
            if len(component) > 1 or _has_self_loop(component, prerequisites)
        )

        graph = cls(
            prerequisites=prerequisites,
            levels={item_id: item.level for item_id, item in by_id.items()},
            unknown=unknown,
            cycles=cycles,
        )
        logger.debug(
            f"Prerequisite graph: {len(prerequisites)} items, "
            f"{sum(len(p) for p in prerequisites.values())} edges, "
            f"{len(unknown)} with unknown refs, {len(cycles)} cycles"
        )
        return graph

    @property
    def cycle_members(self) -> frozenset[str]:
        return frozenset().union(*self.cycles) if self.cycles else frozenset()

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    def unknown_prerequisite_errors(self) -> list[UnknownPrerequisite]:
        return [UnknownPrerequisite(item_id, missing) for item_id, missing in self.unknown.items()]

    def cycle_errors(self) -> list[DependencyCycle]:
        return [DependencyCycle(members) for members in self.cycles]

    def validate(self) -> None:
        """
        Reject a graph that contains cycles.

        Raises:
            DependencyCycle: For the first cycle found (all are logged)
        """
        errors = self.cycle_errors()
        for error in errors:
            logger.error(str(error))
        if errors:
            raise errors[0]

    def dependents_of(self, item_id: str) -> frozenset[str]:
        """Items that list `item_id` as a direct prerequisite."""
        return frozenset(
            other for other, prereqs in self.prerequisites.items() if item_id in prereqs
        )

    def topological_order(self) -> list[str]:
        """
        Order items so prerequisites come first (lower levels first on ties).

        Raises:
            DependencyCycle: If the graph has a cycle
        """
        self.validate()

        remaining = {item_id: len(prereqs) for item_id, prereqs in self.prerequisites.items()}
        dependents: dict[str, list[str]] = {item_id: [] for item_id in self.prerequisites}
        for item_id, prereqs in self.prerequisites.items():
            for prereq in prereqs:
                dependents[prereq].append(item_id)

        ready = [(self.levels[i], i) for i, count in remaining.items() if count == 0]
        heapq.heapify(ready)
        order: list[str] = []

        while ready:
            _, item_id = heapq.heappop(ready)
            order.append(item_id)
            for dependent in dependents[item_id]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, (self.levels[dependent], dependent))

        return order


def _has_self_loop(component: frozenset[str], edges: Mapping[str, tuple[str, ...]]) -> bool:
    if len(component) != 1:
        return False
    (only,) = component
    return only in edges.get(only, ())


def _strongly_connected(edges: Mapping[str, tuple[str, ...]]) -> list[frozenset[str]]:
    """Tarjan's algorithm, iterative so deep chains do not hit the recursion limit."""
    index_of: dict[str, int] = {}
    low: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    components: list[frozenset[str]] = []
    counter = 0

    for root in edges:
        if root in index_of:
            continue

        index_of[root] = low[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work = [(root, iter(edges.get(root, ())))]

        while work:
            node, children = work[-1]
            descended = False

            for child in children:
                if child not in index_of:
                    index_of[child] = low[child] = counter
                    counter += 1
                    stack.append(child)
                    on_stack.add(child)
                    work.append((child, iter(edges.get(child, ()))))
                    descended = True
                    break
                if child in on_stack:
                    low[node] = min(low[node], index_of[child])

            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low[parent] = min(low[parent], low[node])

            if low[node] == index_of[node]:
                component = set()
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.add(member)
                    if member == node:
                        break
                components.append(frozenset(component))

    return components
