"""Tier (graph depth) resolution and tier-bucket layout for technology trees."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Mapping, Set, Tuple

from .catalog import TechnologyNode


@dataclass(frozen=True, slots=True)
class LayoutSpacing:
    start_x: float = 100.0
    start_y: float = 100.0
    spacing_x: float = 250.0
    spacing_y: float = 150.0


@dataclass(frozen=True, slots=True)
class NodePosition:
    x: float
    y: float


def compute_tiers(nodes: Iterable[TechnologyNode]) -> dict[str, int]:
    """Return the tier of every node.

    A node without prerequisites is tier 0, otherwise it sits one tier past
    its deepest prerequisite. Each branch carries the ids already on its
    path; meeting one of them again (a cycle) counts as tier 0 for that
    occurrence, so malformed data yields a degenerate layout rather than an
    endless recursion. Prerequisite ids missing from ``nodes`` also count
    as tier 0.

    A result only depends on the part of the path that lies inside the
    node's own prerequisite closure, so results are memoized on that pair.
    """

    by_id: Dict[str, TechnologyNode] = {}
    for node in nodes:
        by_id.setdefault(node.identifier, node)

    reach = {node_id: _prerequisite_closure(node_id, by_id) for node_id in by_id}
    memo: Dict[Tuple[str, FrozenSet[str]], int] = {}

    def resolve(node_id: str, path: FrozenSet[str]) -> int:
        if node_id in path:
            return 0

        node = by_id.get(node_id)
        if node is None or not node.prerequisites:
            return 0

        key = (node_id, path & reach[node_id])
        if key not in memo:
            branch = path | {node_id}
            memo[key] = 1 + max(resolve(prereq, branch) for prereq in node.prerequisites)
        return memo[key]

    return {node_id: resolve(node_id, frozenset()) for node_id in by_id}


def _prerequisite_closure(start: str, by_id: Mapping[str, TechnologyNode]) -> FrozenSet[str]:
    seen: Set[str] = set()
    pending = list(by_id[start].prerequisites)
    while pending:
        current = pending.pop()
        if current in seen:
            continue
        seen.add(current)
        if current in by_id:
            pending.extend(by_id[current].prerequisites)
    return frozenset(seen)


def group_tiers(tiers: Mapping[str, int]) -> dict[int, list[str]]:
    groups: Dict[int, list[str]] = {}
    for node_id, tier in tiers.items():
        groups.setdefault(tier, []).append(node_id)
    return {tier: groups[tier] for tier in sorted(groups)}


def layout_positions(
    groups: Mapping[int, list[str]],
    spacing: LayoutSpacing | None = None,
) -> dict[str, NodePosition]:
    """Give each node an evenly spaced slot, one column per tier."""

    spacing = spacing or LayoutSpacing()
    positions: Dict[str, NodePosition] = {}

    for tier, node_ids in groups.items():
        count = len(node_ids)
        column_top = spacing.start_y + (count - 1) * spacing.spacing_y / 2
        for index, node_id in enumerate(node_ids):
            positions[node_id] = NodePosition(
                x=spacing.start_x + tier * spacing.spacing_x,
                y=column_top - index * spacing.spacing_y,
            )

    return positions


def cyclic_nodes(nodes: Iterable[TechnologyNode]) -> Set[str]:
    """Ids of nodes that can reach themselves through their prerequisites."""

    by_id = {node.identifier: node for node in nodes}
    found: Set[str] = set()

    for start in by_id:
        visited: Set[str] = set()
        pending = list(by_id[start].prerequisites)
        while pending:
            current = pending.pop()
            if current == start:
                found.add(start)
                break
            if current in visited or current not in by_id:
                continue
            visited.add(current)
            pending.extend(by_id[current].prerequisites)

    return found
