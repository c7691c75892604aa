from __future__ import annotations

from enum import Enum
from typing import Iterable, Set

from .catalog import TechnologyCatalog, TechnologyNode


class UnlockStatus(str, Enum):
    UNLOCKED = "unlocked"
    AVAILABLE = "available"
    UNAFFORDABLE = "unaffordable"
    LOCKED = "locked"


def classify(node: TechnologyNode, unlocked_ids: Iterable[str], points_balance: float) -> UnlockStatus:
    """Classify a node for display and purchase gating.

    Missing prerequisites outrank cost: a node that is both unaffordable
    and locked reports ``LOCKED``.
    """

    unlocked = unlocked_ids if isinstance(unlocked_ids, (set, frozenset)) else set(unlocked_ids)
    if node.identifier in unlocked:
        return UnlockStatus.UNLOCKED
    if not all(prereq in unlocked for prereq in node.prerequisites):
        return UnlockStatus.LOCKED
    if points_balance < node.cost:
        return UnlockStatus.UNAFFORDABLE
    return UnlockStatus.AVAILABLE


def classify_all(
    nodes: Iterable[TechnologyNode], unlocked_ids: Iterable[str], points_balance: float
) -> dict[str, UnlockStatus]:
    unlocked = frozenset(unlocked_ids)
    return {node.identifier: classify(node, unlocked, points_balance) for node in nodes}


def missing_prerequisites(node: TechnologyNode, unlocked_ids: Iterable[str]) -> tuple[str, ...]:
    unlocked = set(unlocked_ids)
    return tuple(prereq for prereq in node.prerequisites if prereq not in unlocked)


def total_unlock_cost(catalog: TechnologyCatalog, identifier: str, unlocked_ids: Iterable[str]) -> int:
    """Points needed to reach ``identifier`` including locked prerequisites.

    Each outstanding prerequisite is counted once even when several paths
    lead to it. Unknown ids cost nothing.
    """

    unlocked = set(unlocked_ids)
    counted: Set[str] = set()
    total = 0

    def visit(node_id: str) -> None:
        nonlocal total
        if node_id in counted or node_id in unlocked:
            return
        counted.add(node_id)
        node = catalog.get(node_id)
        if node is None:
            return
        total += node.cost
        for prereq in node.prerequisites:
            visit(prereq)

    visit(identifier)
    return total
