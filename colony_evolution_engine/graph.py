from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

from .catalog import TechnologyCatalog, TechnologyNode
from .eligibility import UnlockStatus, classify_all
from .tiers import LayoutSpacing, NodePosition, compute_tiers, cyclic_nodes, group_tiers, layout_positions


CATEGORY_COLORS: Dict[str | None, str] = {
    "physical": "#ffd166",
    "specialized": "#c77dff",
    "environmental": "#80ed99",
    "combat": "#ff6b6b",
    "efficiency": "#6ec6ff",
    None: "#d3d3d3",
}

STATUS_OPACITY: Dict[UnlockStatus, float] = {
    UnlockStatus.UNLOCKED: 1.0,
    UnlockStatus.AVAILABLE: 1.0,
    UnlockStatus.UNAFFORDABLE: 0.7,
    UnlockStatus.LOCKED: 0.4,
}


@dataclass
class TechTreeNodeStyle:
    color: str
    opacity: float


@dataclass
class TechTreeNodeView:
    identifier: str
    label: str
    category: str
    cost: int
    tier: int
    position: NodePosition
    status: UnlockStatus
    style: TechTreeNodeStyle
    prerequisites: list[str]
    in_cycle: bool = False


@dataclass
class TechTreeEdgeView:
    source: str
    target: str
    is_highlighted: bool = False


@dataclass
class TechTreeView:
    nodes: list[TechTreeNodeView] = field(default_factory=list)
    edges: list[TechTreeEdgeView] = field(default_factory=list)
    tiers: dict[int, list[str]] = field(default_factory=dict)


class TechTreeExplorer:
    """Prepare tier layout and purchase state of a catalog for renderers."""

    def __init__(self, catalog: TechnologyCatalog, spacing: LayoutSpacing | None = None):
        self.catalog = catalog
        nodes = catalog.nodes()
        self._tiers = compute_tiers(nodes)
        self._groups = group_tiers(self._tiers)
        self._positions = layout_positions(self._groups, spacing)
        self._cyclic = cyclic_nodes(nodes)
        self._view_cache: Dict[Tuple[Any, ...], TechTreeView] = {}

    @property
    def tiers(self) -> dict[str, int]:
        return dict(self._tiers)

    def build_view(self, *, unlocked: Iterable[str] | None = None, points_balance: float = 0) -> TechTreeView:
        unlocked_set = frozenset(unlocked or ())
        cache_key = (tuple(sorted(unlocked_set)), points_balance)
        if cache_key in self._view_cache:
            return self._view_cache[cache_key]

        statuses = classify_all(self.catalog, unlocked_set, points_balance)
        node_views = [self._build_node_view(node, statuses[node.identifier]) for node in self.catalog]

        edges = [
            TechTreeEdgeView(source=prereq, target=node.identifier, is_highlighted=prereq in unlocked_set)
            for node in self.catalog
            for prereq in node.prerequisites
            if prereq in self.catalog
        ]

        view = TechTreeView(nodes=node_views, edges=edges, tiers={tier: list(ids) for tier, ids in self._groups.items()})
        self._view_cache[cache_key] = view
        return view

    def _build_node_view(self, node: TechnologyNode, status: UnlockStatus) -> TechTreeNodeView:
        color = CATEGORY_COLORS.get(node.category, CATEGORY_COLORS[None])
        return TechTreeNodeView(
            identifier=node.identifier,
            label=node.name,
            category=node.category,
            cost=node.cost,
            tier=self._tiers[node.identifier],
            position=self._positions[node.identifier],
            status=status,
            style=TechTreeNodeStyle(color=color, opacity=STATUS_OPACITY[status]),
            prerequisites=list(node.prerequisites),
            in_cycle=node.identifier in self._cyclic,
        )
