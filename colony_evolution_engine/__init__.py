"""Technology upgrade engine for the ant colony evolution tree."""

from .catalog import (
    CatalogLoader,
    LoadReport,
    TechnologyCatalog,
    TechnologyCategory,
    TechnologyNode,
)
from .effects import (
    ADDITIVE_FIELDS,
    CumulativeEffects,
    EffectCache,
    UpgradeStats,
    aggregate_effects,
    apply_ant_modifiers,
    apply_combat_modifiers,
    apply_construction_modifiers,
    apply_resource_modifiers,
    colony_happiness_modifier,
    research_speed_modifier,
    summarize_upgrades,
)
from .eligibility import (
    UnlockStatus,
    classify,
    classify_all,
    missing_prerequisites,
    total_unlock_cost,
)
from .engine import EngineNotInitializedError, EvolutionEngine
from .graph import (
    TechTreeEdgeView,
    TechTreeExplorer,
    TechTreeNodeStyle,
    TechTreeNodeView,
    TechTreeView,
)
from .state_storage import DecodedEngineState, decode_engine_state, encode_engine_state
from .tiers import (
    LayoutSpacing,
    NodePosition,
    compute_tiers,
    cyclic_nodes,
    group_tiers,
    layout_positions,
)
from .validation import CatalogValidator, ValidationIssue, ValidationResult
from .visuals import VisualEffectComposer, VisualUpdate

__all__ = [
    "CatalogLoader",
    "LoadReport",
    "TechnologyCatalog",
    "TechnologyCategory",
    "TechnologyNode",
    "CatalogValidator",
    "ValidationIssue",
    "ValidationResult",
    "LayoutSpacing",
    "NodePosition",
    "compute_tiers",
    "cyclic_nodes",
    "group_tiers",
    "layout_positions",
    "TechTreeExplorer",
    "TechTreeView",
    "TechTreeNodeView",
    "TechTreeEdgeView",
    "TechTreeNodeStyle",
    "UnlockStatus",
    "classify",
    "classify_all",
    "missing_prerequisites",
    "total_unlock_cost",
    "ADDITIVE_FIELDS",
    "CumulativeEffects",
    "EffectCache",
    "UpgradeStats",
    "aggregate_effects",
    "apply_ant_modifiers",
    "apply_combat_modifiers",
    "apply_construction_modifiers",
    "apply_resource_modifiers",
    "colony_happiness_modifier",
    "research_speed_modifier",
    "summarize_upgrades",
    "VisualEffectComposer",
    "VisualUpdate",
    "EvolutionEngine",
    "EngineNotInitializedError",
    "DecodedEngineState",
    "encode_engine_state",
    "decode_engine_state",
]
