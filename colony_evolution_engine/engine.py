"""Lifecycle of a colony's active upgrades and the effects derived from them."""

from __future__ import annotations

import logging
import time
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from . import effects as effect_rules
from .catalog import TechnologyCatalog, TechnologyNode
from .effects import DEFAULT_CACHE_TTL_SECONDS, CumulativeEffects, EffectCache, UpgradeStats
from .eligibility import UnlockStatus, classify
from .state_storage import decode_engine_state, encode_engine_state
from .visuals import VisualEffectComposer, VisualUpdate

logger = logging.getLogger(__name__)

VisualUpdateCallback = Callable[[VisualUpdate], None]


class EngineNotInitializedError(RuntimeError):
    """Raised when the engine is used before ``initialize`` or ``import_state``."""


class EvolutionEngine:
    """Own the active upgrade set of one colony for one game session.

    The active set is the only source of truth; the cumulative effect record
    is derived from it, cached for ``cache_ttl`` seconds and dropped on every
    mutation. All operations run synchronously on the caller's thread.
    """

    def __init__(
        self,
        catalog: TechnologyCatalog,
        *,
        cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.catalog = catalog
        self.colony_id: str | None = None
        self._initialized = False
        self._active: dict[str, TechnologyNode] = {}
        self._cache = EffectCache(ttl_seconds=cache_ttl, clock=clock)
        self._visuals = VisualEffectComposer()
        self._subscribers: list[VisualUpdateCallback] = []

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def active_upgrades(self) -> Mapping[str, TechnologyNode]:
        return MappingProxyType(self._active)

    @property
    def unlocked_ids(self) -> frozenset[str]:
        return frozenset(self._active)

    @property
    def last_cache_timestamp(self) -> float | None:
        return self._cache.timestamp

    def initialize(self, colony_id: str, unlocked_ids: Iterable[str] = ()) -> None:
        self._reset(colony_id)

        for identifier in unlocked_ids:
            node = self.catalog.get(identifier)
            if node is None:
                logger.warning("Skipping unknown technology %s for colony %s", identifier, colony_id)
                continue
            self._active[identifier] = node
            self._visuals.apply(node)

        self._initialized = True
        self._recompute()
        logger.info("Evolution engine initialized for colony %s with %d upgrade(s)", colony_id, len(self._active))

    def add_upgrade(self, node: TechnologyNode) -> bool:
        self._require_initialized()
        if node.identifier not in self.catalog:
            logger.warning("Skipping upgrade %s: not in the technology catalog", node.identifier)
            return False

        self._active[node.identifier] = node
        self._cache.invalidate()
        self._recompute()
        visual_changes = self._visuals.apply(node)
        logger.info("Added upgrade %s for colony %s", node.identifier, self.colony_id)
        self._notify(node.identifier, visual_changes)
        return True

    def remove_upgrade(self, identifier: str) -> bool:
        self._require_initialized()
        if identifier not in self._active:
            return False

        del self._active[identifier]
        self._cache.invalidate()
        self._recompute()
        self._visuals.remove(identifier)
        logger.info("Removed upgrade %s for colony %s", identifier, self.colony_id)
        self._notify(identifier, None)
        return True

    def current_effects(self) -> CumulativeEffects:
        self._require_initialized()
        cached = self._cache.get()
        if cached is not None:
            return cached
        return self._recompute()

    def classify(self, node: TechnologyNode, points_balance: float) -> UnlockStatus:
        self._require_initialized()
        return classify(node, self._active.keys(), points_balance)

    def apply_ant_modifiers(self, attributes: Mapping[str, Any]) -> dict[str, Any]:
        return effect_rules.apply_ant_modifiers(self.current_effects(), attributes)

    def apply_resource_modifiers(self, resource_kind: str, base_rate: float) -> int:
        return effect_rules.apply_resource_modifiers(self.current_effects(), resource_kind, base_rate)

    def apply_construction_modifiers(self, base_duration: float) -> int:
        return effect_rules.apply_construction_modifiers(self.current_effects(), base_duration)

    def apply_combat_modifiers(self, stats: Mapping[str, Any]) -> dict[str, Any]:
        return effect_rules.apply_combat_modifiers(self.current_effects(), stats)

    def has_special_ability(self, name: str) -> bool:
        return name in self.current_effects().special_abilities

    def research_speed_modifier(self) -> float:
        return effect_rules.research_speed_modifier(self.current_effects())

    def colony_happiness_modifier(self) -> float:
        return effect_rules.colony_happiness_modifier(self.current_effects())

    def upgrade_stats(self) -> UpgradeStats:
        return effect_rules.summarize_upgrades(self._active.values(), self.current_effects())

    def active_visual_effects(self) -> dict[str, Any]:
        self._require_initialized()
        return self._visuals.compose_active()

    def subscribe(self, callback: VisualUpdateCallback) -> Callable[[], None]:
        """Register ``callback`` for visual updates; returns an unsubscribe function."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def export_state(self) -> dict:
        self._require_initialized()
        return encode_engine_state(self.colony_id, self._active.items(), self._cache.timestamp)

    def import_state(self, state: object) -> None:
        """Replace all state with an exported payload and recompute.

        The stored cache timestamp is informational; effects are always
        recomputed from the restored upgrade set.
        """

        decoded = decode_engine_state(state)
        if decoded is None:
            raise ValueError("Unrecognised evolution state payload")

        self._reset(decoded.colony_id)
        for identifier, node in decoded.active_upgrades:
            self._active[identifier] = node
            self._visuals.apply(node)

        self._initialized = True
        self._recompute()
        logger.info("Imported evolution state for colony %s with %d upgrade(s)", self.colony_id, len(self._active))

    def _reset(self, colony_id: str | None) -> None:
        self.colony_id = colony_id
        self._active.clear()
        self._cache.invalidate()
        self._visuals.clear()

    def _recompute(self) -> CumulativeEffects:
        return self._cache.store(effect_rules.aggregate_effects(self._active.values()))

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise EngineNotInitializedError("Evolution engine used before initialize()")

    def _notify(self, identifier: str, visual_changes: Mapping[str, Any] | None) -> None:
        if not self._subscribers:
            return
        update = VisualUpdate(
            identifier=identifier,
            visual_changes=visual_changes,
            composed=self._visuals.compose_active(),
        )
        for callback in list(self._subscribers):
            callback(update)
