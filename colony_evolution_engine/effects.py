"""Aggregation of upgrade effects and their application to game attributes."""

from __future__ import annotations

import math
import time
from collections import Counter
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from .catalog import TechnologyNode

DEFAULT_CACHE_TTL_SECONDS = 30.0
MOVEMENT_SPEED_CAP_FACTOR = 10
ESCAPE_CHANCE_CAP = 95
ABILITY_PREFIXES = ("unlock_", "enable_")

RESOURCE_BONUS_FIELDS: dict[str, str] = {
    "food": "foraging_efficiency_bonus",
    "wood": "foraging_efficiency_bonus",
    "water": "water_collection_bonus",
    "materials": "mining_efficiency_bonus",
    "stone": "mining_efficiency_bonus",
}

EFFICIENCY_ATTRIBUTES = ("foraging_efficiency", "building_efficiency", "mining_efficiency")


@dataclass(frozen=True)
class CumulativeEffects:
    # ant attributes
    carrying_capacity_bonus: float = 0.0
    movement_speed_bonus: float = 0.0
    combat_strength_bonus: float = 0.0
    health_bonus: float = 0.0

    # resource collection
    foraging_efficiency_bonus: float = 0.0
    mining_efficiency_bonus: float = 0.0
    water_collection_bonus: float = 0.0

    # colony
    building_speed_bonus: float = 0.0
    research_speed_bonus: float = 0.0
    birth_rate_bonus: float = 0.0
    colony_morale_bonus: float = 0.0

    # combat
    attack_damage_bonus: float = 0.0
    defense_bonus: float = 0.0
    escape_chance_bonus: float = 0.0

    # environment
    temperature_resistance: float = 0.0
    poison_resistance: float = 0.0
    predator_detection: float = 0.0

    multipliers: Mapping[str, float] = field(default_factory=dict)
    special_abilities: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "multipliers", MappingProxyType(dict(self.multipliers)))

    def get(self, key: str, default: Any = 0.0) -> Any:
        if key in ADDITIVE_FIELDS:
            return getattr(self, key)
        return self.multipliers.get(key, default)

    def multiplier(self, key: str) -> float:
        return self.multipliers.get(key, 1.0)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {name: getattr(self, name) for name in ADDITIVE_FIELDS}
        data["multipliers"] = dict(self.multipliers)
        data["special_abilities"] = list(self.special_abilities)
        return data


ADDITIVE_FIELDS: tuple[str, ...] = tuple(
    item.name for item in fields(CumulativeEffects) if item.name not in {"multipliers", "special_abilities"}
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def aggregate_effects(nodes: Iterable[TechnologyNode]) -> CumulativeEffects:
    """Fold the effects of every node into one record.

    Numbers under a known bonus key add up, numbers under a key containing
    ``multiplier`` multiply, ``True`` under an ``unlock_``/``enable_`` key
    grants that ability, and lists grant each listed ability. Any other
    shape is ignored.
    """

    totals: dict[str, float] = dict.fromkeys(ADDITIVE_FIELDS, 0.0)
    multipliers: dict[str, float] = {}
    abilities: list[str] = []

    for node in nodes:
        for key, value in node.effects.items():
            if _is_number(value):
                if key in totals:
                    totals[key] += value
                elif "multiplier" in key:
                    multipliers[key] = multipliers.get(key, 1.0) * value
            elif value is True:
                if key.startswith(ABILITY_PREFIXES):
                    abilities.append(key)
            elif isinstance(value, (list, tuple)):
                abilities.extend(str(item) for item in value)

    return CumulativeEffects(
        **totals,
        multipliers=multipliers,
        special_abilities=tuple(dict.fromkeys(abilities)),
    )


def _scale(bonus_percent: float) -> float:
    return 1 + bonus_percent / 100


def apply_ant_modifiers(effects: CumulativeEffects, attributes: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``attributes`` with the ant stat bonuses applied.

    Recognised keys: ``carrying_capacity``, ``movement_speed``,
    ``max_health``/``current_health``, ``combat_strength`` and the
    efficiency attributes scaled by ``efficiency_multiplier``. Missing keys
    are left alone.
    """

    modified = dict(attributes)

    if effects.carrying_capacity_bonus > 0 and "carrying_capacity" in modified:
        modified["carrying_capacity"] = math.floor(
            modified["carrying_capacity"] * _scale(effects.carrying_capacity_bonus)
        )

    if effects.movement_speed_bonus > 0 and "movement_speed" in modified:
        base_speed = modified["movement_speed"]
        modified["movement_speed"] = min(
            base_speed * _scale(effects.movement_speed_bonus),
            base_speed * MOVEMENT_SPEED_CAP_FACTOR,
        )

    if effects.health_bonus > 0 and "max_health" in modified:
        modified["max_health"] = math.floor(modified["max_health"] * _scale(effects.health_bonus))
        if "current_health" in modified:
            modified["current_health"] = min(modified["current_health"], modified["max_health"])

    if effects.combat_strength_bonus > 0 and "combat_strength" in modified:
        modified["combat_strength"] = math.floor(
            modified["combat_strength"] * _scale(effects.combat_strength_bonus)
        )

    efficiency = effects.multipliers.get("efficiency_multiplier")
    if efficiency:
        for attribute in EFFICIENCY_ATTRIBUTES:
            if modified.get(attribute):
                modified[attribute] *= efficiency

    return modified


def apply_resource_modifiers(effects: CumulativeEffects, resource_kind: str, base_rate: float) -> int:
    rate = base_rate
    bonus_field = RESOURCE_BONUS_FIELDS.get(resource_kind)
    if bonus_field:
        bonus = getattr(effects, bonus_field)
        if bonus > 0:
            rate = base_rate * _scale(bonus)

    efficiency = effects.multipliers.get("efficiency_multiplier")
    if efficiency:
        rate *= efficiency

    return math.floor(rate)


def apply_construction_modifiers(effects: CumulativeEffects, base_duration: float) -> int:
    duration = base_duration
    if effects.building_speed_bonus > 0:
        duration = base_duration / _scale(effects.building_speed_bonus)
    return max(math.floor(duration), 1)


def apply_combat_modifiers(effects: CumulativeEffects, stats: Mapping[str, Any]) -> dict[str, Any]:
    modified = dict(stats)

    if effects.attack_damage_bonus > 0 and "attack_damage" in modified:
        modified["attack_damage"] = math.floor(modified["attack_damage"] * _scale(effects.attack_damage_bonus))

    if effects.defense_bonus > 0 and "defense" in modified:
        modified["defense"] = math.floor(modified["defense"] * _scale(effects.defense_bonus))

    if effects.escape_chance_bonus > 0 and "escape_chance" in modified:
        modified["escape_chance"] = min(modified["escape_chance"] + effects.escape_chance_bonus, ESCAPE_CHANCE_CAP)

    return modified


def research_speed_modifier(effects: CumulativeEffects) -> float:
    return _scale(effects.research_speed_bonus)


def colony_happiness_modifier(effects: CumulativeEffects) -> float:
    return _scale(effects.colony_morale_bonus)


class EffectCache:
    """Single-entry cache for the cumulative record with a fixed TTL."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: tuple[CumulativeEffects, float] | None = None

    @property
    def timestamp(self) -> float | None:
        return self._entry[1] if self._entry else None

    @property
    def is_expired(self) -> bool:
        if self._entry is None:
            return True
        return self._clock() - self._entry[1] > self.ttl_seconds

    def get(self) -> CumulativeEffects | None:
        if self.is_expired:
            return None
        return self._entry[0]

    def store(self, record: CumulativeEffects) -> CumulativeEffects:
        self._entry = (record, self._clock())
        return record

    def invalidate(self) -> None:
        self._entry = None


@dataclass(frozen=True, slots=True)
class UpgradeStats:
    total_upgrades: int
    categories: dict[str, int]
    total_bonuses: dict[str, float]
    special_abilities: int


def summarize_upgrades(nodes: Iterable[TechnologyNode], effects: CumulativeEffects) -> UpgradeStats:
    nodes = list(nodes)
    categories: Counter[str] = Counter(node.category for node in nodes)
    bonuses: dict[str, float] = {}
    for node in nodes:
        for key, value in node.effects.items():
            if _is_number(value):
                bonuses[key] = bonuses.get(key, 0) + value

    return UpgradeStats(
        total_upgrades=len(nodes),
        categories=dict(categories),
        total_bonuses=bonuses,
        special_abilities=len(effects.special_abilities),
    )
