import pytest

from colony_evolution_engine import (
    CumulativeEffects,
    EffectCache,
    TechnologyNode,
    aggregate_effects,
    apply_ant_modifiers,
    apply_combat_modifiers,
    apply_construction_modifiers,
    apply_resource_modifiers,
    colony_happiness_modifier,
    research_speed_modifier,
    summarize_upgrades,
)


def tech(identifier, category="physical", **effects):
    return TechnologyNode(identifier=identifier, name=identifier, category=category, effects=effects)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def test_numeric_bonuses_add_up():
    effects = aggregate_effects([tech("a", movement_speed_bonus=20), tech("b", movement_speed_bonus=20)])

    assert effects.movement_speed_bonus == 40
    assert apply_ant_modifiers(effects, {"movement_speed": 1.0})["movement_speed"] == pytest.approx(1.4)


def test_movement_speed_is_capped_at_ten_times_base():
    effects = aggregate_effects([tech("a", movement_speed_bonus=2000)])

    assert apply_ant_modifiers(effects, {"movement_speed": 1.5})["movement_speed"] == pytest.approx(15.0)


def test_multipliers_compose_multiplicatively():
    effects = aggregate_effects([tech("a", efficiency_multiplier=1.2), tech("b", efficiency_multiplier=1.2)])

    assert effects.multipliers["efficiency_multiplier"] == pytest.approx(1.44)
    modified = apply_ant_modifiers(effects, {"foraging_efficiency": 10, "mining_efficiency": 0})
    assert modified["foraging_efficiency"] == pytest.approx(14.4)
    assert modified["mining_efficiency"] == 0


def test_abilities_come_from_flags_and_lists_and_are_deduplicated():
    effects = aggregate_effects(
        [
            tech("a", unlock_tunnels=True, enable_swarm=True, stealth_ability=True, enable_off=False),
            tech("b", special_abilities=["burrow", "unlock_tunnels"], unlock_ant_type="elite_soldier"),
            tech("c", abilities=["burrow"]),
        ]
    )

    assert effects.special_abilities == ("unlock_tunnels", "enable_swarm", "burrow")


def test_unrecognised_shapes_are_ignored():
    effects = aggregate_effects(
        [
            tech("a", carrying_capacity_bonus=True, task_efficiency_bonus=25, speed_multiplier=True),
            tech("b", defense_bonus="lots", visual=None, nested={"x": 1}),
        ]
    )

    assert effects == CumulativeEffects()
    assert effects.to_dict()["carrying_capacity_bonus"] == 0


def test_ant_modifiers_floor_integral_stats_and_clamp_health():
    effects = aggregate_effects(
        [tech("a", carrying_capacity_bonus=50, health_bonus=25, combat_strength_bonus=50)]
    )
    base = {"carrying_capacity": 5, "max_health": 10, "current_health": 10, "combat_strength": 3, "name": "worker"}

    modified = apply_ant_modifiers(effects, base)

    assert modified == {
        "carrying_capacity": 7,
        "max_health": 12,
        "current_health": 10,
        "combat_strength": 4,
        "name": "worker",
    }
    assert base["carrying_capacity"] == 5


def test_resource_rates_use_kind_specific_bonus_then_efficiency():
    effects = aggregate_effects(
        [tech("a", foraging_efficiency_bonus=50, mining_efficiency_bonus=100, water_collection_bonus=25)]
    )

    assert apply_resource_modifiers(effects, "food", 10) == 15
    assert apply_resource_modifiers(effects, "wood", 3) == 4
    assert apply_resource_modifiers(effects, "stone", 10) == 20
    assert apply_resource_modifiers(effects, "materials", 10) == 20
    assert apply_resource_modifiers(effects, "water", 8) == 10
    assert apply_resource_modifiers(effects, "gold", 10) == 10

    boosted = aggregate_effects([tech("a", foraging_efficiency_bonus=50), tech("b", efficiency_multiplier=2.0)])
    assert apply_resource_modifiers(boosted, "food", 10) == 30
    assert apply_resource_modifiers(boosted, "gold", 10) == 20


def test_construction_duration_has_floor_of_one():
    effects = aggregate_effects([tech("a", building_speed_bonus=100)])

    assert apply_construction_modifiers(effects, 10) == 5
    assert apply_construction_modifiers(effects, 1) == 1
    assert apply_construction_modifiers(CumulativeEffects(), 7.9) == 7
    assert apply_construction_modifiers(CumulativeEffects(), 0) == 1


def test_combat_modifiers_scale_and_cap_escape_chance():
    effects = aggregate_effects([tech("a", attack_damage_bonus=50, defense_bonus=25, escape_chance_bonus=15)])

    modified = apply_combat_modifiers(effects, {"attack_damage": 10, "defense": 8, "escape_chance": 90})

    assert modified == {"attack_damage": 15, "defense": 10, "escape_chance": 95}
    assert apply_combat_modifiers(effects, {"escape_chance": 20})["escape_chance"] == 35


def test_colony_level_modifiers():
    effects = aggregate_effects([tech("a", research_speed_bonus=50, colony_morale_bonus=25)])

    assert research_speed_modifier(effects) == pytest.approx(1.5)
    assert colony_happiness_modifier(effects) == pytest.approx(1.25)
    assert research_speed_modifier(CumulativeEffects()) == 1


def test_effect_cache_expires_after_ttl():
    clock = FakeClock()
    cache = EffectCache(ttl_seconds=30, clock=clock)
    record = CumulativeEffects(health_bonus=5)

    assert cache.get() is None
    cache.store(record)
    clock.now = 30
    assert cache.get() is record
    clock.now = 30.5
    assert cache.get() is None

    cache.store(record)
    cache.invalidate()
    assert cache.get() is None
    assert cache.timestamp is None


def test_summarize_upgrades_counts_categories_and_bonuses():
    nodes = [
        tech("a", "physical", carrying_capacity_bonus=25, unlock_x=True),
        tech("b", "physical", carrying_capacity_bonus=10),
        tech("c", "combat", defense_bonus=5),
    ]

    stats = summarize_upgrades(nodes, aggregate_effects(nodes))

    assert stats.total_upgrades == 3
    assert stats.categories == {"physical": 2, "combat": 1}
    assert stats.total_bonuses == {"carrying_capacity_bonus": 35, "defense_bonus": 5}
    assert stats.special_abilities == 1


def test_cumulative_record_multipliers_are_read_only():
    source = {"efficiency_multiplier": 1.2}
    effects = CumulativeEffects(multipliers=source)
    source["efficiency_multiplier"] = 5.0

    with pytest.raises(TypeError):
        effects.multipliers["efficiency_multiplier"] = 99.0
    assert effects.multiplier("efficiency_multiplier") == pytest.approx(1.2)
    assert effects.to_dict()["multipliers"] == {"efficiency_multiplier": 1.2}
