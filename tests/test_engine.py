import json
import logging

import pytest

from colony_evolution_engine import (
    EngineNotInitializedError,
    EvolutionEngine,
    TechnologyCatalog,
    TechnologyNode,
    UnlockStatus,
)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def sample_catalog():
    return TechnologyCatalog(
        [
            TechnologyNode(
                identifier="T1",
                name="Enhanced Strength",
                category="physical",
                cost=50,
                effects={"carrying_capacity_bonus": 25, "efficiency_multiplier": 1.5},
                visual_changes={"size_modifier": 2.0, "trail_effect": False, "color_tint": "darker"},
            ),
            TechnologyNode(
                identifier="T2",
                name="Super Strength",
                category="physical",
                cost=75,
                prerequisites=("T1",),
                effects={"carrying_capacity_bonus": 25, "unlock_heavy_lifting": True},
                visual_changes={"size_modifier": 1.5, "trail_effect": True, "color_tint": "golden"},
            ),
            TechnologyNode(
                identifier="T3",
                name="Plain",
                category="efficiency",
                cost=10,
                effects={"research_speed_bonus": 50, "colony_morale_bonus": 10},
            ),
        ]
    )


def make_engine(*unlocked, clock=None):
    engine = EvolutionEngine(sample_catalog(), clock=clock or FakeClock())
    engine.initialize("colony-1", list(unlocked))
    return engine


def test_purchase_flow_updates_classification_and_effects():
    catalog = sample_catalog()
    engine = EvolutionEngine(catalog)
    engine.initialize("colony-1", [])
    t1, t2 = catalog.get("T1"), catalog.get("T2")

    assert engine.classify(t1, 60) is UnlockStatus.AVAILABLE
    assert engine.classify(t2, 60) is UnlockStatus.LOCKED

    assert engine.add_upgrade(t1) is True
    assert engine.classify(t2, 10) is UnlockStatus.UNAFFORDABLE

    engine.add_upgrade(t2)
    assert engine.current_effects().carrying_capacity_bonus == 50
    assert engine.has_special_ability("unlock_heavy_lifting")
    assert engine.apply_ant_modifiers({"carrying_capacity": 10})["carrying_capacity"] == 15


def test_operations_before_initialize_fail_explicitly():
    engine = EvolutionEngine(sample_catalog())

    assert engine.is_initialized is False
    with pytest.raises(EngineNotInitializedError):
        engine.current_effects()
    with pytest.raises(EngineNotInitializedError):
        engine.add_upgrade(sample_catalog().get("T1"))
    with pytest.raises(EngineNotInitializedError):
        engine.export_state()


def test_initialize_skips_unknown_ids_and_logs(caplog):
    engine = EvolutionEngine(sample_catalog())

    with caplog.at_level(logging.WARNING):
        engine.initialize("colony-1", ["T1", "ghost", "T3"])

    assert list(engine.active_upgrades) == ["T1", "T3"]
    assert "ghost" in caplog.text


def test_initialize_discards_previous_colony():
    engine = make_engine("T1", "T2")

    engine.initialize("colony-2", ["T3"])

    assert engine.colony_id == "colony-2"
    assert list(engine.active_upgrades) == ["T3"]
    assert engine.current_effects().carrying_capacity_bonus == 0
    assert engine.active_visual_effects() == {}


def test_add_upgrade_ignores_nodes_outside_catalog():
    engine = make_engine()
    stray = TechnologyNode(identifier="stray", name="Stray", category="combat", effects={"defense_bonus": 10})

    assert engine.add_upgrade(stray) is False
    assert engine.current_effects().defense_bonus == 0


def test_mutation_invalidates_cache_inside_ttl():
    clock = FakeClock()
    engine = make_engine(clock=clock)
    before = engine.current_effects()

    clock.now = 5
    assert engine.current_effects() is before
    engine.add_upgrade(engine.catalog.get("T1"))

    assert engine.current_effects().carrying_capacity_bonus == 25


def test_expired_cache_is_recomputed():
    clock = FakeClock()
    engine = make_engine("T1", clock=clock)
    first = engine.current_effects()

    clock.now = 31
    second = engine.current_effects()

    assert second is not first
    assert second == first
    assert engine.last_cache_timestamp == 31


def test_remove_upgrade_twice_is_same_as_once():
    engine = make_engine("T1", "T3")

    assert engine.remove_upgrade("T1") is True
    snapshot = (dict(engine.active_upgrades), engine.current_effects(), engine.active_visual_effects())
    assert engine.remove_upgrade("T1") is False

    assert (dict(engine.active_upgrades), engine.current_effects(), engine.active_visual_effects()) == snapshot
    assert engine.current_effects().carrying_capacity_bonus == 0


def test_modifier_delegates_use_current_effects():
    engine = make_engine("T1", "T3")

    assert engine.research_speed_modifier() == pytest.approx(1.5)
    assert engine.colony_happiness_modifier() == pytest.approx(1.1)
    assert engine.apply_resource_modifiers("food", 10) == 15
    assert engine.apply_construction_modifiers(10) == 10
    assert engine.apply_combat_modifiers({"defense": 4}) == {"defense": 4}
    stats = engine.upgrade_stats()
    assert stats.total_upgrades == 2
    assert stats.categories == {"physical": 1, "efficiency": 1}


def test_visual_effects_combine_by_value_type():
    engine = make_engine("T1", "T2")

    assert engine.active_visual_effects() == {
        "size_modifier": pytest.approx(3.0),
        "trail_effect": True,
        "color_tint": "golden",
    }

    engine.remove_upgrade("T2")
    assert engine.active_visual_effects() == {
        "size_modifier": pytest.approx(2.0),
        "trail_effect": False,
        "color_tint": "darker",
    }


def test_subscribers_receive_updates_until_unsubscribed():
    engine = make_engine()
    updates = []
    unsubscribe = engine.subscribe(updates.append)

    engine.add_upgrade(engine.catalog.get("T1"))
    engine.remove_upgrade("T1")
    engine.remove_upgrade("T1")
    unsubscribe()
    engine.add_upgrade(engine.catalog.get("T3"))

    assert [update.identifier for update in updates] == ["T1", "T1"]
    added, removed = updates
    assert added.visual_changes == {"size_modifier": 2.0, "trail_effect": False, "color_tint": "darker"}
    assert added.composed["color_tint"] == "darker"
    assert removed.visual_changes is None
    assert removed.composed == {}


def test_export_import_round_trip():
    engine = make_engine("T1", "T2")
    payload = json.loads(json.dumps(engine.export_state()))

    restored = EvolutionEngine(sample_catalog())
    restored.import_state(payload)

    assert restored.colony_id == "colony-1"
    assert dict(restored.active_upgrades) == dict(engine.active_upgrades)
    assert restored.current_effects() == engine.current_effects()
    assert restored.active_visual_effects() == engine.active_visual_effects()


def test_import_replaces_state_and_recomputes():
    clock = FakeClock(now=100)
    engine = make_engine("T3", clock=clock)
    other = make_engine("T1")
    payload = other.export_state()
    payload["last_cache_timestamp"] = 1.0

    engine.import_state(payload)

    assert list(engine.active_upgrades) == ["T1"]
    assert engine.last_cache_timestamp == 100
    assert engine.current_effects().research_speed_bonus == 0


def test_import_rejects_malformed_payload_without_touching_state():
    engine = make_engine("T1")

    with pytest.raises(ValueError):
        engine.import_state({"version": 99, "active_upgrades": []})
    with pytest.raises(ValueError):
        engine.import_state({"version": 1, "active_upgrades": [["T1"]]})

    assert list(engine.active_upgrades) == ["T1"]


def test_cached_effects_cannot_be_changed_by_callers():
    engine = make_engine("T1")

    with pytest.raises(TypeError):
        engine.current_effects().multipliers["efficiency_multiplier"] = 99.0

    assert engine.current_effects().multiplier("efficiency_multiplier") == pytest.approx(1.5)


def test_round_trip_keeps_empty_names():
    catalog = TechnologyCatalog([TechnologyNode(identifier="T9", name="", category="physical", cost=5)])
    engine = EvolutionEngine(catalog)
    engine.initialize("colony-9", ["T9"])

    restored = EvolutionEngine(catalog)
    restored.import_state(json.loads(json.dumps(engine.export_state())))

    assert restored.active_upgrades["T9"].name == ""
    assert dict(restored.active_upgrades) == dict(engine.active_upgrades)


def test_import_rejects_entries_keyed_under_another_id():
    engine = make_engine("T1")
    payload = engine.export_state()
    payload["active_upgrades"][0][0] = "T2"

    with pytest.raises(ValueError):
        engine.import_state(payload)

    assert list(engine.active_upgrades) == ["T1"]
