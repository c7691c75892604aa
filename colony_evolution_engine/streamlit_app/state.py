from __future__ import annotations

import streamlit as st

from colony_evolution_engine import EvolutionEngine, TechnologyCatalog, UnlockStatus, VisualUpdate

from .config import DEFAULT_COLONY_ID, STARTING_POINTS, VISUAL_LOG_LIMIT
from .storage import persist_engine_storage


def _record_visual_update(update: VisualUpdate) -> None:
    log = st.session_state.setdefault("visual_log", [])
    log.insert(0, update)
    del log[VISUAL_LOG_LIMIT:]


def ensure_state(catalog: TechnologyCatalog) -> EvolutionEngine:
    if "reload_token" not in st.session_state:
        st.session_state.reload_token = 0

    if "points_earned" not in st.session_state:
        st.session_state.points_earned = STARTING_POINTS

    if "search_query" not in st.session_state:
        st.session_state.search_query = ""

    engine_state = st.session_state.get("engine")
    if engine_state and engine_state.get("token") == st.session_state.reload_token:
        return engine_state["instance"]

    engine = EvolutionEngine(catalog)
    if engine_state:
        # catalog reload: carry the colony over, unknown ids get dropped
        previous: EvolutionEngine = engine_state["instance"]
        engine.initialize(previous.colony_id or DEFAULT_COLONY_ID, previous.unlocked_ids)
    else:
        engine.initialize(DEFAULT_COLONY_ID, [])
    engine.subscribe(_record_visual_update)
    st.session_state.engine = {"instance": engine, "token": st.session_state.reload_token}
    st.session_state.visual_log = []
    return engine


def points_balance(engine: EvolutionEngine) -> int:
    spent = sum(node.cost for node in engine.active_upgrades.values())
    return st.session_state.points_earned - spent


def award_points(amount: int) -> None:
    st.session_state.points_earned += amount


def purchase_upgrade(engine: EvolutionEngine, node_id: str) -> None:
    node = engine.catalog.get(node_id)
    if node is None:
        return
    if engine.classify(node, points_balance(engine)) is not UnlockStatus.AVAILABLE:
        return
    if engine.add_upgrade(node):
        _persist_after_mutation(engine)


def undo_upgrade(engine: EvolutionEngine, node_id: str) -> None:
    if engine.remove_upgrade(node_id):
        _persist_after_mutation(engine)


def switch_colony(engine: EvolutionEngine, colony_id: str) -> None:
    engine.initialize(colony_id, [])
    st.session_state.points_earned = STARTING_POINTS
    st.session_state.visual_log = []
    _persist_after_mutation(engine)


def _persist_after_mutation(engine: EvolutionEngine) -> None:
    st.session_state.engine_storage_dirty = True
    persist_engine_storage(engine)
