from __future__ import annotations

import altair as alt
import pandas as pd
import streamlit as st
from st_keyup import st_keyup

from colony_evolution_engine import (
    ADDITIVE_FIELDS,
    EvolutionEngine,
    TechTreeExplorer,
    UnlockStatus,
    missing_prerequisites,
    total_unlock_cost,
)

from ..config import AWARD_STEP, STATUS_ICONS
from ..graphviz import build_graphviz
from ..state import award_points, points_balance, purchase_upgrade, switch_colony, undo_upgrade


def render_header(engine: EvolutionEngine) -> None:
    st.title("🐜 Colony Evolution Tree")
    st.caption("Spend evolution points on technologies and watch the colony adapt.")

    cols = st.columns(3)
    cols[0].metric("Colony", engine.colony_id or "-")
    cols[1].metric("Evolution points", points_balance(engine))
    cols[2].metric("Active upgrades", len(engine.active_upgrades))


def render_colony_controls(engine: EvolutionEngine) -> None:
    with st.container(border=True):
        st.markdown("##### COLONY")
        colony_id = st.text_input("Colony id", value=engine.colony_id or "", key="colony_id_input")
        cols = st.columns(2)
        with cols[0]:
            if st.button("Switch colony", type="secondary", width="stretch") and colony_id:
                switch_colony(engine, colony_id)
                st.rerun()
        with cols[1]:
            if st.button(f"Award {AWARD_STEP} points", type="secondary", width="stretch"):
                award_points(AWARD_STEP)
                st.rerun()


def render_tree(explorer: TechTreeExplorer, engine: EvolutionEngine) -> None:
    st.subheader("Technology tree")
    view = explorer.build_view(unlocked=engine.unlocked_ids, points_balance=points_balance(engine))
    st.graphviz_chart(build_graphviz(view), use_container_width=True)


def render_technology_list(engine: EvolutionEngine) -> None:
    st.subheader("Technologies")
    query = st_keyup(
        "Search technologies...",
        value=st.session_state.search_query,
        debounce=300,
        key="technology_search",
    )
    st.session_state.search_query = query or ""
    needle = st.session_state.search_query.strip().casefold()

    balance = points_balance(engine)
    unlocked = engine.unlocked_ids

    for node in engine.catalog:
        if needle and needle not in node.name.casefold():
            continue
        status = engine.classify(node, balance)
        with st.container(border=True):
            cols = st.columns([3, 1])
            with cols[0]:
                st.markdown(f"{STATUS_ICONS[status]} **{node.name}** · {node.category} · {node.cost} pts")
                if node.description:
                    st.caption(node.description)
                if status is UnlockStatus.LOCKED:
                    missing = ", ".join(missing_prerequisites(node, unlocked))
                    total = total_unlock_cost(engine.catalog, node.identifier, unlocked)
                    st.caption(f"Requires {missing} (total path cost {total} pts)")
            with cols[1]:
                if status is UnlockStatus.UNLOCKED:
                    if st.button("Undo", key=f"undo-{node.identifier}", width="stretch"):
                        undo_upgrade(engine, node.identifier)
                        st.rerun()
                else:
                    if st.button(
                        "Evolve",
                        key=f"buy-{node.identifier}",
                        disabled=status is not UnlockStatus.AVAILABLE,
                        width="stretch",
                    ):
                        purchase_upgrade(engine, node.identifier)
                        st.rerun()


def render_effects(engine: EvolutionEngine) -> None:
    st.subheader("Cumulative effects")
    effects = engine.current_effects()

    rows = [
        {"effect": key, "bonus": getattr(effects, key)}
        for key in ADDITIVE_FIELDS
        if getattr(effects, key)
    ]
    if rows:
        df = pd.DataFrame(rows)
        chart = (
            alt.Chart(df)
            .mark_bar()
            .encode(
                x=alt.X("bonus:Q", title="Bonus (%)"),
                y=alt.Y("effect:N", sort="-x", title=None),
                tooltip=["effect", "bonus"],
            )
            .properties(height=max(120, 28 * len(rows)))
        )
        st.altair_chart(chart, use_container_width=True)
    else:
        st.caption("No active bonuses yet.")

    if effects.multipliers:
        st.dataframe(
            pd.DataFrame(
                [{"multiplier": key, "factor": value} for key, value in effects.multipliers.items()]
            ),
            hide_index=True,
        )

    if effects.special_abilities:
        st.markdown("**Special abilities**: " + ", ".join(effects.special_abilities))

    cols = st.columns(2)
    cols[0].metric("Research speed", f"x{engine.research_speed_modifier():.2f}")
    cols[1].metric("Colony happiness", f"x{engine.colony_happiness_modifier():.2f}")


def render_visuals(engine: EvolutionEngine) -> None:
    st.subheader("Appearance")
    composed = engine.active_visual_effects()
    if composed:
        st.json(composed)
    else:
        st.caption("No cosmetic changes active.")

    log = st.session_state.get("visual_log", [])
    if log:
        st.markdown("**Recent changes**")
        for update in log:
            verb = "removed" if update.visual_changes is None else "applied"
            st.write(f"- {update.identifier} {verb}")


def render_validation(result) -> None:
    if not result.has_errors:
        return
    with st.container(border=True):
        st.warning("The technology catalog has inconsistencies; affected nodes use fallback tiers.")
        for issue in result.errors:
            st.write(f"**{issue.message}**: {', '.join(issue.nodes)}")
