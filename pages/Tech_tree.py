from __future__ import annotations

import streamlit as st

from colony_evolution_engine.streamlit_app.config import INPUT_DIR
from colony_evolution_engine.streamlit_app.data import get_explorer, load_catalog, validate_catalog
from colony_evolution_engine.streamlit_app.state import ensure_state
from colony_evolution_engine.streamlit_app.storage import hydrate_engine_from_storage
from colony_evolution_engine.streamlit_app.ui.tree_page import (
    render_colony_controls,
    render_effects,
    render_header,
    render_technology_list,
    render_tree,
    render_validation,
    render_visuals,
)


st.set_page_config(
    page_title="Colony Evolution Tree",
    layout="wide",
)


def main():
    if "reload_token" not in st.session_state:
        st.session_state.reload_token = 0

    load_report = load_catalog(st.session_state.reload_token)
    if load_report.errors:
        st.error(f"Encountered errors while loading technologies from {INPUT_DIR}:")
        for error in load_report.errors:
            st.write(f"- {error}")
        st.stop()

    catalog = load_report.catalog
    engine = ensure_state(catalog)
    if hydrate_engine_from_storage(engine):
        st.toast(f"Restored {len(engine.active_upgrades)} upgrade(s) for {engine.colony_id}")

    render_header(engine)
    render_validation(validate_catalog(catalog))

    cols = st.columns([1, 1.5], gap="large")
    with cols[0]:
        render_colony_controls(engine)
        if st.button("Reload technologies", type="secondary", width="stretch"):
            st.session_state.reload_token += 1
            st.cache_resource.clear()
            st.rerun()
        render_technology_list(engine)

    with cols[1]:
        render_tree(get_explorer(catalog), engine)
        st.divider()
        render_effects(engine)
        st.divider()
        render_visuals(engine)


if __name__ == "__main__":
    main()
