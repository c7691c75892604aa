from __future__ import annotations

import streamlit as st

from colony_evolution_engine import (
    CatalogLoader,
    CatalogValidator,
    LoadReport,
    TechnologyCatalog,
    TechTreeExplorer,
)

from .config import INPUT_DIR


def _load_catalog(reload_token: int) -> LoadReport:
    if INPUT_DIR.is_dir() and any(INPUT_DIR.iterdir()):
        return CatalogLoader(INPUT_DIR).load()
    return LoadReport(catalog=TechnologyCatalog.default())


@st.cache_resource(show_spinner=False)
def load_catalog(reload_token: int) -> LoadReport:
    return _load_catalog(reload_token)


def validate_catalog(catalog: TechnologyCatalog):
    return CatalogValidator(catalog).validate()


def get_explorer(catalog: TechnologyCatalog) -> TechTreeExplorer:
    reload_token = st.session_state.get("reload_token", 0)
    explorer_state = st.session_state.get("explorer")

    if explorer_state and explorer_state.get("token") == reload_token:
        return explorer_state["instance"]

    explorer = TechTreeExplorer(catalog)
    st.session_state.explorer = {"instance": explorer, "token": reload_token}
    return explorer
