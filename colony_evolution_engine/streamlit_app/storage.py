from __future__ import annotations

import json
import logging

import streamlit as st
from streamlit_local_storage import LocalStorage

from colony_evolution_engine import EvolutionEngine, decode_engine_state
from colony_evolution_engine.state_storage import STORAGE_KEY, comparable_engine_state

logger = logging.getLogger(__name__)


def _get_local_storage() -> LocalStorage:
    manager = st.session_state.get("local_storage_manager")
    if manager is None:
        manager = LocalStorage()
        st.session_state.local_storage_manager = manager
    return manager


def _read_engine_storage() -> tuple[dict | None, str | None]:
    st.session_state.setdefault("engine_storage_attempts", 0)

    # Each read spawns a component iframe; stop after a few tries.
    if st.session_state.engine_storage_attempts > 3:
        return None, None

    st.session_state.engine_storage_attempts += 1
    storage = _get_local_storage()
    try:
        raw = storage.getItem(STORAGE_KEY)
    except Exception as exc:  # pragma: no cover - component failures surface as generic errors
        return None, str(exc)

    if raw is None:
        return None, None
    if isinstance(raw, dict):
        return raw, None
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            return None, str(exc)
        return parsed, None
    return None, f"Unexpected local storage payload type: {type(raw).__name__}"


def _write_engine_storage(payload: dict) -> None:
    payload_json = json.dumps(payload)
    st.components.v1.html(
        f"""
        <script>
        (() => {{
          try {{
            const payload = {payload_json};
            window.localStorage.setItem("{STORAGE_KEY}", JSON.stringify(payload));
          }} catch (err) {{
            console.warn("Failed to persist evolution state to localStorage", err);
          }}
        }})();
        </script>
        """,
        height=0,
        width=0,
    )


def hydrate_engine_from_storage(engine: EvolutionEngine) -> bool:
    if st.session_state.get("engine_storage_hydrated"):
        return False

    payload, error = _read_engine_storage()
    if error:
        st.session_state.engine_storage_read_error = error
        logger.warning("Could not read stored evolution state: %s", error)
    st.session_state.engine_storage_hydrated = True
    if payload is None or decode_engine_state(payload) is None:
        return False

    engine.import_state(payload)
    st.session_state.engine_storage_last = comparable_engine_state(engine.export_state())
    st.session_state.engine_storage_dirty = False
    return True


def persist_engine_storage(engine: EvolutionEngine) -> None:
    if not st.session_state.get("engine_storage_dirty", False):
        return None

    payload = engine.export_state()
    comparable = comparable_engine_state(payload)
    st.session_state.engine_storage_dirty = False
    if st.session_state.get("engine_storage_last") == comparable:
        return None

    st.session_state.engine_storage_last = comparable
    _write_engine_storage(payload)
    return None
