"""Helpers for serializing engine state to plain JSON-compatible payloads."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .catalog import TechnologyNode

STORAGE_KEY = "colony-evolution-state"
STORAGE_VERSION = 1


@dataclass(frozen=True, slots=True)
class DecodedEngineState:
    colony_id: str | None
    active_upgrades: tuple[tuple[str, TechnologyNode], ...]
    last_cache_timestamp: float | None


def encode_engine_state(
    colony_id: str | None,
    active_upgrades: Iterable[tuple[str, TechnologyNode]],
    last_cache_timestamp: float | None,
) -> dict:
    """Translate the active upgrade set into a versioned storage payload."""

    return {
        "version": STORAGE_VERSION,
        "colony_id": colony_id,
        "active_upgrades": [[identifier, node.to_dict()] for identifier, node in active_upgrades],
        "last_cache_timestamp": last_cache_timestamp,
    }


def decode_engine_state(payload: object) -> DecodedEngineState | None:
    """Rebuild engine state from a storage payload.

    Invalid shapes or versions return ``None`` to signal the caller should
    ignore the stored value.
    """

    if not isinstance(payload, Mapping):
        return None

    if payload.get("version") != STORAGE_VERSION:
        return None

    entries = payload.get("active_upgrades")
    if not isinstance(entries, list):
        return None

    colony_id = payload.get("colony_id")
    if colony_id is not None and not isinstance(colony_id, str):
        return None

    timestamp = payload.get("last_cache_timestamp")
    if timestamp is not None and not isinstance(timestamp, (int, float)):
        return None

    upgrades: list[tuple[str, TechnologyNode]] = []
    for entry in entries:
        decoded = _decode_entry(entry)
        if decoded is None:
            return None
        upgrades.append(decoded)

    return DecodedEngineState(
        colony_id=colony_id,
        active_upgrades=tuple(upgrades),
        last_cache_timestamp=float(timestamp) if timestamp is not None else None,
    )


def _decode_entry(entry: Any) -> tuple[str, TechnologyNode] | None:
    if not isinstance(entry, (list, tuple)) or len(entry) != 2:
        return None
    identifier, record = entry
    if not isinstance(identifier, str) or not isinstance(record, Mapping):
        return None
    try:
        node = TechnologyNode.from_dict(record)
    except ValueError:
        return None
    if node.identifier != identifier:
        return None
    return identifier, node


def comparable_engine_state(payload: Mapping[str, Any]) -> str:
    """Canonical JSON for change detection, ignoring the cache timestamp."""

    return json.dumps({**payload, "last_cache_timestamp": None}, sort_keys=True)
