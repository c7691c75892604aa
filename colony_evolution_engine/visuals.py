from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from .catalog import TechnologyNode


@dataclass(frozen=True)
class VisualUpdate:
    """Payload sent to subscribers when an upgrade is added or removed.

    ``visual_changes`` is ``None`` when the upgrade was removed.
    """

    identifier: str
    visual_changes: Mapping[str, Any] | None
    composed: Mapping[str, Any]


class VisualEffectComposer:
    """Track cosmetic deltas of active upgrades and combine them for display."""

    def __init__(self) -> None:
        self._contributions: Dict[str, dict[str, Any]] = {}

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._contributions

    def apply(self, node: TechnologyNode) -> dict[str, Any]:
        contribution = self._contributions.get(node.identifier, {})
        contribution.update(node.visual_changes)
        self._contributions[node.identifier] = contribution
        return dict(contribution)

    def remove(self, identifier: str) -> None:
        self._contributions.pop(identifier, None)

    def clear(self) -> None:
        self._contributions.clear()

    def compose_active(self) -> dict[str, Any]:
        combined: Dict[str, Any] = {}

        for contribution in self._contributions.values():
            for key, value in contribution.items():
                if isinstance(value, bool):
                    combined[key] = bool(combined.get(key, False)) or value
                elif isinstance(value, (int, float)):
                    previous = combined.get(key, 1)
                    if isinstance(previous, bool) or not isinstance(previous, (int, float)):
                        previous = 1
                    combined[key] = previous * value
                else:
                    combined[key] = value

        return combined
