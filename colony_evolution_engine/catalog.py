from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "technologies.json"


class TechnologyCategory(str, Enum):
    PHYSICAL = "physical"
    SPECIALIZED = "specialized"
    ENVIRONMENTAL = "environmental"
    COMBAT = "combat"
    EFFICIENCY = "efficiency"


@dataclass(frozen=True)
class TechnologyNode:
    identifier: str
    name: str
    category: str
    prerequisites: tuple[str, ...] = ()
    cost: int = 0
    effects: Mapping[str, Any] = field(default_factory=dict)
    visual_changes: Mapping[str, Any] = field(default_factory=dict)
    description: str = ""
    required_buildings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "effects", MappingProxyType(dict(self.effects)))
        object.__setattr__(self, "visual_changes", MappingProxyType(dict(self.visual_changes)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.identifier,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "cost": self.cost,
            "prerequisites": list(self.prerequisites),
            "required_buildings": list(self.required_buildings),
            "effects": dict(self.effects),
            "visual_changes": dict(self.visual_changes),
        }

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "TechnologyNode":
        """Build a node from a catalog or export record.

        Accepts the legacy data aliases (``prerequisite_techs``,
        ``required_research_points``). Raises ``ValueError`` when the record
        has no identifier or an invalid cost.
        """

        identifier = record.get("id") or record.get("identifier")
        if not identifier:
            raise ValueError("Technology record is missing an identifier")

        raw_cost = record.get("cost", record.get("required_research_points", 0))
        try:
            cost = int(raw_cost or 0)
        except (TypeError, ValueError):
            raise ValueError(f"Technology {identifier} has a non-integer cost: {raw_cost!r}")
        if cost < 0:
            raise ValueError(f"Technology {identifier} has a negative cost: {cost}")

        prereqs_raw = record.get("prerequisites")
        if prereqs_raw is None:
            prereqs_raw = record.get("prerequisite_techs")

        name = record.get("name")
        if name is None:
            name = identifier

        return cls(
            identifier=str(identifier),
            name=str(name),
            category=str(record.get("category") or ""),
            prerequisites=_normalize_ids(prereqs_raw),
            cost=cost,
            effects=_normalize_mapping(record.get("effects")),
            visual_changes=_normalize_mapping(record.get("visual_changes")),
            description=str(record.get("description") or ""),
            required_buildings=_normalize_ids(record.get("required_buildings")),
        )


def _normalize_ids(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        return tuple(item.strip() for item in raw.split(",") if item.strip())
    if isinstance(raw, Iterable):
        return tuple(str(item) for item in raw)
    return ()


def _normalize_mapping(raw: Any) -> dict[str, Any]:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        raw = json.loads(raw)
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected a mapping, got {type(raw).__name__}")
    return dict(raw)


class TechnologyCatalog:
    """Read-only collection of technology definitions keyed by id."""

    def __init__(self, nodes: Iterable[TechnologyNode] = ()):
        entries: dict[str, TechnologyNode] = {}
        for node in nodes:
            entries.setdefault(node.identifier, node)
        self._nodes = MappingProxyType(entries)

    @classmethod
    def default(cls) -> "TechnologyCatalog":
        records = json.loads(DEFAULT_CATALOG_PATH.read_text(encoding="utf-8"))
        return cls(TechnologyNode.from_dict(record) for record in records)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._nodes

    def __iter__(self) -> Iterator[TechnologyNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._nodes)

    def get(self, identifier: str) -> TechnologyNode | None:
        return self._nodes.get(identifier)

    def nodes(self) -> list[TechnologyNode]:
        return list(self._nodes.values())

    def categories(self) -> list[str]:
        return list(dict.fromkeys(node.category for node in self))

    def by_category(self, category: str) -> list[TechnologyNode]:
        return [node for node in self if node.category == category]

    def structured_tree(self) -> dict[str, list[TechnologyNode]]:
        known = [category.value for category in TechnologyCategory]
        extra = [category for category in self.categories() if category not in known]
        return {category: self.by_category(category) for category in known + extra}

    def available(self, unlocked_ids: Iterable[str]) -> list[TechnologyNode]:
        unlocked = set(unlocked_ids)
        return [
            node
            for node in self
            if node.identifier not in unlocked
            and all(prereq in unlocked for prereq in node.prerequisites)
        ]


@dataclass
class LoadReport:
    catalog: TechnologyCatalog
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class CatalogLoader:
    """Load technology definitions from structured files."""

    SUPPORTED_EXTENSIONS = {".json", ".csv"}

    def __init__(self, input_dir: Path):
        self.input_dir = Path(input_dir)

    def load(self) -> LoadReport:
        nodes: dict[str, TechnologyNode] = {}
        warnings: list[str] = []
        errors: list[str] = []

        for path in sorted(self.input_dir.glob("*")):
            if path.suffix.lower() not in self.SUPPORTED_EXTENSIONS:
                message = f"Ignoring unsupported file: {path.name}"
                warnings.append(message)
                logger.warning(message)
                continue

            try:
                records = list(self._parse_file(path))
            except (json.JSONDecodeError, UnicodeDecodeError, csv.Error) as exc:
                message = f"Failed to parse {path.name}: {exc}"
                errors.append(message)
                logger.error(message)
                continue

            for record in records:
                if not isinstance(record, Mapping):
                    message = f"{path.name}: expected an object per technology, got {type(record).__name__}"
                    errors.append(message)
                    logger.error(message)
                    continue
                try:
                    node = TechnologyNode.from_dict(record)
                except (ValueError, json.JSONDecodeError) as exc:
                    message = f"{path.name}: {exc}"
                    errors.append(message)
                    logger.error(message)
                    continue

                if node.identifier in nodes:
                    message = f"Duplicate technology id {node.identifier} in {path.name}; keeping first occurrence"
                    warnings.append(message)
                    logger.warning(message)
                    continue
                nodes[node.identifier] = node

        return LoadReport(catalog=TechnologyCatalog(nodes.values()), warnings=warnings, errors=errors)

    def _parse_file(self, path: Path) -> Iterable[dict[str, Any]]:
        if path.suffix.lower() == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                yield data
            else:
                yield from data
            return

        with path.open(newline="", encoding="utf-8") as handle:
            reader = csv.DictReader(handle)
            for row in reader:
                yield {k: v for k, v in row.items() if k is not None}
