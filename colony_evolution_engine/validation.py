from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set

from .catalog import TechnologyCatalog


@dataclass
class ValidationIssue:
    message: str
    nodes: list[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary(self) -> str:
        error_count = len(self.errors)
        warning_count = len(self.warnings)
        return f"{error_count} error(s), {warning_count} warning(s)"


class CatalogValidator:
    """Report malformed prerequisite data without rejecting the catalog."""

    def __init__(self, catalog: TechnologyCatalog):
        self.catalog = catalog

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        self._check_self_references(result)
        self._check_missing_references(result)
        self._check_cycles(result)
        return result

    def _check_self_references(self, result: ValidationResult) -> None:
        for node in self.catalog:
            if node.identifier in node.prerequisites:
                result.errors.append(
                    ValidationIssue(
                        message=f"Technology {node.identifier} references itself as a prerequisite",
                        nodes=[node.identifier],
                    )
                )

    def _check_missing_references(self, result: ValidationResult) -> None:
        missing_map: Dict[str, List[str]] = {}

        for node in self.catalog:
            for prereq in node.prerequisites:
                if prereq not in self.catalog:
                    missing_map.setdefault(prereq, []).append(node.identifier)

        for missing, dependents in missing_map.items():
            result.errors.append(
                ValidationIssue(
                    message=f"Missing prerequisite: {missing}",
                    nodes=dependents,
                )
            )

    def _check_cycles(self, result: ValidationResult) -> None:
        visited: Set[str] = set()
        stack: Set[str] = set()

        def dfs(node_id: str) -> None:
            if node_id in stack:
                result.errors.append(
                    ValidationIssue(
                        message=f"Cycle detected involving {node_id}",
                        nodes=[node_id],
                    )
                )
                return
            if node_id in visited:
                return

            visited.add(node_id)
            stack.add(node_id)

            node = self.catalog.get(node_id)
            if node:
                for prereq in node.prerequisites:
                    # self references are reported separately
                    if prereq in self.catalog and prereq != node_id:
                        dfs(prereq)

            stack.remove(node_id)

        for node_id in self.catalog.ids:
            if node_id not in visited:
                dfs(node_id)
