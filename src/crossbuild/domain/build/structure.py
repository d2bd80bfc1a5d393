"""Evaluated build structure: declared settings with session overrides applied."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from .definition import BuildDefinition, ProjectDefinition
from .value_objects import (
    TOOLCHAIN_BINARY_VERSION,
    TOOLCHAIN_VERSION,
    BuildRef,
    Override,
    ProjectRef,
    Scope,
)
from .versions import binary_version


@dataclass(frozen=True)
class BuildStructure:
    """Query surface over the build graph.

    Resolution order for a project setting: project override, project
    declaration, build-unit override, build-unit declaration.
    """

    definition: BuildDefinition
    data: Mapping[Scope, Mapping[str, Any]]

    @classmethod
    def evaluate(cls, definition: BuildDefinition, overrides: Iterable[Override] = ()) -> "BuildStructure":
        layered: Dict[Scope, Dict[str, Any]] = {}
        for override in overrides:
            layered.setdefault(override.scope, {})[override.key] = override.value

        data: Dict[Scope, Dict[str, Any]] = {}
        for unit in definition.units.values():
            unit_values = {**unit.settings, **layered.get(unit.ref, {})}
            data[unit.ref] = _derive(unit_values)
            for project in unit.projects.values():
                values = {**unit_values, **project.settings, **layered.get(project.ref, {})}
                data[project.ref] = _derive(values)
        return cls(definition=definition, data=data)

    @property
    def root(self) -> Path:
        return self.definition.root

    @property
    def all_project_refs(self) -> List[ProjectRef]:
        return [project.ref for project in self.definition.all_projects()]

    @property
    def units(self) -> List[BuildRef]:
        return [unit.ref for unit in self.definition.units.values()]

    def project(self, ref: ProjectRef) -> ProjectDefinition | None:
        return self.definition.find(ref)

    def get(self, scope: Scope, key: str, default: Any = None) -> Any:
        return self.data.get(scope, {}).get(key, default)

    def settings_for(self, scope: Scope) -> Mapping[str, Any]:
        return dict(self.data.get(scope, {}))

    def base_path(self, ref: ProjectRef) -> Path:
        project = self.project(ref)
        if project is None:
            return self.root
        return project.base


def _derive(values: Dict[str, Any]) -> Dict[str, Any]:
    version = values.get(TOOLCHAIN_VERSION)
    if version:
        values[TOOLCHAIN_BINARY_VERSION] = binary_version(str(version))
    else:
        values.pop(TOOLCHAIN_BINARY_VERSION, None)
    return values


__all__ = ["BuildStructure"]
