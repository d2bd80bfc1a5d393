"""Declared build definition loaded from ``crossbuild.yaml``."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from .value_objects import BuildRef, ProjectRef


class BuildDefinitionError(RuntimeError):
    """Raised when the build descriptor is missing or malformed."""


@dataclass(frozen=True)
class ProjectDefinition:
    ref: ProjectRef
    base: Path
    aggregate: Tuple[ProjectRef, ...] = ()
    settings: Mapping[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.ref.project


@dataclass(frozen=True)
class BuildUnit:
    ref: BuildRef
    base: Path
    projects: Mapping[str, ProjectDefinition]
    settings: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BuildDefinition:
    """Read-only declared configuration: units, projects, aggregate links, settings."""

    root: Path
    units: Mapping[str, BuildUnit]
    current: ProjectRef | None = None

    @classmethod
    def load(cls, path: Path) -> "BuildDefinition":
        import yaml  # lazy import to keep import cost low

        if not path.exists():
            raise BuildDefinitionError(f"Build descriptor missing: {path}")
        try:
            data = yaml.safe_load(path.read_text("utf-8")) or {}
        except yaml.YAMLError as exc:
            raise BuildDefinitionError(f"Build descriptor {path} is not valid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise BuildDefinitionError(f"Build descriptor {path} must be a mapping")
        return cls.from_dict(data, path.parent.resolve())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], root: Path) -> "BuildDefinition":
        builds = data.get("builds", {})
        if not isinstance(builds, dict):
            raise BuildDefinitionError("Invalid build descriptor: builds is not a mapping")
        units: Dict[str, BuildUnit] = {}
        for build_id, payload in builds.items():
            units[str(build_id)] = _parse_unit(str(build_id), payload or {}, root)
        definition = cls(root=root, units=units)
        current = _parse_current(data.get("current"), definition)
        return cls(root=root, units=units, current=current)

    def all_projects(self) -> List[ProjectDefinition]:
        return [project for unit in self.units.values() for project in unit.projects.values()]

    def find(self, ref: ProjectRef) -> ProjectDefinition | None:
        unit = self.units.get(ref.build)
        if unit is None:
            return None
        return unit.projects.get(ref.project)

    def refs_named(self, project_id: str) -> List[ProjectRef]:
        return [project.ref for project in self.all_projects() if project.id == project_id]


def _parse_unit(build_id: str, payload: Mapping[str, Any], root: Path) -> BuildUnit:
    if not isinstance(payload, dict):
        raise BuildDefinitionError(f"Build unit {build_id} must be a mapping")
    base = (root / str(payload.get("base", "."))).resolve()
    settings = _parse_settings(f"build unit {build_id}", payload.get("settings"))
    projects_raw = payload.get("projects", {}) or {}
    if not isinstance(projects_raw, dict):
        raise BuildDefinitionError(f"Build unit {build_id} projects must be a mapping")
    projects: Dict[str, ProjectDefinition] = {}
    for project_id, project_payload in projects_raw.items():
        project_payload = project_payload or {}
        if not isinstance(project_payload, dict):
            raise BuildDefinitionError(f"Project {build_id}:{project_id} must be a mapping")
        ref = ProjectRef(build_id, str(project_id))
        projects[ref.project] = ProjectDefinition(
            ref=ref,
            base=(base / str(project_payload.get("base", "."))).resolve(),
            aggregate=tuple(_parse_aggregate(ref, project_payload.get("aggregate"))),
            settings=_parse_settings(f"project {ref}", project_payload.get("settings")),
        )
    return BuildUnit(ref=BuildRef(build_id), base=base, projects=projects, settings=settings)


def _parse_settings(owner: str, raw: Any) -> Dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise BuildDefinitionError(f"Settings of {owner} must be a mapping")
    return {str(key): value for key, value in raw.items()}


def _parse_aggregate(owner: ProjectRef, raw: Any) -> Iterable[ProjectRef]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise BuildDefinitionError(f"Aggregate of project {owner} must be a list")
    refs: List[ProjectRef] = []
    for idx, entry in enumerate(raw):
        if isinstance(entry, str):
            refs.append(ProjectRef(owner.build, entry))
        elif isinstance(entry, dict) and "project" in entry:
            refs.append(ProjectRef(str(entry.get("build", owner.build)), str(entry["project"])))
        else:
            raise BuildDefinitionError(f"Aggregate entry #{idx} of project {owner} must be a project id or mapping")
    return refs


def _parse_current(raw: Any, definition: BuildDefinition) -> ProjectRef | None:
    if raw is None:
        projects = definition.all_projects()
        return projects[0].ref if projects else None
    text = str(raw)
    if ":" in text:
        build_id, project_id = text.split(":", 1)
        ref = ProjectRef(build_id, project_id)
        if definition.find(ref) is None:
            raise BuildDefinitionError(f"Current project {text} is not declared")
        return ref
    candidates = definition.refs_named(text)
    if not candidates:
        raise BuildDefinitionError(f"Current project {text} is not declared")
    return candidates[0]


__all__ = ["BuildDefinition", "BuildDefinitionError", "BuildUnit", "ProjectDefinition"]
