"""Declared toolchain versions per project."""

from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from crossbuild.domain.build.structure import BuildStructure
from crossbuild.domain.build.value_objects import CROSS_VERSIONS, TOOLCHAIN_VERSION, ProjectRef


def _as_versions(raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(item) for item in raw if str(item).strip()]
    text = str(raw).strip()
    return [text] if text else []


def versions_for(structure: BuildStructure, project: ProjectRef) -> List[str]:
    """Return the project's cross versions, else its pinned version, else nothing."""

    declared = structure.get(project, CROSS_VERSIONS)
    if declared is not None:
        return _as_versions(declared)
    return _as_versions(structure.get(project, TOOLCHAIN_VERSION))


def catalog(structure: BuildStructure, projects: Sequence[ProjectRef] | None = None) -> List[Tuple[ProjectRef, List[str]]]:
    refs = structure.all_project_refs if projects is None else list(projects)
    return [(ref, versions_for(structure, ref)) for ref in refs]


__all__ = ["catalog", "versions_for"]
