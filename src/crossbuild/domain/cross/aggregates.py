"""Transitive closure over declared aggregate links."""

from __future__ import annotations

from typing import List, Set

from crossbuild.domain.build.structure import BuildStructure
from crossbuild.domain.build.value_objects import ProjectRef


def resolve_aggregates(structure: BuildStructure, start: ProjectRef) -> List[ProjectRef]:
    """Return ``start`` followed by every project it aggregates, each exactly once.

    The walk is depth-first in declaration order. A link to a project the
    graph does not know is kept as a leaf.
    """

    ordered: List[ProjectRef] = []
    seen: Set[ProjectRef] = set()
    stack: List[ProjectRef] = [start]
    while stack:
        ref = stack.pop()
        if ref in seen:
            continue
        seen.add(ref)
        ordered.append(ref)
        project = structure.project(ref)
        if project is None:
            continue
        stack.extend(reversed(project.aggregate))
    return ordered


__all__ = ["resolve_aggregates"]
