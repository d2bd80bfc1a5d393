"""Cross-build planning: group targets by declared version and order the steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple, Union

from crossbuild.domain.build.structure import BuildStructure
from crossbuild.domain.build.value_objects import ProjectRef

from .aggregates import resolve_aggregates
from .catalog import versions_for
from .commands import (
    BATCH_COMMAND,
    RESTORE_SESSION_COMMAND,
    NamedVersion,
    SwitchArgs,
    VersionSpec,
    parse_project_qualified,
)


class PlanStepKind(str, Enum):
    SWITCH = "switch"
    RUN = "run"
    BATCH_RUN = "batch_run"
    RESTORE = "restore"


def qualify(project: ProjectRef, command: str) -> str:
    return f"{project.project}/{command}"


@dataclass(frozen=True)
class RunStep:
    project: ProjectRef
    command: str
    kind: PlanStepKind = field(default=PlanStepKind.RUN, init=False)

    def render(self) -> str:
        return qualify(self.project, self.command)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "project": str(self.project), "command": self.command}


@dataclass(frozen=True)
class SwitchStep:
    """Switch the active version, then run ``then`` on its project when attached."""

    version: VersionSpec
    verbose: bool = False
    then: RunStep | None = None
    kind: PlanStepKind = field(default=PlanStepKind.SWITCH, init=False)

    @property
    def command(self) -> str | None:
        return self.then.render() if self.then is not None else None

    def render(self) -> str:
        return SwitchArgs(self.version, self.verbose, self.command).render()

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind.value, "version": self.version.render(), "verbose": self.verbose}
        if self.then is not None:
            payload["project"] = str(self.then.project)
            payload["command"] = self.then.command
        return payload


@dataclass(frozen=True)
class BatchRunStep:
    """One request to run ``command`` on several projects; the engine may run them concurrently."""

    projects: Tuple[ProjectRef, ...]
    command: str
    kind: PlanStepKind = field(default=PlanStepKind.BATCH_RUN, init=False)

    def __post_init__(self) -> None:
        if not self.projects:
            raise ValueError("batch run needs at least one project")

    def render(self) -> str:
        return " ".join([BATCH_COMMAND, *(qualify(project, self.command) for project in self.projects)])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "projects": [str(project) for project in self.projects],
            "command": self.command,
        }


@dataclass(frozen=True)
class RestoreStep:
    kind: PlanStepKind = field(default=PlanStepKind.RESTORE, init=False)

    def render(self) -> str:
        return RESTORE_SESSION_COMMAND

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value}


PlanStep = Union[SwitchStep, RunStep, BatchRunStep, RestoreStep]


@dataclass
class CrossPlan:
    command: str
    targets: List[ProjectRef]
    groups: Dict[str, List[ProjectRef]]
    steps: List[PlanStep]

    @property
    def is_empty(self) -> bool:
        return not self.steps

    def summary(self) -> Dict[str, int]:
        return {
            "targets": len(self.targets),
            "versions": len(self.groups),
            "steps": len(self.steps),
        }

    def render(self) -> List[str]:
        return [step.render() for step in self.steps]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": self.command,
            "summary": self.summary(),
            "groups": {version: [str(ref) for ref in refs] for version, refs in self.groups.items()},
            "steps": [step.to_dict() for step in self.steps],
        }


def group_by_version(structure: BuildStructure, targets: List[ProjectRef]) -> Dict[str, List[ProjectRef]]:
    """Group targets by declared version, keeping first-encountered version order."""

    groups: Dict[str, List[ProjectRef]] = {}
    for ref in targets:
        for version in versions_for(structure, ref):
            members = groups.setdefault(version, [])
            if ref not in members:
                members.append(ref)
    return groups


def build_cross_plan(structure: BuildStructure, current: ProjectRef, command: str, verbose: bool = False) -> CrossPlan:
    qualified = parse_project_qualified(command)
    if qualified is not None:
        project_id, remainder = qualified
        targets = structure.definition.refs_named(project_id)
    else:
        targets = resolve_aggregates(structure, current)
        remainder = command

    groups = group_by_version(structure, targets)
    steps: List[PlanStep] = []
    for version, projects in groups.items():
        spec = NamedVersion(version)
        if len(projects) == 1:
            steps.append(SwitchStep(spec, verbose, then=RunStep(projects[0], remainder)))
        elif any(char.isspace() for char in remainder):
            # the batch form only carries single-token commands
            steps.append(SwitchStep(spec, verbose))
            steps.extend(RunStep(project, remainder) for project in projects)
        else:
            steps.append(SwitchStep(spec, verbose))
            steps.append(BatchRunStep(tuple(projects), remainder))
    if steps:
        steps.append(RestoreStep())
    return CrossPlan(command=command, targets=targets, groups=groups, steps=steps)


__all__ = [
    "BatchRunStep",
    "CrossPlan",
    "PlanStep",
    "PlanStepKind",
    "RestoreStep",
    "RunStep",
    "SwitchStep",
    "build_cross_plan",
    "group_by_version",
    "qualify",
]
