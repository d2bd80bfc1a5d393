"""Registered build commands from the ``commands:`` section of ``crossbuild.yaml``.

A command is a pipeline of ``exec`` steps. Arguments may reference the
project's toolchain with ``{placeholder}`` fields (see :data:`PLACEHOLDERS`).
A command can be limited to some project ids and a step to some binary
versions, so one descriptor serves every entry of a cross run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Tuple

from crossbuild.domain.build import BuildStructure, ProjectRef
from crossbuild.domain.build.value_objects import (
    TOOLCHAIN_BINARY_VERSION,
    TOOLCHAIN_HOME,
    TOOLCHAIN_VERSION,
)

PLACEHOLDERS = (
    "build",
    "project",
    "project_base",
    "toolchain_version",
    "toolchain_binary_version",
    "toolchain_home",
)


class CommandNotFoundError(RuntimeError):
    pass


class CommandRegistryError(ValueError):
    """Raised when the ``commands:`` section is malformed."""


def toolchain_context(structure: BuildStructure, project: ProjectRef) -> Dict[str, str]:
    """Values substituted into step arguments for ``project``; unset settings become empty strings."""

    def text(key: str) -> str:
        value = structure.get(project, key)
        return "" if value is None else str(value)

    return {
        "build": project.build,
        "project": project.project,
        "project_base": str(structure.base_path(project)),
        "toolchain_version": text(TOOLCHAIN_VERSION),
        "toolchain_binary_version": text(TOOLCHAIN_BINARY_VERSION),
        "toolchain_home": text(TOOLCHAIN_HOME),
    }


@dataclass(frozen=True)
class PipelineStep:
    name: str
    exec: Tuple[str, ...]
    binary_versions: FrozenSet[str] = frozenset()

    def applies_to(self, binary_version: str) -> bool:
        return not self.binary_versions or binary_version in self.binary_versions

    def argv(self, context: Mapping[str, str]) -> List[str]:
        return [arg.format_map(context) for arg in self.exec]


@dataclass(frozen=True)
class BuildCommand:
    name: str
    steps: Tuple[PipelineStep, ...]
    projects: FrozenSet[str] = field(default_factory=frozenset)

    def covers(self, project: ProjectRef) -> bool:
        return not self.projects or project.project in self.projects or str(project) in self.projects

    def steps_for(self, binary_version: str) -> List[PipelineStep]:
        return [step for step in self.steps if step.applies_to(binary_version)]


class CommandRegistry:
    def __init__(self, commands: Dict[str, BuildCommand]) -> None:
        self._commands = commands

    @classmethod
    def load_from_file(cls, path: Path) -> "CommandRegistry":
        import yaml  # lazy import to keep import cost low

        if not path.exists():
            raise FileNotFoundError(f"Build descriptor missing: {path}")
        data = yaml.safe_load(path.read_text("utf-8")) or {}
        if not isinstance(data, dict):
            raise CommandRegistryError(f"Build descriptor {path} must be a mapping")
        return cls.from_dict(data.get("commands") or {})

    @classmethod
    def from_dict(cls, raw: Any) -> "CommandRegistry":
        if not isinstance(raw, dict):
            raise CommandRegistryError("Invalid crossbuild.yaml structure: commands is not a mapping")
        return cls({str(name): _parse_command(str(name), payload) for name, payload in raw.items()})

    def get(self, name: str) -> BuildCommand:
        if name not in self._commands:
            known = ", ".join(self.list_commands()) or "none"
            raise CommandNotFoundError(f"Command {name} not registered (known: {known})")
        command = self._commands[name]
        if not command.steps:
            raise CommandRegistryError(f"Command {name} has no steps defined")
        return command

    def list_commands(self) -> Iterable[str]:
        return sorted(self._commands)


def _parse_command(name: str, payload: Any) -> BuildCommand:
    if not isinstance(payload, dict):
        raise CommandRegistryError(f"Command {name} must be a mapping")
    steps_raw = payload.get("steps") or []
    if not isinstance(steps_raw, list):
        raise CommandRegistryError(f"Command {name} steps must be a list")
    steps = tuple(_parse_step(name, idx, step) for idx, step in enumerate(steps_raw))
    projects = _string_set(payload.get("projects"), f"Command {name} projects")
    return BuildCommand(name=name, steps=steps, projects=projects)


def _parse_step(command: str, idx: int, step: Any) -> PipelineStep:
    if not isinstance(step, dict):
        raise CommandRegistryError(f"Command {command} step #{idx} must be a mapping")
    exec_cmd = step.get("exec")
    if not isinstance(exec_cmd, list) or not exec_cmd or not all(isinstance(arg, str) for arg in exec_cmd):
        raise CommandRegistryError(f"Command {command} step #{idx} exec must be a list of strings")
    for arg in exec_cmd:
        try:
            arg.format_map({key: "" for key in PLACEHOLDERS})
        except (KeyError, IndexError, ValueError) as exc:
            raise CommandRegistryError(
                f"Command {command} step #{idx} argument {arg!r} uses an unknown placeholder"
            ) from exc
    return PipelineStep(
        name=str(step.get("name", f"{command}-step{idx}")),
        exec=tuple(exec_cmd),
        binary_versions=_string_set(step.get("binary_versions"), f"Command {command} step #{idx} binary_versions"),
    )


def _string_set(raw: Any, owner: str) -> FrozenSet[str]:
    if raw is None:
        return frozenset()
    if not isinstance(raw, list):
        raise CommandRegistryError(f"{owner} must be a list")
    return frozenset(str(item) for item in raw)


__all__ = [
    "BuildCommand",
    "CommandNotFoundError",
    "CommandRegistry",
    "CommandRegistryError",
    "PLACEHOLDERS",
    "PipelineStep",
    "toolchain_context",
]
