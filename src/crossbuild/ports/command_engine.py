"""Port definition for the external command-execution engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from crossbuild.domain.build import BuildState, ProjectRef


@dataclass(frozen=True)
class CommandOutcome:
    command: str
    project: ProjectRef | None
    exit_code: int
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandEngine(ABC):
    @abstractmethod
    def run(self, state: BuildState, command: str) -> Sequence[CommandOutcome]:
        """Run a plain command (``<project>/<command>`` or aggregate-targeted)."""

    @abstractmethod
    def run_project(self, state: BuildState, project: ProjectRef, command: str) -> Sequence[CommandOutcome]:
        """Run ``command`` on exactly ``project``, without resolving it by name."""

    @abstractmethod
    def run_batch(self, state: BuildState, projects: Sequence[ProjectRef], command: str) -> Sequence[CommandOutcome]:
        """Run ``command`` on each project; the engine chooses how to schedule them."""


__all__ = ["CommandEngine", "CommandOutcome"]
