"""Immutable session state threaded between command steps."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Tuple

from .definition import BuildDefinition
from .structure import BuildStructure
from .value_objects import Override, ProjectRef


class SessionNotLoadedError(RuntimeError):
    """Raised when a command needs an active project but none is loaded."""


@dataclass(frozen=True)
class SessionSettings:
    """The active project and the ad hoc overrides appended this session."""

    current: ProjectRef
    raw_append: Tuple[Override, ...] = ()

    def with_raw_append(self, overrides: Iterable[Override]) -> "SessionSettings":
        return replace(self, raw_append=tuple(overrides))


@dataclass(frozen=True)
class Snapshot:
    """Override list captured at the start of a cross run."""

    raw_append: Tuple[Override, ...]


@dataclass(frozen=True)
class BuildState:
    definition: BuildDefinition
    structure: BuildStructure
    session: SessionSettings | None = None
    captured: Snapshot | None = None

    @classmethod
    def load(cls, definition: BuildDefinition) -> "BuildState":
        session = SessionSettings(current=definition.current) if definition.current is not None else None
        return cls(
            definition=definition,
            structure=BuildStructure.evaluate(definition),
            session=session,
        )

    def require_session(self) -> SessionSettings:
        if self.session is None:
            raise SessionNotLoadedError("No project loaded")
        return self.session

    @property
    def current_ref(self) -> ProjectRef:
        return self.require_session().current


def reapply(state: BuildState, session: SessionSettings) -> BuildState:
    """Rebuild the evaluated structure from ``session``'s override list."""

    structure = BuildStructure.evaluate(state.definition, session.raw_append)
    return replace(state, structure=structure, session=session)


def capture(state: BuildState) -> BuildState:
    session = state.require_session()
    return replace(state, captured=Snapshot(raw_append=session.raw_append))


def restore(state: BuildState, snapshot: Snapshot | None = None) -> BuildState:
    """Put back the captured override list; a no-op when nothing was captured."""

    snapshot = snapshot if snapshot is not None else state.captured
    if snapshot is None:
        return state
    session = state.require_session().with_raw_append(snapshot.raw_append)
    return replace(reapply(state, session), captured=None)


__all__ = [
    "BuildState",
    "SessionNotLoadedError",
    "SessionSettings",
    "Snapshot",
    "capture",
    "reapply",
    "restore",
]
