"""Build graph domain exports."""

from .definition import BuildDefinition, BuildDefinitionError, BuildUnit, ProjectDefinition
from .session import (
    BuildState,
    SessionNotLoadedError,
    SessionSettings,
    Snapshot,
    capture,
    reapply,
    restore,
)
from .structure import BuildStructure
from .value_objects import BuildRef, Override, ProjectRef, Scope
from .versions import binary_version, is_binary_compatible

__all__ = [
    "BuildDefinition",
    "BuildDefinitionError",
    "BuildRef",
    "BuildState",
    "BuildStructure",
    "BuildUnit",
    "Override",
    "ProjectDefinition",
    "ProjectRef",
    "Scope",
    "SessionNotLoadedError",
    "SessionSettings",
    "Snapshot",
    "binary_version",
    "capture",
    "is_binary_compatible",
    "reapply",
    "restore",
]
