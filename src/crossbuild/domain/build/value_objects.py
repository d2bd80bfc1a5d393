"""Value objects identifying build scopes and ad hoc setting overrides."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


CROSS_VERSIONS = "cross_versions"
TOOLCHAIN_VERSION = "toolchain_version"
TOOLCHAIN_HOME = "toolchain_home"
TOOLCHAIN_INSTANCE = "toolchain_instance"
TOOLCHAIN_BINARY_VERSION = "toolchain_binary_version"

TOOLCHAIN_KEYS = frozenset({TOOLCHAIN_VERSION, TOOLCHAIN_HOME, TOOLCHAIN_INSTANCE})


@dataclass(frozen=True, order=True)
class ProjectRef:
    """A project inside a build unit; unique within a build graph."""

    build: str
    project: str

    def __str__(self) -> str:
        return f"{self.build}:{self.project}"


@dataclass(frozen=True, order=True)
class BuildRef:
    """The build-unit level scope shared by every project of a unit."""

    build: str

    def __str__(self) -> str:
        return f"{self.build}:"


Scope = Union[ProjectRef, BuildRef]


@dataclass(frozen=True)
class Override:
    """A setting value appended to the session above the declared configuration."""

    scope: Scope
    key: str
    value: Any

    def targets(self, scopes: frozenset[Scope] | set[Scope], keys: frozenset[str] | set[str]) -> bool:
        return self.scope in scopes and self.key in keys


__all__ = [
    "BuildRef",
    "CROSS_VERSIONS",
    "Override",
    "ProjectRef",
    "Scope",
    "TOOLCHAIN_BINARY_VERSION",
    "TOOLCHAIN_HOME",
    "TOOLCHAIN_INSTANCE",
    "TOOLCHAIN_KEYS",
    "TOOLCHAIN_VERSION",
]
