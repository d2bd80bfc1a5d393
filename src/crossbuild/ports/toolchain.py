"""Port definition for loading toolchain instances from a home directory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


class ToolchainLoadError(RuntimeError):
    pass


@dataclass(frozen=True)
class ToolchainInstance:
    home: Path
    version: str


class ToolchainLoader(ABC):
    @abstractmethod
    def load(self, home: Path) -> ToolchainInstance:
        """Return the toolchain installed under ``home`` or raise ToolchainLoadError."""


__all__ = ["ToolchainInstance", "ToolchainLoadError", "ToolchainLoader"]
