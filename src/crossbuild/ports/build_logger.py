"""Port definition for progress reporting."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BuildLogger(ABC):
    @abstractmethod
    def info(self, message: str) -> None:
        """Report a user-facing progress line."""

    @abstractmethod
    def debug(self, message: str) -> None:
        """Report a detail line shown only when debugging."""


__all__ = ["BuildLogger"]
