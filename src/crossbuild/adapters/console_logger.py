"""Console-backed progress reporting."""

from __future__ import annotations

import sys
from typing import TextIO

from crossbuild.ports.build_logger import BuildLogger


class ConsoleLogger(BuildLogger):
    def __init__(self, stream: TextIO | None = None, *, debug: bool = False) -> None:
        self._stream = stream
        self._debug = debug

    def info(self, message: str) -> None:
        print(message, file=self._stream or sys.stdout)

    def debug(self, message: str) -> None:
        if self._debug:
            print(f"[debug] {message}", file=self._stream or sys.stdout)


__all__ = ["ConsoleLogger"]
