"""Runtime settings for the crossbuild CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from crossbuild import __version__


DEFAULT_DESCRIPTOR = "crossbuild.yaml"
DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    state_dir: Path
    log_dir: Path
    descriptor_name: str = DEFAULT_DESCRIPTOR
    max_workers: int = DEFAULT_MAX_WORKERS
    cli_version: str = __version__

    def descriptor_path(self, root: Path) -> Path:
        return root / self.descriptor_name


def _default_home_dir() -> Path:
    override = os.environ.get("CROSSBUILD_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".crossbuild"


def _max_workers_from_env() -> int:
    raw = os.environ.get("CROSSBUILD_MAX_WORKERS", "").strip()
    if not raw:
        return DEFAULT_MAX_WORKERS
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"CROSSBUILD_MAX_WORKERS must be an integer, got {raw!r}") from exc
    return max(1, value)


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    return RuntimeSettings(
        home_dir=base,
        state_dir=base / "state",
        log_dir=base / "logs",
        max_workers=_max_workers_from_env(),
    )


SETTINGS = load_settings()
