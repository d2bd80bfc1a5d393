"""Filesystem-backed toolchain loader."""

from __future__ import annotations

from pathlib import Path

from crossbuild.ports.toolchain import ToolchainInstance, ToolchainLoader, ToolchainLoadError

MANIFEST = "toolchain.yaml"
VERSION_FILE = "VERSION"


class FSToolchainLoader(ToolchainLoader):
    """Reads the version of a toolchain home from ``toolchain.yaml`` or ``VERSION``."""

    def load(self, home: Path) -> ToolchainInstance:
        if not home.is_dir():
            raise ToolchainLoadError(f"Toolchain home {home} is not a directory")
        manifest = home / MANIFEST
        if manifest.exists():
            return ToolchainInstance(home=home, version=self._version_from_manifest(manifest))
        version_file = home / VERSION_FILE
        if version_file.exists():
            version = version_file.read_text("utf-8").strip()
            if not version:
                raise ToolchainLoadError(f"{version_file} is empty")
            return ToolchainInstance(home=home, version=version)
        raise ToolchainLoadError(f"No {MANIFEST} or {VERSION_FILE} found under toolchain home {home}")

    def _version_from_manifest(self, manifest: Path) -> str:
        import yaml  # lazy import to keep import cost low

        try:
            data = yaml.safe_load(manifest.read_text("utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ToolchainLoadError(f"{manifest} is not valid YAML: {exc}") from exc
        version = data.get("version") if isinstance(data, dict) else None
        if version is None or not str(version).strip():
            raise ToolchainLoadError(f"{manifest} does not declare a version")
        return str(version).strip()


__all__ = ["FSToolchainLoader"]
