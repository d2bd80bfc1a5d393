"""Application service switching the active toolchain version."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from crossbuild.domain.build import BuildState, Override, ProjectRef, Scope, binary_version, reapply
from crossbuild.domain.build.value_objects import (
    TOOLCHAIN_HOME,
    TOOLCHAIN_INSTANCE,
    TOOLCHAIN_KEYS,
    TOOLCHAIN_VERSION,
)
from crossbuild.domain.cross import HomeVersion, NamedVersion, SwitchArgs, catalog
from crossbuild.domain.cross.commands import SWITCH_COMMAND, VERBOSE_FLAG
from crossbuild.ports.build_logger import BuildLogger
from crossbuild.ports.toolchain import ToolchainInstance, ToolchainLoader

ProjectVersions = Tuple[ProjectRef, List[str]]


class ToolchainHomeNotFoundError(RuntimeError):
    """Raised when a ``<version>=<home>`` switch points at a missing directory."""


def toolchain_overrides(version: str, instance: ToolchainInstance | None, scope: Scope) -> List[Override]:
    if instance is not None:
        return [
            Override(scope, TOOLCHAIN_VERSION, version),
            Override(scope, TOOLCHAIN_HOME, instance.home),
            Override(scope, TOOLCHAIN_INSTANCE, instance),
        ]
    return [
        Override(scope, TOOLCHAIN_VERSION, version),
        Override(scope, TOOLCHAIN_HOME, None),
    ]


def set_toolchain_version(
    state: BuildState,
    version: str,
    instance: ToolchainInstance | None,
    scopes: Sequence[Scope],
) -> BuildState:
    """Override the toolchain settings of ``scopes`` and reload the structure.

    Earlier toolchain overrides for the same scopes are dropped first, so at
    most one override per (scope, key) pair survives repeated switching.
    """

    session = state.require_session()
    targeted = set(scopes)
    kept = [override for override in session.raw_append if not override.targets(targeted, TOOLCHAIN_KEYS)]
    added = [override for scope in scopes for override in toolchain_overrides(version, instance, scope)]
    return reapply(state, session.with_raw_append(kept + added))


@dataclass
class VersionSwitchService:
    loader: ToolchainLoader
    logger: BuildLogger

    def switch(self, state: BuildState, args: SwitchArgs) -> BuildState:
        current = state.current_ref
        version, instance = self._resolve_version(state, args)
        binary = binary_version(version)
        project_versions = catalog(state.structure)

        if args.version.force:
            self._log_switch(args, version, instance, current, project_versions, [])
            scopes: List[Scope] = [*state.structure.all_project_refs, *state.structure.units]
        else:
            included: List[ProjectVersions] = []
            excluded: List[ProjectVersions] = []
            for ref, versions in project_versions:
                if any(binary_version(candidate) == binary for candidate in versions):
                    included.append((ref, versions))
                else:
                    excluded.append((ref, versions))
            self._log_switch(args, version, instance, current, included, excluded)
            scopes = [ref for ref, _ in included]

        return set_toolchain_version(state, version, instance, scopes)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_version(self, state: BuildState, args: SwitchArgs) -> Tuple[str, ToolchainInstance | None]:
        spec = args.version
        if isinstance(spec, HomeVersion):
            base = state.structure.base_path(state.current_ref)
            home = base / spec.home.expanduser()
            if not home.exists():
                raise ToolchainHomeNotFoundError(f"Toolchain home directory did not exist: {home}")
            instance = self.loader.load(home)
            return spec.resolve_version or instance.version, instance
        if isinstance(spec, NamedVersion):
            return spec.name, None
        raise TypeError(f"Unsupported version specification: {spec!r}")

    def _log_switch(
        self,
        args: SwitchArgs,
        version: str,
        instance: ToolchainInstance | None,
        current: ProjectRef,
        included: Sequence[ProjectVersions],
        excluded: Sequence[ProjectVersions],
    ) -> None:
        if instance is not None:
            self.logger.info(f"Using toolchain home {instance.home} with actual version {instance.version}")
        if args.version.force:
            self.logger.info(f"Forcing toolchain version to {version} on all projects.")
        else:
            self.logger.info(f"Setting toolchain version to {version} on {len(included)} projects.")
        if excluded and not args.verbose:
            self.logger.info(
                f"Excluded {len(excluded)} projects, run {SWITCH_COMMAND}{version} {VERBOSE_FLAG} for more details."
            )

        detail = self.logger.info if args.verbose else self.logger.debug

        def log_project(ref: ProjectRef, versions: Sequence[str]) -> None:
            marker = "*" if ref == current else " "
            detail(f"  {marker} {ref.project} ({', '.join(versions)})")

        detail("Switching toolchain version on:")
        for ref, versions in included:
            log_project(ref, versions)
        detail("Excluding projects:")
        for ref, versions in excluded:
            log_project(ref, versions)


__all__ = [
    "ToolchainHomeNotFoundError",
    "VersionSwitchService",
    "set_toolchain_version",
    "toolchain_overrides",
]
