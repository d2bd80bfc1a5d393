"""Toolchain version switching."""

from .service import ToolchainHomeNotFoundError, VersionSwitchService, set_toolchain_version

__all__ = ["ToolchainHomeNotFoundError", "VersionSwitchService", "set_toolchain_version"]
