"""Binary-compatible identifiers for toolchain version strings.

Two versions sharing an identifier are interchangeable for compatibility
checks: ``2.12.8`` and ``2.12.10`` both map to ``2.12``, every ``3.x.y``
release maps to ``3``. A pre-release shares the identifier of its release
line once that line has shipped: ``2.13.1-RC1`` maps to ``2.13`` and
``3.1.0-RC1`` to ``3``, while ``2.13.0-M5`` and ``3.0.0-RC1`` map to
themselves. Releases older than ``2.10.0`` also map to themselves.
"""

from __future__ import annotations

import re
from typing import Tuple

_RELEASE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(-\d+)?$")
_BIN_COMPAT = re.compile(r"^(\d+)\.(\d+)\.(\d+)-bin(-.*)?$")
_NON_RELEASE = re.compile(r"^(\d+)\.(\d+)\.(\d+)-[\w.\-]+$")
_NUMERIC_PREFIX = re.compile(r"^(\d+)\.(\d+)\.(\d+)")

_CUTOFF_V2 = (2, 10, 0)
_CUTOFF_V3 = (3, 0, 0)


def _api_version(version: str) -> Tuple[int, int] | None:
    match = _RELEASE.match(version) or _BIN_COMPAT.match(version)
    if match is not None:
        return int(match.group(1)), int(match.group(2))
    match = _NON_RELEASE.match(version)
    if match is None:
        return None
    major, minor, patch = (int(part) for part in match.groups())
    if patch > 0 or (major >= 3 and minor > 0):
        return major, minor
    return None


def _is_at_least(version: str, cutoff: Tuple[int, int, int]) -> bool:
    match = _NUMERIC_PREFIX.match(version)
    if match is None:
        return False
    return tuple(int(part) for part in match.groups()) >= cutoff


def binary_version(version: str) -> str:
    version = version.strip()
    cutoff = _CUTOFF_V2 if version.startswith("2.") else _CUTOFF_V3
    if not _is_at_least(version, cutoff):
        return version
    api = _api_version(version)
    if api is None:
        return version
    major, minor = api
    if major >= 3:
        return str(major)
    return f"{major}.{minor}"


def is_binary_compatible(left: str, right: str) -> bool:
    return binary_version(left) == binary_version(right)


__all__ = ["binary_version", "is_binary_compatible"]
