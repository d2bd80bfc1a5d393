"""Grammars for the cross (``+``), switch (``++``) and restore (``+-``) commands.

Each parser raises :class:`CommandParseError` when the text does not belong to
its grammar so the dispatcher can fall through to the next one. A command
token only matches when it is followed by whitespace, the end of input, or a
character of a different class: ``++2.13.1`` is a switch, never a cross of
``+2.13.1``, and ``+-`` is a restore, never a cross of ``-``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Tuple, Union

CROSS_COMMAND = "+"
SWITCH_COMMAND = "++"
RESTORE_SESSION_COMMAND = "+-"
BATCH_COMMAND = "all"
VERBOSE_FLAG = "-v"
FORCE_MARKER = "!"

OP_CHARS = frozenset("!#$%&*+-/:<=>?@\\^|~")
_PROJECT_QUALIFIED = re.compile(r"^([A-Za-z][A-Za-z0-9_\-]*)/(.*)$", re.DOTALL)


class CommandParseError(ValueError):
    """Raised when input does not match a command grammar."""


@dataclass(frozen=True)
class NamedVersion:
    name: str
    force: bool = False

    def render(self) -> str:
        return self.name + (FORCE_MARKER if self.force else "")


@dataclass(frozen=True)
class HomeVersion:
    home: Path
    resolve_version: str | None = None
    force: bool = False

    def render(self) -> str:
        return f"{self.resolve_version or ''}={self.home}" + (FORCE_MARKER if self.force else "")


VersionSpec = Union[NamedVersion, HomeVersion]


@dataclass(frozen=True)
class CrossArgs:
    command: str
    verbose: bool = False

    def render(self) -> str:
        flag = f" {VERBOSE_FLAG}" if self.verbose else ""
        return f"{CROSS_COMMAND}{flag} {self.command}"


@dataclass(frozen=True)
class SwitchArgs:
    version: VersionSpec
    verbose: bool = False
    command: str | None = None

    def render(self) -> str:
        version = self.version.render()
        separator = " " if _is_op_char(version[:1]) else ""
        parts = [SWITCH_COMMAND + separator + version]
        if self.verbose:
            parts.append(VERBOSE_FLAG)
        if self.command:
            parts.append(self.command)
        return " ".join(parts)


def _is_op_char(char: str) -> bool:
    return char in OP_CHARS


def _is_id_char(char: str) -> bool:
    return char.isalnum() or char in "_-"


def _after_keyword(text: str, keyword: str) -> str:
    if not text.startswith(keyword):
        raise CommandParseError(f"Expected '{keyword}'")
    rest = text[len(keyword):]
    if not rest or rest[0].isspace():
        return rest
    last, following = keyword[-1], rest[0]
    if (_is_op_char(last) and _is_op_char(following)) or (_is_id_char(last) and _is_id_char(following)):
        raise CommandParseError(f"'{keyword}' is not followed by a separator")
    return rest


def _take_verbose(rest: str) -> Tuple[bool, str]:
    if rest == VERBOSE_FLAG:
        return True, ""
    if rest.startswith(VERBOSE_FLAG) and rest[len(VERBOSE_FLAG)].isspace():
        return True, rest[len(VERBOSE_FLAG):].lstrip()
    return False, rest


def _take_token(rest: str) -> Tuple[str, str]:
    if rest.startswith('"'):
        end = rest.find('"', 1)
        if end == -1:
            raise CommandParseError("Unterminated quoted version")
        return rest[1:end], rest[end + 1:]
    match = re.match(r"\S+", rest)
    if match is None:
        raise CommandParseError("Expected a version")
    return match.group(0), rest[match.end():]


def parse_cross(text: str) -> CrossArgs:
    rest = _after_keyword(text.strip(), CROSS_COMMAND).lstrip()
    verbose, command = _take_verbose(rest)
    if not command:
        raise CommandParseError(f"Expected a command after '{CROSS_COMMAND}'")
    return CrossArgs(command=command, verbose=verbose)


def parse_version_spec(token: str, path_exists: Callable[[str], bool] | None = None) -> VersionSpec:
    """Interpret ``<version>[!]``, ``[<version>]=<home>[!]`` or a bare existing home path."""

    force = token.endswith(FORCE_MARKER)
    arg = token[: -len(FORCE_MARKER)] if force else token
    if not arg:
        raise CommandParseError("Expected a version")
    if "=" in arg:
        name, home = arg.split("=", 1)
        if not home:
            raise CommandParseError(f"Missing toolchain home after '=' in {token!r}")
        return HomeVersion(home=Path(home), resolve_version=name or None, force=force)
    if path_exists is not None and path_exists(arg):
        return HomeVersion(home=Path(arg), resolve_version=None, force=force)
    return NamedVersion(name=arg, force=force)


def parse_switch(text: str, path_exists: Callable[[str], bool] | None = None) -> SwitchArgs:
    rest = _after_keyword(text.strip(), SWITCH_COMMAND).lstrip()
    if not rest:
        raise CommandParseError(f"Expected a version after '{SWITCH_COMMAND}'")
    token, rest = _take_token(rest)
    version = parse_version_spec(token, path_exists)
    verbose, command = _take_verbose(rest.lstrip())
    return SwitchArgs(version=version, verbose=verbose, command=command or None)


def parse_restore_session(text: str) -> str:
    stripped = text.strip()
    if stripped != RESTORE_SESSION_COMMAND:
        raise CommandParseError(f"Expected '{RESTORE_SESSION_COMMAND}'")
    return stripped


def parse_project_qualified(command: str) -> Tuple[str, str] | None:
    """Split ``<project>/<command>``; ``None`` means an aggregate-targeted command."""

    match = _PROJECT_QUALIFIED.match(command)
    if match is None:
        return None
    return match.group(1), match.group(2)


__all__ = [
    "BATCH_COMMAND",
    "CROSS_COMMAND",
    "CommandParseError",
    "CrossArgs",
    "HomeVersion",
    "NamedVersion",
    "RESTORE_SESSION_COMMAND",
    "SWITCH_COMMAND",
    "SwitchArgs",
    "VERBOSE_FLAG",
    "VersionSpec",
    "parse_cross",
    "parse_project_qualified",
    "parse_restore_session",
    "parse_switch",
    "parse_version_spec",
]
