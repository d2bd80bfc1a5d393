#!/usr/bin/env python3
"""Entry point for the crossbuild CLI."""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from pathlib import Path
from textwrap import dedent
from typing import Any

from crossbuild import __version__
from crossbuild.adapters.command_registry import CommandRegistry
from crossbuild.adapters.console_logger import ConsoleLogger
from crossbuild.adapters.fs_toolchain_loader import FSToolchainLoader
from crossbuild.adapters.subprocess_engine import SubprocessCommandEngine
from crossbuild.app.command_loop import CommandFailedError, CommandLoop
from crossbuild.app.cross import CrossService
from crossbuild.app.switch import VersionSwitchService
from crossbuild.domain.build import BuildDefinition, BuildState, binary_version
from crossbuild.domain.cross import CrossArgs, catalog
from crossbuild.ports.build_logger import BuildLogger
from crossbuild.settings import SETTINGS
from crossbuild.utils.telemetry import TelemetryEvent, TelemetryLog


HELP_OVERVIEW = dedent(
    """
    Run build commands across every toolchain version your projects support.

    Commands understood by `crossbuild run`:
      + [-v] <command>                 - run <command> once per declared version
      ++<version>[!][=<home>] [-v] [<command>]
                                       - switch the active version, then run <command>
      +-                               - restore the overrides captured by the last cross
      all <project>/<command> ...      - run several commands as one concurrent batch
      <project>/<command>              - run a registered command on one project
      <command>                        - run on the current project and its aggregates
    """
)

_FAILURES = (RuntimeError, ValueError)


def _default_project_path(path_arg: str | None) -> Path:
    if path_arg:
        return Path(path_arg).expanduser().resolve()
    return Path(os.getcwd())


def _load_state(root: Path) -> BuildState:
    definition = BuildDefinition.load(SETTINGS.descriptor_path(root))
    return BuildState.load(definition)


def _build_loop(root: Path, logger: BuildLogger) -> CommandLoop:
    registry = CommandRegistry.load_from_file(SETTINGS.descriptor_path(root))
    return CommandLoop(
        engine=SubprocessCommandEngine(registry, SETTINGS),
        switcher=VersionSwitchService(FSToolchainLoader(), logger),
        crosser=CrossService(logger),
        logger=logger,
    )


def _record(name: str, status: str, started: float | None, **fields: Any) -> None:
    duration = None if started is None else (time.perf_counter() - started) * 1000
    TelemetryLog(SETTINGS).record(TelemetryEvent(event=f"cli.{name}", status=status, duration_ms=duration, **fields))


def _failure_fields(exc: Exception) -> dict[str, Any]:
    fields: dict[str, Any] = {"error": str(exc) or type(exc).__name__}
    if isinstance(exc, CommandFailedError):
        fields["failed"] = tuple(str(outcome.project) for outcome in exc.outcomes if outcome.project and not outcome.ok)
    return fields


def _run_cmd(args: argparse.Namespace) -> int:
    root = _default_project_path(getattr(args, "path", None))
    logger = ConsoleLogger(debug=getattr(args, "debug", False))
    command = " ; ".join(args.commands)
    payload = {"path": str(root)}
    _record("run", "start", None, command=command, payload=payload)
    start = time.perf_counter()
    try:
        state = _load_state(root)
        result = _build_loop(root, logger).run(state, args.commands)
    except _FAILURES as exc:
        _record("run", "error", start, command=command, payload=payload, **_failure_fields(exc))
        print(f"crossbuild run failed: {exc}", file=sys.stderr)
        return 1
    ran = [outcome for outcome in result.outcomes if outcome.project and not outcome.skipped]
    _record(
        "run",
        "success",
        start,
        command=command,
        versions=tuple(result.switched),
        projects=tuple(str(outcome.project) for outcome in ran),
        payload=payload | {"steps": len(result.executed), "skipped": len(result.outcomes) - len(ran)},
    )
    return 0


def _plan_cmd(args: argparse.Namespace) -> int:
    root = _default_project_path(getattr(args, "path", None))
    logger = ConsoleLogger(debug=getattr(args, "debug", False))
    payload = {"path": str(root)}
    start = time.perf_counter()
    try:
        state = _load_state(root)
        plan = CrossService(logger).plan(state, CrossArgs(args.cross_command, args.verbose))
    except _FAILURES as exc:
        _record("plan", "error", start, command=args.cross_command, payload=payload, **_failure_fields(exc))
        print(f"crossbuild plan failed: {exc}", file=sys.stderr)
        return 1

    if getattr(args, "json", False):
        print(json.dumps(plan.to_dict(), ensure_ascii=False, indent=2))
    elif plan.is_empty:
        print(f"cross plan: no target project declares a version for '{args.cross_command}' (nothing to do)")
    else:
        summary = plan.summary()
        print(
            f"cross plan for '{args.cross_command}': "
            f"{summary['targets']} projects, {summary['versions']} versions, {summary['steps']} steps"
        )
        for index, line in enumerate(plan.render(), start=1):
            print(f"  {index}. {line}")
    _record(
        "plan",
        "noop" if plan.is_empty else "success",
        start,
        command=args.cross_command,
        versions=tuple(plan.groups),
        projects=tuple(str(ref) for ref in plan.targets),
        payload=payload | plan.summary(),
    )
    return 0


def _versions_cmd(args: argparse.Namespace) -> int:
    root = _default_project_path(getattr(args, "path", None))
    try:
        state = _load_state(root)
    except _FAILURES as exc:
        print(f"crossbuild versions failed: {exc}", file=sys.stderr)
        return 1
    current = state.session.current if state.session else None
    entries = catalog(state.structure)
    if getattr(args, "json", False):
        payload = {
            "current": str(current) if current else None,
            "projects": [
                {
                    "project": str(ref),
                    "versions": versions,
                    "binary_versions": sorted({binary_version(version) for version in versions}),
                }
                for ref, versions in entries
            ],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    if not entries:
        print("versions: no projects declared")
        return 0
    print("versions:")
    for ref, versions in entries:
        marker = "*" if ref == current else " "
        declared = ", ".join(versions) if versions else "-"
        print(f"  {marker} {ref} ({declared})")
    return 0


def _telemetry_cmd(args: argparse.Namespace) -> int:
    action = getattr(args, "telemetry_command")
    log = TelemetryLog(SETTINGS)
    if action == "clear":
        log.clear()
        print("telemetry cleared")
        return 0
    summary = log.summary()
    if getattr(args, "json", False):
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        return 0
    print(f"telemetry events: {summary['total']}")
    for name, count in sorted(summary["by_event"].items()):
        print(f"  {name}: {count}")
    if summary["by_version"]:
        print("versions:")
        for version, count in summary["by_version"].items():
            print(f"  {version}: {count}")
    if summary["failed_projects"]:
        print("failing projects:")
        for project, count in summary["failed_projects"].items():
            print(f"  {project}: {count}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crossbuild",
        description=HELP_OVERVIEW,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"crossbuild {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Run commands in order (batch mode)")
    run_cmd.add_argument("commands", nargs="+", help="Command lines, e.g. '+ test' or '++2.13.1 compile'")
    run_cmd.add_argument("--path", help="Build root (default: current directory)")
    run_cmd.add_argument("--debug", action="store_true", help="Show debug output")
    run_cmd.set_defaults(func=_run_cmd)

    plan_cmd = sub.add_parser("plan", help="Show the cross plan for a command without running it")
    plan_cmd.add_argument("cross_command", help="Command to cross build, e.g. 'test' or 'core/compile'")
    plan_cmd.add_argument("--path", help="Build root (default: current directory)")
    plan_cmd.add_argument("-v", "--verbose", action="store_true", help="Plan verbose version switches")
    plan_cmd.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    plan_cmd.add_argument("--debug", action="store_true", help="Show debug output")
    plan_cmd.set_defaults(func=_plan_cmd)

    versions_cmd = sub.add_parser("versions", help="List declared toolchain versions per project")
    versions_cmd.add_argument("--path", help="Build root (default: current directory)")
    versions_cmd.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    versions_cmd.set_defaults(func=_versions_cmd)

    telemetry_cmd = sub.add_parser("telemetry", help="Inspect the telemetry log")
    telemetry_sub = telemetry_cmd.add_subparsers(dest="telemetry_command", required=True)
    telemetry_summary = telemetry_sub.add_parser("summary", help="Summarise recorded events")
    telemetry_summary.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    telemetry_summary.set_defaults(func=_telemetry_cmd)
    telemetry_clear_cmd = telemetry_sub.add_parser("clear", help="Delete recorded events")
    telemetry_clear_cmd.set_defaults(func=_telemetry_cmd)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
