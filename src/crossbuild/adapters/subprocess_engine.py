"""Command engine running registered pipelines as subprocesses."""

from __future__ import annotations

import os
import shlex
import subprocess
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Sequence, Tuple

from crossbuild.domain.build import BuildState, ProjectRef
from crossbuild.domain.cross import BATCH_COMMAND, parse_project_qualified, resolve_aggregates
from crossbuild.ports.command_engine import CommandEngine, CommandOutcome
from crossbuild.settings import RuntimeSettings

from .command_registry import CommandNotFoundError, CommandRegistry, toolchain_context


class UnknownProjectError(RuntimeError):
    pass


class SubprocessCommandEngine(CommandEngine):
    """Runs ``<name> [args...]`` from the registry in each project's base directory.

    Only the steps declared for the project's binary version run; the first of
    them receives the extra arguments, and a failing step stops the pipeline
    for that project. A project outside the command's ``projects`` list, or
    with no step for its version, is reported as skipped. Batches fan out on a
    thread pool bounded by ``settings.max_workers``.
    """

    def __init__(self, registry: CommandRegistry, settings: RuntimeSettings) -> None:
        self._registry = registry
        self._settings = settings

    def run(self, state: BuildState, command: str) -> Sequence[CommandOutcome]:
        head, _, rest = command.strip().partition(" ")
        if head == BATCH_COMMAND:
            return self._run_all(state, rest.split())
        qualified = parse_project_qualified(command)
        if qualified is not None:
            project_id, remainder = qualified
            return [self._run_project(state, self._find_project(state, project_id), remainder)]
        targets = resolve_aggregates(state.structure, state.current_ref)
        return self.run_batch(state, targets, command)

    def run_project(self, state: BuildState, project: ProjectRef, command: str) -> Sequence[CommandOutcome]:
        return [self._run_project(state, project, command)]

    def run_batch(self, state: BuildState, projects: Sequence[ProjectRef], command: str) -> Sequence[CommandOutcome]:
        return self._fan_out(state, [(project, command) for project in projects])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_all(self, state: BuildState, commands: Sequence[str]) -> Sequence[CommandOutcome]:
        jobs: List[Tuple[ProjectRef, str]] = []
        for command in commands:
            qualified = parse_project_qualified(command)
            if qualified is None:
                jobs.extend((ref, command) for ref in resolve_aggregates(state.structure, state.current_ref))
            else:
                jobs.append((self._find_project(state, qualified[0]), qualified[1]))
        if not jobs:
            raise CommandNotFoundError(f"'{BATCH_COMMAND}' needs at least one command")
        return self._fan_out(state, jobs)

    def _fan_out(self, state: BuildState, jobs: Sequence[Tuple[ProjectRef, str]]) -> Sequence[CommandOutcome]:
        if len(jobs) <= 1:
            return [self._run_project(state, project, command) for project, command in jobs]
        workers = max(1, min(len(jobs), self._settings.max_workers))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._run_project, state, project, command) for project, command in jobs]
            return [future.result() for future in futures]

    def _find_project(self, state: BuildState, project_id: str) -> ProjectRef:
        candidates = state.definition.refs_named(project_id)
        if not candidates:
            raise UnknownProjectError(f"Project {project_id} not found in build")
        current_build = state.current_ref.build
        for candidate in candidates:
            if candidate.build == current_build:
                return candidate
        return candidates[0]

    def _run_project(self, state: BuildState, project: ProjectRef, command: str) -> CommandOutcome:
        tokens = shlex.split(command)
        if not tokens:
            raise CommandNotFoundError("Empty command")
        build_command = self._registry.get(tokens[0])
        context = toolchain_context(state.structure, project)
        steps = build_command.steps_for(context["toolchain_binary_version"])
        if not build_command.covers(project) or not steps:
            return CommandOutcome(command=command, project=project, exit_code=0, skipped=True)

        cwd = state.structure.base_path(project)
        env = self._build_env(state, context)
        exit_code = 0
        for index, step in enumerate(steps):
            args = step.argv(context)
            if index == 0:
                args += tokens[1:]
            try:
                result = subprocess.run(args, cwd=cwd, env=env)
            except FileNotFoundError as exc:
                raise RuntimeError(
                    "Command pipeline step executable missing: "
                    f"command={build_command.name} step={step.name} executable={args[0]} project={project}."
                ) from exc
            exit_code = result.returncode
            if exit_code != 0:
                break
        return CommandOutcome(command=command, project=project, exit_code=exit_code)

    def _build_env(self, state: BuildState, context: Dict[str, str]) -> Dict[str, str]:
        env = os.environ.copy()
        env.setdefault("CROSSBUILD_HOME", str(self._settings.home_dir))
        env["CROSSBUILD_BUILD_ROOT"] = str(state.structure.root)
        env["CROSSBUILD_PROJECT"] = f"{context['build']}:{context['project']}"
        env["CROSSBUILD_PROJECT_BASE"] = context["project_base"]
        for key in ("toolchain_version", "toolchain_binary_version", "toolchain_home"):
            name = f"CROSSBUILD_{key.upper()}"
            if context[key]:
                env[name] = context[key]
            else:
                env.pop(name, None)
        env.setdefault("PYTHONUNBUFFERED", "1")
        return env


__all__ = ["SubprocessCommandEngine", "UnknownProjectError"]
