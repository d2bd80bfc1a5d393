"""Sequential command loop executing cross plans step by step."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Deque, Iterable, List, Sequence, Tuple, Union

from crossbuild.domain.build import BuildState, restore
from crossbuild.domain.cross import (
    BatchRunStep,
    CommandParseError,
    HomeVersion,
    PlanStep,
    RestoreStep,
    RunStep,
    SwitchArgs,
    SwitchStep,
    VersionSpec,
    parse_cross,
    parse_restore_session,
    parse_switch,
)
from crossbuild.ports.build_logger import BuildLogger
from crossbuild.ports.command_engine import CommandEngine, CommandOutcome

from .cross.service import CrossService
from .switch.service import VersionSwitchService

Pending = Union[str, PlanStep]
Step = Tuple[BuildState, List[Pending]]


class CommandFailedError(RuntimeError):
    """Raised when the engine reports a failing command; remaining steps are dropped."""

    def __init__(self, message: str, outcomes: Sequence[CommandOutcome]) -> None:
        super().__init__(message)
        self.outcomes = list(outcomes)


@dataclass
class LoopResult:
    state: BuildState
    outcomes: List[CommandOutcome] = field(default_factory=list)
    executed: List[str] = field(default_factory=list)
    switched: List[str] = field(default_factory=list)


@dataclass
class CommandLoop:
    """Runs commands one after another, threading the state through each step.

    Raw command text goes through the restore, switch and cross grammars in
    that order; text matching none of them is a plain command for the engine.
    The first failure propagates and abandons everything still queued.
    """

    engine: CommandEngine
    switcher: VersionSwitchService
    crosser: CrossService
    logger: BuildLogger

    def run(self, state: BuildState, commands: Iterable[Pending]) -> LoopResult:
        result = LoopResult(state=state)
        queue: Deque[Pending] = deque(commands)
        while queue:
            item = queue.popleft()
            rendered = item if isinstance(item, str) else item.render()
            self.logger.debug(f"> {rendered}")
            result.state, follow_up = self._execute(result, item)
            result.executed.append(rendered)
            queue.extendleft(reversed(follow_up))
        return result

    def _execute(self, result: LoopResult, item: Pending) -> Step:
        state = result.state
        if isinstance(item, str):
            return self._dispatch(result, item)
        if isinstance(item, SwitchStep):
            state, _ = self._switch(result, SwitchArgs(item.version, item.verbose))
            return state, [item.then] if item.then is not None else []
        if isinstance(item, RunStep):
            self._check(result, self.engine.run_project(state, item.project, item.command), item.render())
            return state, []
        if isinstance(item, BatchRunStep):
            self._check(result, self.engine.run_batch(state, item.projects, item.command), item.render())
            return state, []
        if isinstance(item, RestoreStep):
            return restore(state), []
        raise TypeError(f"Unsupported plan step: {item!r}")

    def _dispatch(self, result: LoopResult, text: str) -> Step:
        grammars: List[Callable[[LoopResult, str], Step | None]] = [
            self._try_restore,
            self._try_switch,
            self._try_cross,
        ]
        for grammar in grammars:
            handled = grammar(result, text)
            if handled is not None:
                return handled
        self._check(result, self.engine.run(result.state, text), text)
        return result.state, []

    def _try_restore(self, result: LoopResult, text: str) -> Step | None:
        try:
            parse_restore_session(text)
        except CommandParseError:
            return None
        return restore(result.state), []

    def _try_switch(self, result: LoopResult, text: str) -> Step | None:
        try:
            args = parse_switch(text, path_exists=self._home_path_check(result.state))
        except CommandParseError:
            return None
        return self._switch(result, args)

    def _try_cross(self, result: LoopResult, text: str) -> Step | None:
        try:
            args = parse_cross(text)
        except CommandParseError:
            return None
        state, plan = self.crosser.cross(result.state, args)
        return state, list(plan.steps)

    def _switch(self, result: LoopResult, args: SwitchArgs) -> Step:
        state = self.switcher.switch(result.state, args)
        result.switched.append(_version_label(args.version))
        return state, [args.command] if args.command else []

    def _home_path_check(self, state: BuildState) -> Callable[[str], bool] | None:
        if state.session is None:
            return None
        base = state.structure.base_path(state.session.current)
        return lambda arg: (base / Path(arg).expanduser()).exists()

    def _check(self, result: LoopResult, produced: Sequence[CommandOutcome], command: str) -> None:
        result.outcomes.extend(produced)
        failed = [outcome for outcome in produced if not outcome.ok]
        if failed:
            details = ", ".join(f"{outcome.project or '<root>'} exit={outcome.exit_code}" for outcome in failed)
            raise CommandFailedError(f"Command '{command}' failed: {details}", produced)


def _version_label(spec: VersionSpec) -> str:
    if isinstance(spec, HomeVersion):
        return spec.resolve_version or str(spec.home)
    return spec.name


__all__ = ["CommandFailedError", "CommandLoop", "LoopResult"]
