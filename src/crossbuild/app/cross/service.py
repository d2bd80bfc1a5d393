"""Application service turning a cross command into a version-by-version plan."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from crossbuild.domain.build import BuildState, capture
from crossbuild.domain.cross import CrossArgs, CrossPlan, build_cross_plan
from crossbuild.ports.build_logger import BuildLogger


@dataclass
class CrossService:
    logger: BuildLogger

    def plan(self, state: BuildState, args: CrossArgs) -> CrossPlan:
        current = state.current_ref
        return build_cross_plan(state.structure, current, args.command, args.verbose)

    def cross(self, state: BuildState, args: CrossArgs) -> Tuple[BuildState, CrossPlan]:
        """Plan ``args`` and capture the session so the trailing restore can undo the switches."""

        plan = self.plan(state, args)
        if plan.is_empty:
            self.logger.debug(f"No target project declares a toolchain version for '{args.command}'.")
            return state, plan
        summary = plan.summary()
        self.logger.debug(
            f"Cross building '{args.command}' on {summary['targets']} projects across {summary['versions']} versions."
        )
        return capture(state), plan


__all__ = ["CrossService"]
