"""Cross-version command grammars and planning."""

from .aggregates import resolve_aggregates
from .catalog import catalog, versions_for
from .commands import (
    BATCH_COMMAND,
    CommandParseError,
    CrossArgs,
    HomeVersion,
    NamedVersion,
    SwitchArgs,
    VersionSpec,
    parse_cross,
    parse_project_qualified,
    parse_restore_session,
    parse_switch,
)
from .plan import (
    BatchRunStep,
    CrossPlan,
    PlanStep,
    PlanStepKind,
    RestoreStep,
    RunStep,
    SwitchStep,
    build_cross_plan,
)

__all__ = [
    "BATCH_COMMAND",
    "BatchRunStep",
    "CommandParseError",
    "CrossArgs",
    "CrossPlan",
    "HomeVersion",
    "NamedVersion",
    "PlanStep",
    "PlanStepKind",
    "RestoreStep",
    "RunStep",
    "SwitchArgs",
    "SwitchStep",
    "VersionSpec",
    "build_cross_plan",
    "catalog",
    "parse_cross",
    "parse_project_qualified",
    "parse_restore_session",
    "parse_switch",
    "resolve_aggregates",
    "versions_for",
]
