from __future__ import annotations

import tempfile
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List

from hypothesis import given, settings
from hypothesis import strategies as st

from crossbuild.app.switch import set_toolchain_version
from crossbuild.domain.build import BuildDefinition, BuildState, ProjectRef
from crossbuild.domain.cross import (
    BatchRunStep,
    RestoreStep,
    RunStep,
    SwitchStep,
    build_cross_plan,
    resolve_aggregates,
)

_names = st.lists(
    st.text(alphabet=st.characters(min_codepoint=97, max_codepoint=122), min_size=1, max_size=6),
    min_size=1,
    max_size=6,
    unique=True,
)
_versions = st.sampled_from(["2.11.12", "2.12.8", "2.12.15", "2.13.1", "3.3.1"])


@st.composite
def build_graph(draw: st.DrawFn) -> Dict[str, Any]:
    names = draw(_names)
    projects: Dict[str, Any] = {}
    for name in names:
        links = draw(st.lists(st.sampled_from(names + ["missing"]), max_size=4))
        versions = draw(st.lists(_versions, max_size=3))
        projects[name] = {"aggregate": links, "settings": {"cross_versions": versions}}
    return {"current": names[0], "builds": {"root": {"projects": projects}}}


def _state(payload: Dict[str, Any]) -> BuildState:
    with tempfile.TemporaryDirectory() as tmp:
        return BuildState.load(BuildDefinition.from_dict(payload, Path(tmp)))


@settings(max_examples=60)
@given(payload=build_graph())
def test_aggregates_are_unique_and_start_first(payload: Dict[str, Any]) -> None:
    state = _state(payload)
    start = state.current_ref
    resolved = resolve_aggregates(state.structure, start)
    assert resolved[0] == start
    assert len(resolved) == len(set(resolved))
    for ref in resolved:
        project = state.structure.project(ref)
        if project is not None:
            assert set(project.aggregate) <= set(resolved)


@settings(max_examples=60)
@given(payload=build_graph(), command=st.sampled_from(["compile", "testOnly a.B"]))
def test_plan_covers_every_project_version_pair_once(payload: Dict[str, Any], command: str) -> None:
    state = _state(payload)
    plan = build_cross_plan(state.structure, state.current_ref, command)

    expected = Counter(
        (ref, version)
        for ref in resolve_aggregates(state.structure, state.current_ref)
        for version in dict.fromkeys(payload["builds"]["root"]["projects"].get(ref.project, {}).get("settings", {}).get("cross_versions", []))
    )
    if not expected:
        assert plan.steps == []
        return

    assert isinstance(plan.steps[-1], RestoreStep)
    assert sum(isinstance(step, RestoreStep) for step in plan.steps) == 1
    covered: List[tuple[ProjectRef, str]] = []
    active = None
    for step in plan.steps[:-1]:
        if isinstance(step, SwitchStep):
            active = step.version.name
            if step.then is not None:
                covered.append((step.then.project, active))
        elif isinstance(step, RunStep):
            assert " " in command
            covered.append((step.project, active))
        elif isinstance(step, BatchRunStep):
            assert " " not in command
            assert len(step.projects) > 1
            covered.extend((project, active) for project in step.projects)
    assert Counter(covered) == expected


@settings(max_examples=40)
@given(payload=build_graph(), versions=st.lists(_versions, min_size=1, max_size=5))
def test_repeated_switching_never_duplicates_overrides(payload: Dict[str, Any], versions: List[str]) -> None:
    state = _state(payload)
    refs = state.structure.all_project_refs
    for index, version in enumerate(versions):
        targets = refs[: (index % len(refs)) + 1]
        state = set_toolchain_version(state, version, None, targets)
    counts = Counter((override.scope, override.key) for override in state.session.raw_append)
    assert max(counts.values()) == 1
