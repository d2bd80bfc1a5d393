from __future__ import annotations

from crossbuild.domain.build import ProjectRef
from crossbuild.domain.cross import (
    BatchRunStep,
    NamedVersion,
    RestoreStep,
    RunStep,
    SwitchStep,
    build_cross_plan,
)


def _ref(name: str, build: str = "root") -> ProjectRef:
    return ProjectRef(build, name)


def test_groups_follow_first_encountered_version_order(three_projects) -> None:
    plan = build_cross_plan(three_projects.structure, _ref("root"), "compile")
    assert plan.steps == [
        SwitchStep(NamedVersion("2.12.8")),
        BatchRunStep((_ref("a"), _ref("b")), "compile"),
        SwitchStep(NamedVersion("2.13.1"), then=RunStep(_ref("c"), "compile")),
        RestoreStep(),
    ]
    assert list(plan.groups) == ["2.12.8", "2.13.1"]


def test_version_order_is_not_lexicographic(make_state, unit) -> None:
    state = make_state(
        unit(
            {
                "root": {"aggregate": ["x", "y"], "settings": {"cross_versions": ["3.3.1"]}},
                "x": {"settings": {"cross_versions": ["2.13.1", "2.12.8"]}},
                "y": {"settings": {"cross_versions": ["2.12.8"]}},
            }
        ),
        current="root",
    )
    plan = build_cross_plan(state.structure, _ref("root"), "test")
    assert list(plan.groups) == ["3.3.1", "2.13.1", "2.12.8"]
    assert plan.groups["2.12.8"] == [_ref("x"), _ref("y")]


def test_command_with_space_runs_projects_one_by_one(three_projects) -> None:
    plan = build_cross_plan(three_projects.structure, _ref("root"), "testOnly foo.Bar", verbose=True)
    assert plan.steps[:3] == [
        SwitchStep(NamedVersion("2.12.8"), verbose=True),
        RunStep(_ref("a"), "testOnly foo.Bar"),
        RunStep(_ref("b"), "testOnly foo.Bar"),
    ]
    assert not any(isinstance(step, BatchRunStep) for step in plan.steps)


def test_single_project_fast_path_wins_over_space_rule(three_projects) -> None:
    plan = build_cross_plan(three_projects.structure, _ref("root"), "testOnly foo.Bar")
    assert plan.steps[3] == SwitchStep(NamedVersion("2.13.1"), then=RunStep(_ref("c"), "testOnly foo.Bar"))
    assert plan.steps[-1] == RestoreStep()
    assert len(plan.steps) == 5


def test_project_qualified_command_targets_all_units(make_state) -> None:
    state = make_state(
        {
            "main": {"projects": {"core": {"settings": {"cross_versions": ["2.12.8"]}}, "app": {}}},
            "plugin": {"base": "plugin", "projects": {"core": {"settings": {"cross_versions": ["2.12.8", "2.13.1"]}}}},
        },
        current="app",
    )
    plan = build_cross_plan(state.structure, ProjectRef("main", "app"), "core/test")
    assert plan.targets == [ProjectRef("main", "core"), ProjectRef("plugin", "core")]
    assert plan.steps == [
        SwitchStep(NamedVersion("2.12.8")),
        BatchRunStep((ProjectRef("main", "core"), ProjectRef("plugin", "core")), "test"),
        SwitchStep(NamedVersion("2.13.1"), then=RunStep(ProjectRef("plugin", "core"), "test")),
        RestoreStep(),
    ]


def test_no_declared_versions_is_an_empty_plan(make_state, unit) -> None:
    state = make_state(unit({"root": {"aggregate": ["a"]}, "a": {}}), current="root")
    plan = build_cross_plan(state.structure, _ref("root"), "compile")
    assert plan.is_empty
    assert plan.steps == []
    assert plan.summary() == {"targets": 2, "versions": 0, "steps": 0}


def test_rendered_plan_uses_command_syntax(three_projects) -> None:
    plan = build_cross_plan(three_projects.structure, _ref("root"), "compile", verbose=True)
    assert plan.render() == [
        "++2.12.8 -v",
        "all a/compile b/compile",
        "++2.13.1 -v c/compile",
        "+-",
    ]
    payload = plan.to_dict()
    assert payload["groups"] == {"2.12.8": ["root:a", "root:b"], "2.13.1": ["root:c"]}
    assert [step["kind"] for step in payload["steps"]] == ["switch", "batch_run", "switch", "restore"]


def test_fast_path_step_keeps_the_planned_project(three_projects) -> None:
    plan = build_cross_plan(three_projects.structure, _ref("root"), "compile", verbose=True)
    assert plan.to_dict()["steps"][2] == {
        "kind": "switch",
        "version": "2.13.1",
        "verbose": True,
        "project": "root:c",
        "command": "compile",
    }
