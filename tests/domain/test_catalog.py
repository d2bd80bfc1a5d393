from __future__ import annotations

from crossbuild.domain.build import ProjectRef
from crossbuild.domain.cross import catalog, versions_for


def test_cross_versions_keep_declared_order(make_state, unit) -> None:
    state = make_state(unit({"core": {"settings": {"cross_versions": ["2.13.1", "2.12.8", "3.3.1"]}}}))
    assert versions_for(state.structure, ProjectRef("root", "core")) == ["2.13.1", "2.12.8", "3.3.1"]


def test_falls_back_to_pinned_version(make_state, unit) -> None:
    state = make_state(unit({"core": {"settings": {"toolchain_version": "2.12.8"}}}))
    assert versions_for(state.structure, ProjectRef("root", "core")) == ["2.12.8"]


def test_pinned_version_inherited_from_build_unit(make_state) -> None:
    state = make_state({"root": {"settings": {"toolchain_version": "2.13.1"}, "projects": {"core": {}}}})
    assert versions_for(state.structure, ProjectRef("root", "core")) == ["2.13.1"]


def test_no_declaration_means_no_versions(make_state, unit) -> None:
    state = make_state(unit({"core": {}}))
    assert versions_for(state.structure, ProjectRef("root", "core")) == []
    assert versions_for(state.structure, ProjectRef("root", "missing")) == []


def test_catalog_lists_every_project(three_projects) -> None:
    entries = dict(catalog(three_projects.structure))
    assert entries[ProjectRef("root", "a")] == ["2.12.8"]
    assert entries[ProjectRef("root", "root")] == []
    assert len(entries) == 4
