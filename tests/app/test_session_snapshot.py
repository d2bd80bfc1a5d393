from __future__ import annotations

import pytest

from crossbuild.app.switch import set_toolchain_version
from crossbuild.domain.build import (
    BuildDefinition,
    BuildState,
    Override,
    ProjectRef,
    SessionNotLoadedError,
    capture,
    reapply,
    restore,
)


def test_capture_then_restore_puts_back_the_override_list(three_projects) -> None:
    unrelated = Override(ProjectRef("root", "a"), "scalac_options", ["-deprecation"])
    state = reapply(three_projects, three_projects.require_session().with_raw_append([unrelated]))
    captured = capture(state)
    assert captured.captured is not None

    switched = set_toolchain_version(captured, "2.13.1", None, [ProjectRef("root", "a"), ProjectRef("root", "c")])
    assert switched.structure.get(ProjectRef("root", "a"), "toolchain_version") == "2.13.1"

    restored = restore(switched)
    assert restored.session.raw_append == (unrelated,)
    assert restored.structure.data == state.structure.data
    assert restored.captured is None


def test_restore_without_capture_is_a_noop(three_projects) -> None:
    assert restore(three_projects) is three_projects


def test_snapshot_is_consumed_by_one_restore(three_projects) -> None:
    captured = capture(three_projects)
    switched = set_toolchain_version(captured, "2.13.1", None, [ProjectRef("root", "a")])
    restored = restore(switched)
    again = set_toolchain_version(restored, "2.12.8", None, [ProjectRef("root", "a")])
    assert restore(again) is again


def test_capture_requires_a_loaded_project(tmp_path) -> None:
    state = BuildState.load(BuildDefinition.from_dict({}, tmp_path))
    with pytest.raises(SessionNotLoadedError, match="No project loaded"):
        capture(state)
    assert restore(state) is state
