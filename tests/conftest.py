from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "global-home"
os.environ.setdefault("CROSSBUILD_HOME", str(SANDBOX_HOME))
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from crossbuild.domain.build import BuildDefinition, BuildState, ProjectRef  # noqa: E402
from crossbuild.ports.build_logger import BuildLogger  # noqa: E402
from crossbuild.ports.command_engine import CommandEngine, CommandOutcome  # noqa: E402
from crossbuild.ports.toolchain import ToolchainInstance, ToolchainLoader, ToolchainLoadError  # noqa: E402


class RecordingLogger(BuildLogger):
    def __init__(self) -> None:
        self.records: List[Tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.records.append(("info", message))

    def debug(self, message: str) -> None:
        self.records.append(("debug", message))

    def messages(self, level: str | None = None) -> List[str]:
        return [message for lvl, message in self.records if level is None or lvl == level]


class FakeEngine(CommandEngine):
    """Records requests and the toolchain version each project saw when it ran."""

    def __init__(self, failing: Sequence[str] = ()) -> None:
        self.calls: List[Tuple[str, Any, str]] = []
        self.seen_versions: List[Tuple[str, Any]] = []
        self.ran: List[Tuple[str, Any]] = []
        self._failing = set(failing)

    def run(self, state: BuildState, command: str) -> Sequence[CommandOutcome]:
        self.calls.append(("run", None, command))
        project = None
        if "/" in command:
            project_id = command.split("/", 1)[0]
            refs = state.definition.refs_named(project_id)
            project = refs[0] if refs else None
        if project is not None:
            self._saw(state, project)
        return [CommandOutcome(command, project, 1 if command in self._failing else 0)]

    def run_project(self, state: BuildState, project: ProjectRef, command: str) -> Sequence[CommandOutcome]:
        self.calls.append(("project", str(project), command))
        self._saw(state, project)
        qualified = f"{project.project}/{command}"
        return [CommandOutcome(command, project, 1 if qualified in self._failing else 0)]

    def run_batch(self, state: BuildState, projects: Sequence[ProjectRef], command: str) -> Sequence[CommandOutcome]:
        self.calls.append(("batch", tuple(project.project for project in projects), command))
        outcomes = []
        for project in projects:
            self._saw(state, project)
            qualified = f"{project.project}/{command}"
            outcomes.append(CommandOutcome(command, project, 1 if qualified in self._failing else 0))
        return outcomes

    def _saw(self, state: BuildState, project: ProjectRef) -> None:
        version = state.structure.get(project, "toolchain_version")
        self.seen_versions.append((project.project, version))
        self.ran.append((str(project), version))


class FakeLoader(ToolchainLoader):
    def __init__(self, version: str = "2.13.1") -> None:
        self.version = version
        self.loaded: List[Path] = []

    def load(self, home: Path) -> ToolchainInstance:
        if not home.is_dir():
            raise ToolchainLoadError(f"not a toolchain: {home}")
        self.loaded.append(home)
        return ToolchainInstance(home=home, version=self.version)


@pytest.fixture()
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture()
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture()
def make_engine() -> Callable[..., FakeEngine]:
    return FakeEngine


@pytest.fixture()
def fake_loader() -> FakeLoader:
    return FakeLoader()


@pytest.fixture()
def make_state(tmp_path: Path) -> Callable[..., BuildState]:
    def _make(builds: Dict[str, Any], current: str | None = None) -> BuildState:
        data: Dict[str, Any] = {"builds": builds}
        if current is not None:
            data["current"] = current
        return BuildState.load(BuildDefinition.from_dict(data, tmp_path))

    return _make


def single_unit(projects: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return {"root": {"base": ".", "projects": projects}}


@pytest.fixture()
def unit() -> Callable[[Dict[str, Dict[str, Any]]], Dict[str, Any]]:
    return single_unit


@pytest.fixture()
def three_projects(make_state: Callable[..., BuildState]) -> BuildState:
    """root aggregates a and b; a and b build on 2.12, c on 2.13 only."""

    return make_state(
        single_unit(
            {
                "root": {"aggregate": ["a", "b", "c"], "settings": {"cross_versions": []}},
                "a": {"base": "a", "settings": {"cross_versions": ["2.12.8"]}},
                "b": {"base": "b", "settings": {"cross_versions": ["2.12.8"]}},
                "c": {"base": "c", "settings": {"cross_versions": ["2.13.1"]}},
            }
        ),
        current="root",
    )
