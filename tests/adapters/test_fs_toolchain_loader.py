from __future__ import annotations

from pathlib import Path

import pytest

from crossbuild.adapters.fs_toolchain_loader import FSToolchainLoader
from crossbuild.ports.toolchain import ToolchainLoadError


def test_reads_manifest(tmp_path: Path) -> None:
    (tmp_path / "toolchain.yaml").write_text("version: 2.13.12\nvendor: local\n", encoding="utf-8")
    instance = FSToolchainLoader().load(tmp_path)
    assert instance.version == "2.13.12"
    assert instance.home == tmp_path


def test_reads_version_file(tmp_path: Path) -> None:
    (tmp_path / "VERSION").write_text("3.3.1\n", encoding="utf-8")
    assert FSToolchainLoader().load(tmp_path).version == "3.3.1"


def test_manifest_without_version(tmp_path: Path) -> None:
    (tmp_path / "toolchain.yaml").write_text("vendor: local\n", encoding="utf-8")
    with pytest.raises(ToolchainLoadError, match="does not declare a version"):
        FSToolchainLoader().load(tmp_path)


def test_unusable_home(tmp_path: Path) -> None:
    with pytest.raises(ToolchainLoadError):
        FSToolchainLoader().load(tmp_path)
    with pytest.raises(ToolchainLoadError):
        FSToolchainLoader().load(tmp_path / "missing")
