"""Pytest configuration and fixtures for treesync tests."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from treesync.fs import BasicFilesystem, FakeFilesystem, FilesystemHandle


@pytest.fixture
def basic_fs(tmp_path: Path) -> BasicFilesystem:
    """Filesystem handle bound to a fresh temporary directory."""
    root = tmp_path / "root"
    root.mkdir()
    return BasicFilesystem(root)


@pytest.fixture
def fake_fs() -> FakeFilesystem:
    """Empty in-memory filesystem handle."""
    return FakeFilesystem("fake://fake/")


@pytest.fixture(params=["basic", "fake"])
def any_fs(
    request: pytest.FixtureRequest, tmp_path: Path
) -> Iterator[FilesystemHandle]:
    """Each filesystem backing in turn."""
    if request.param == "fake":
        yield FakeFilesystem("fake://fake/")
        return
    root = tmp_path / "any"
    root.mkdir()
    yield BasicFilesystem(root)
