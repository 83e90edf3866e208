"""Tests for path conversion helpers."""

import pytest

from treesync.core.errors import InvalidPathError
from treesync.fs import paths
from treesync.fs.paths import (
    canonical_filename,
    join_components,
    native_filename,
    split_components,
)


def test_native_filename_posix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(paths.os, "sep", "/")

    assert native_filename("05/7a/4d52f284145b9fe8") == "05/7a/4d52f284145b9fe8"


def test_native_filename_windows(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(paths.os, "sep", "\\")

    assert native_filename("05/7a/4d52f284145b9fe8") == "05\\7a\\4d52f284145b9fe8"
    assert canonical_filename("05\\7a\\file") == "05/7a/file"


def test_split_components() -> None:
    assert split_components("a/b/c") == ("a", "b", "c")
    assert split_components("a//./b/") == ("a", "b")
    assert split_components("") == ()
    assert split_components(".") == ()


def test_split_rejects_parent_reference() -> None:
    with pytest.raises(InvalidPathError) as excinfo:
        split_components("a/../b")

    assert excinfo.value.path == "a/../b"
    assert isinstance(excinfo.value, ValueError)


def test_join_components() -> None:
    assert join_components(("a", "b")) == "a/b"
    assert join_components(()) == ""
