"""Filesystem primitives for reconciling a tree model with disk.

This package provides filesystem handles bound to a root, the symlink-safe
deletion check, and a move that renames atomically when it can and copies
across filesystems when it must.
"""

from enum import Enum

from treesync.core.config import Settings
from treesync.fs.basic import BasicFilesystem
from treesync.fs.deleted import is_deleted
from treesync.fs.fake import FakeFilesystem
from treesync.fs.fs_ops import (
    MoveOutcome,
    copy_file,
    is_cross_device_error,
    rename_or_copy,
)
from treesync.fs.handle import (
    EntryKind,
    FileInfo,
    FilesystemHandle,
    LstatResult,
    classify,
)
from treesync.fs.paths import canonical_filename, native_filename


class FilesystemType(str, Enum):
    """Available filesystem backings."""

    BASIC = "basic"
    FAKE = "fake"


def new_filesystem(
    fs_type: FilesystemType | str, uri: str, settings: Settings | None = None
) -> FilesystemHandle:
    """Create a filesystem handle of the given type bound to ``uri``.

    Args:
        fs_type: Backing to use
        uri: Directory for BASIC, ``fake://`` URI for FAKE
        settings: Optional settings passed to backings that use them

    Returns:
        A new handle. Each call returns a distinct filesystem, even for
        the same URI.
    """
    fs_type = FilesystemType(fs_type)
    if fs_type is FilesystemType.FAKE:
        return FakeFilesystem(uri, settings=settings)
    return BasicFilesystem(uri)


__all__ = [
    "BasicFilesystem",
    "EntryKind",
    "FakeFilesystem",
    "FileInfo",
    "FilesystemHandle",
    "FilesystemType",
    "LstatResult",
    "MoveOutcome",
    "canonical_filename",
    "classify",
    "copy_file",
    "is_cross_device_error",
    "is_deleted",
    "native_filename",
    "new_filesystem",
    "rename_or_copy",
]
