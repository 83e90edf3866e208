"""Filesystem handle protocol and entry classification.

A filesystem handle is bound to a root and exposes operations on names
below it. Handles report failures the way the ``os`` module does, by raising
``OSError`` subclasses. ``classify`` turns one ``lstat`` call into a tagged
result so callers can branch on absent versus inaccessible entries.
"""

import stat as stat_mod
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Protocol, runtime_checkable

from treesync.core.errors import InvalidPathError


class EntryKind(str, Enum):
    """Classification of a filesystem entry.

    Attributes:
        FILE: Regular file
        DIRECTORY: Directory
        SYMLINK: Symbolic link (never followed by lstat)
        OTHER: Device, socket, FIFO or anything else
        ABSENT: The entry does not exist
        INACCESSIBLE: Existence could not be determined
    """

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"
    ABSENT = "absent"
    INACCESSIBLE = "inaccessible"


def kind_from_mode(mode: int) -> EntryKind:
    """Map an ``st_mode`` value to an EntryKind."""
    if stat_mod.S_ISLNK(mode):
        return EntryKind.SYMLINK
    if stat_mod.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat_mod.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


@dataclass(frozen=True)
class FileInfo:
    """Metadata returned by ``lstat``/``stat``."""

    name: str
    kind: EntryKind
    size: int
    mode: int
    mtime: float

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_symlink(self) -> bool:
        return self.kind is EntryKind.SYMLINK

    @property
    def is_regular(self) -> bool:
        return self.kind is EntryKind.FILE


@runtime_checkable
class FilesystemHandle(Protocol):
    """Operations a filesystem backing must provide.

    Names are canonical slash-separated paths relative to the handle's root.
    Two handles are the same filesystem only if they are the same object.
    """

    @property
    def uri(self) -> str: ...

    def lstat(self, name: str) -> FileInfo: ...

    def stat(self, name: str) -> FileInfo: ...

    def open(self, name: str) -> BinaryIO: ...

    def create(self, name: str) -> BinaryIO: ...

    def rename(self, old: str, new: str) -> None: ...

    def remove(self, name: str) -> None: ...

    def mkdir_all(self, name: str, mode: int = 0o777) -> None: ...

    def chmod(self, name: str, mode: int) -> None: ...

    def create_symlink(self, target: str, name: str) -> None: ...


@dataclass(frozen=True)
class LstatResult:
    """Tagged outcome of a single lstat query.

    ``info`` is set when the entry exists, ``error`` when its kind is
    ABSENT or INACCESSIBLE.
    """

    name: str
    kind: EntryKind
    info: FileInfo | None = None
    error: Exception | None = None

    @property
    def exists(self) -> bool:
        return self.info is not None


def classify(fs: FilesystemHandle, name: str) -> LstatResult:
    """Lstat ``name`` on ``fs`` and fold the outcome into an LstatResult.

    Args:
        fs: Filesystem handle to query
        name: Name below the handle's root

    Returns:
        LstatResult whose kind is ABSENT for missing entries and
        INACCESSIBLE for permission problems or any other failure
    """
    try:
        info = fs.lstat(name)
    except FileNotFoundError as e:
        return LstatResult(name=name, kind=EntryKind.ABSENT, error=e)
    except (OSError, InvalidPathError) as e:
        return LstatResult(name=name, kind=EntryKind.INACCESSIBLE, error=e)
    return LstatResult(name=name, kind=info.kind, info=info)
