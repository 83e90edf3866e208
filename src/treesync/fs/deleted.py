"""Deletion check for the sync engine's tree model.

``is_deleted`` decides whether a name the tree model believes exists should
be treated as gone from disk. The walk lstats every prefix of the name so
the operating system never resolves a symlink on our behalf: a name that
passes through a symlink or a non-directory is deleted, while a name whose
existence cannot be determined is not.
"""

from treesync.core.errors import InvalidPathError
from treesync.fs.handle import EntryKind, FilesystemHandle, classify
from treesync.fs.paths import join_components, split_components
from treesync.utils.debug import debug


def is_deleted(fs: FilesystemHandle, name: str) -> bool:
    """Return True if ``name`` should be considered deleted on ``fs``.

    Args:
        fs: Filesystem handle the name is relative to
        name: Slash-separated name below the handle's root

    Returns:
        True when the entry or one of its parents is missing, or when a
        parent is not a real directory. False when the entry exists (of any
        kind, including a dangling symlink) or when a lookup failed for any
        reason other than the entry not existing.
    """
    try:
        parts = split_components(name)
    except InvalidPathError as e:
        debug(f"is_deleted({name!r}): {e}; treating as not deleted")
        return False

    last = len(parts) - 1
    for i in range(len(parts)):
        prefix = join_components(parts[: i + 1])
        result = classify(fs, prefix)

        if result.kind is EntryKind.ABSENT:
            debug(f"is_deleted({name!r}): {prefix!r} does not exist")
            return True
        if result.kind is EntryKind.INACCESSIBLE:
            debug(f"is_deleted({name!r}): {prefix!r} inaccessible: {result.error}")
            return False
        if i < last and result.kind is not EntryKind.DIRECTORY:
            # Symlinked directories are never traversed.
            debug(f"is_deleted({name!r}): {prefix!r} is a {result.kind.value}")
            return True

    return False
