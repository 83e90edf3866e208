"""Filesystem handle backed by a directory on local disk."""

import os
from pathlib import Path
from typing import BinaryIO

from treesync.fs.handle import FileInfo, kind_from_mode
from treesync.fs.paths import native_filename, split_components
from treesync.utils.debug import debug


class BasicFilesystem:
    """Filesystem handle bound to a local directory.

    Every name is resolved below ``root``; names containing ``..`` are
    rejected with InvalidPathError before touching the disk.
    """

    def __init__(self, root: str | Path) -> None:
        """Initialize the handle.

        Args:
            root: Directory the handle is bound to. It does not need to
                exist yet; ``mkdir_all("")`` creates it.
        """
        self._root = os.path.abspath(os.path.expanduser(str(root)))

    @property
    def uri(self) -> str:
        return self._root

    def __repr__(self) -> str:
        return f"BasicFilesystem({self._root!r})"

    def _rooted(self, name: str) -> str:
        parts = split_components(name)
        if not parts:
            return self._root
        return os.path.join(self._root, *parts)

    def _info(self, name: str, st: os.stat_result) -> FileInfo:
        return FileInfo(
            name=name,
            kind=kind_from_mode(st.st_mode),
            size=st.st_size,
            mode=st.st_mode,
            mtime=st.st_mtime,
        )

    def lstat(self, name: str) -> FileInfo:
        return self._info(name, os.lstat(self._rooted(name)))

    def stat(self, name: str) -> FileInfo:
        return self._info(name, os.stat(self._rooted(name)))

    def open(self, name: str) -> BinaryIO:
        return open(self._rooted(name), "rb")

    def create(self, name: str) -> BinaryIO:
        return open(self._rooted(name), "wb")

    def rename(self, old: str, new: str) -> None:
        old_path = self._rooted(old)
        new_path = self._rooted(new)
        debug(f"rename {old_path} -> {new_path}")
        os.replace(old_path, new_path)

    def remove(self, name: str) -> None:
        path = self._rooted(name)
        if os.path.isdir(path) and not os.path.islink(path):
            os.rmdir(path)
        else:
            os.remove(path)

    def mkdir_all(self, name: str, mode: int = 0o777) -> None:
        os.makedirs(self._rooted(name), mode=mode, exist_ok=True)

    def chmod(self, name: str, mode: int) -> None:
        os.chmod(self._rooted(name), mode)

    def create_symlink(self, target: str, name: str) -> None:
        """Create a symlink at ``name`` pointing at ``target``.

        ``target`` is stored as given (after separator conversion), so a
        relative target is resolved relative to the link's directory.
        """
        os.symlink(native_filename(target), self._rooted(name))
