"""In-memory filesystem handle.

``FakeFilesystem`` keeps a tree of files, directories and symlinks in
memory. It follows POSIX lookup rules closely enough to exercise the
primitives without touching disk: intermediate symlinks are followed,
looking up a name inside a directory requires its execute bit, and
modifying a directory requires its write bit. Permission checks always
apply, as for an unprivileged user.

The handle is configured by a URI::

    fake://name/?files=10&seed=42&maxsize=4096

which pre-populates ``files`` regular files named ``xx/yy/<16 hex digits>``
with random content, reproducible for a given ``seed``.
"""

import errno
import io
import os
import random
import stat as stat_mod
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import BinaryIO
from urllib.parse import parse_qs, urlsplit

from treesync.core.config import Settings, load_settings
from treesync.fs.handle import EntryKind, FileInfo
from treesync.fs.paths import join_components, split_components
from treesync.utils.debug import debug

_MAX_SYMLINK_DEPTH = 40

_TYPE_BITS = {
    EntryKind.FILE: stat_mod.S_IFREG,
    EntryKind.DIRECTORY: stat_mod.S_IFDIR,
    EntryKind.SYMLINK: stat_mod.S_IFLNK,
}


@dataclass
class _Entry:
    kind: EntryKind
    mode: int
    mtime: float = field(default_factory=time.time)
    data: bytes = b""
    target: str = ""
    children: dict[str, "_Entry"] = field(default_factory=dict)


def _os_error(exc_type: type[OSError], code: int, name: str) -> OSError:
    return exc_type(code, os.strerror(code), name)


class _FakeFile(io.BytesIO):
    """Writable stream whose content is committed to its entry on flush."""

    def __init__(self, entry: _Entry) -> None:
        super().__init__()
        self._entry = entry

    def flush(self) -> None:
        super().flush()
        if not self.closed:
            self._entry.data = self.getvalue()
            self._entry.mtime = time.time()

    def close(self) -> None:
        if not self.closed:
            self.flush()
        super().close()


class FakeFilesystem:
    """Filesystem handle backed by an in-memory tree."""

    def __init__(
        self, uri: str = "fake://fake/", settings: Settings | None = None
    ) -> None:
        """Initialize the handle and generate any seeded files.

        Args:
            uri: ``fake://`` URI; ``files``, ``seed`` and ``maxsize`` query
                parameters control the generated content
            settings: Settings supplying the default ``maxsize``
        """
        parsed = urlsplit(uri)
        if parsed.scheme != "fake":
            raise ValueError(f"Not a fake filesystem URI: {uri!r}")

        self._uri = uri
        self._settings = settings or load_settings()
        self._root = _Entry(kind=EntryKind.DIRECTORY, mode=0o777)

        query = parse_qs(parsed.query)
        files = int(query.get("files", ["0"])[0])
        seed = int(query.get("seed", ["0"])[0])
        max_size = int(
            query.get("maxsize", [str(self._settings.fake_max_file_size)])[0]
        )
        if files:
            self._populate(files, seed, max_size)

    @property
    def uri(self) -> str:
        return self._uri

    def __repr__(self) -> str:
        return f"FakeFilesystem({self._uri!r})"

    def _populate(self, count: int, seed: int, max_size: int) -> None:
        rnd = random.Random(seed)
        for _ in range(count):
            name = "{:02x}/{:02x}/{:016x}".format(
                rnd.getrandbits(8), rnd.getrandbits(8), rnd.getrandbits(64)
            )
            self.mkdir_all(name.rsplit("/", 1)[0])
            with self.create(name) as fd:
                fd.write(rnd.randbytes(rnd.randint(0, max_size)))
        debug(f"{self!r}: generated {count} files with seed {seed}")

    # Lookup

    def _check_search(self, entry: _Entry, name: str) -> None:
        if not entry.mode & stat_mod.S_IXUSR:
            raise _os_error(PermissionError, errno.EACCES, name)

    def _follow(self, dir_parts: tuple[str, ...], link: _Entry, depth: int) -> _Entry:
        if depth >= _MAX_SYMLINK_DEPTH:
            raise _os_error(OSError, errno.ELOOP, link.target)
        parts = [] if link.target.startswith("/") else list(dir_parts)
        for part in link.target.split("/"):
            if part in ("", "."):
                continue
            if part == "..":
                if parts:
                    parts.pop()
                continue
            parts.append(part)
        return self._walk(tuple(parts), follow_last=True, depth=depth + 1)

    def _walk(
        self, parts: tuple[str, ...], follow_last: bool, depth: int = 0
    ) -> _Entry:
        name = join_components(parts)
        cur = self._root
        for i, part in enumerate(parts):
            self._check_search(cur, name)
            child = cur.children.get(part)
            if child is None:
                raise _os_error(FileNotFoundError, errno.ENOENT, name)
            is_last = i == len(parts) - 1
            if child.kind is EntryKind.SYMLINK and (follow_last or not is_last):
                child = self._follow(parts[:i], child, depth)
            if not is_last and child.kind is not EntryKind.DIRECTORY:
                raise _os_error(NotADirectoryError, errno.ENOTDIR, name)
            cur = child
        return cur

    def _writable_parent(self, parts: tuple[str, ...]) -> _Entry:
        name = join_components(parts)
        if not parts:
            raise _os_error(PermissionError, errno.EPERM, name)
        parent = self._walk(parts[:-1], follow_last=True)
        if parent.kind is not EntryKind.DIRECTORY:
            raise _os_error(NotADirectoryError, errno.ENOTDIR, name)
        self._check_search(parent, name)
        if not parent.mode & stat_mod.S_IWUSR:
            raise _os_error(PermissionError, errno.EACCES, name)
        return parent

    def _info(self, name: str, entry: _Entry) -> FileInfo:
        if entry.kind is EntryKind.SYMLINK:
            size = len(entry.target)
        else:
            size = len(entry.data)
        return FileInfo(
            name=name,
            kind=entry.kind,
            size=size,
            mode=_TYPE_BITS.get(entry.kind, 0) | entry.mode,
            mtime=entry.mtime,
        )

    # FilesystemHandle

    def lstat(self, name: str) -> FileInfo:
        return self._info(name, self._walk(split_components(name), follow_last=False))

    def stat(self, name: str) -> FileInfo:
        return self._info(name, self._walk(split_components(name), follow_last=True))

    def open(self, name: str) -> BinaryIO:
        entry = self._walk(split_components(name), follow_last=True)
        if entry.kind is EntryKind.DIRECTORY:
            raise _os_error(IsADirectoryError, errno.EISDIR, name)
        if not entry.mode & stat_mod.S_IRUSR:
            raise _os_error(PermissionError, errno.EACCES, name)
        return io.BytesIO(entry.data)

    def create(self, name: str) -> BinaryIO:
        parts = split_components(name)
        parent = self._writable_parent(parts)
        entry = parent.children.get(parts[-1])
        if entry is not None and entry.kind is EntryKind.SYMLINK:
            entry = self._walk(parts, follow_last=True)
        if entry is None:
            entry = _Entry(kind=EntryKind.FILE, mode=0o666)
            parent.children[parts[-1]] = entry
        elif entry.kind is EntryKind.DIRECTORY:
            raise _os_error(IsADirectoryError, errno.EISDIR, name)
        elif not entry.mode & stat_mod.S_IWUSR:
            raise _os_error(PermissionError, errno.EACCES, name)
        entry.data = b""
        return _FakeFile(entry)

    def rename(self, old: str, new: str) -> None:
        old_parts = split_components(old)
        new_parts = split_components(new)
        src_parent = self._writable_parent(old_parts)
        entry = src_parent.children.get(old_parts[-1])
        if entry is None:
            raise _os_error(FileNotFoundError, errno.ENOENT, old)
        dst_parent = self._writable_parent(new_parts)
        if old_parts == new_parts:
            return
        inside = new_parts[: len(old_parts)] == old_parts
        if entry.kind is EntryKind.DIRECTORY and inside:
            raise _os_error(OSError, errno.EINVAL, new)

        existing = dst_parent.children.get(new_parts[-1])
        if existing is not None and existing.kind is EntryKind.DIRECTORY:
            if entry.kind is not EntryKind.DIRECTORY:
                raise _os_error(IsADirectoryError, errno.EISDIR, new)
            if existing.children:
                raise _os_error(OSError, errno.ENOTEMPTY, new)
        elif existing is not None and entry.kind is EntryKind.DIRECTORY:
            raise _os_error(NotADirectoryError, errno.ENOTDIR, new)

        del src_parent.children[old_parts[-1]]
        dst_parent.children[new_parts[-1]] = entry

    def remove(self, name: str) -> None:
        parts = split_components(name)
        parent = self._writable_parent(parts)
        entry = parent.children.get(parts[-1])
        if entry is None:
            raise _os_error(FileNotFoundError, errno.ENOENT, name)
        if entry.kind is EntryKind.DIRECTORY and entry.children:
            raise _os_error(OSError, errno.ENOTEMPTY, name)
        del parent.children[parts[-1]]

    def mkdir_all(self, name: str, mode: int = 0o777) -> None:
        parts = split_components(name)
        cur = self._root
        for i, part in enumerate(parts):
            prefix = join_components(parts[: i + 1])
            self._check_search(cur, prefix)
            child = cur.children.get(part)
            if child is None:
                if not cur.mode & stat_mod.S_IWUSR:
                    raise _os_error(PermissionError, errno.EACCES, prefix)
                child = _Entry(kind=EntryKind.DIRECTORY, mode=mode & 0o7777)
                cur.children[part] = child
            elif child.kind is EntryKind.SYMLINK:
                child = self._follow(parts[:i], child, 0)
            if child.kind is not EntryKind.DIRECTORY:
                raise _os_error(NotADirectoryError, errno.ENOTDIR, prefix)
            cur = child

    def chmod(self, name: str, mode: int) -> None:
        entry = self._walk(split_components(name), follow_last=True)
        entry.mode = mode & 0o7777

    def create_symlink(self, target: str, name: str) -> None:
        parts = split_components(name)
        parent = self._writable_parent(parts)
        if parts[-1] in parent.children:
            raise _os_error(FileExistsError, errno.EEXIST, name)
        parent.children[parts[-1]] = _Entry(
            kind=EntryKind.SYMLINK, mode=0o777, target=target
        )

    # Inspection

    def walk_files(self) -> Iterator[str]:
        """Yield the names of all regular files, depth first in name order.

        Permission bits are ignored; this is an inspection helper.
        """

        def _visit(entry: _Entry, parts: tuple[str, ...]) -> Iterator[str]:
            for child_name in sorted(entry.children):
                child = entry.children[child_name]
                child_parts = (*parts, child_name)
                if child.kind is EntryKind.DIRECTORY:
                    yield from _visit(child, child_parts)
                elif child.kind is EntryKind.FILE:
                    yield join_components(child_parts)

        yield from _visit(self._root, ())
