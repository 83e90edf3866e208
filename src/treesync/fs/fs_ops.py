"""Move operations between filesystem handles.

``rename_or_copy`` renames atomically when source and destination live on
the same filesystem handle, and otherwise copies the content and removes
the source only once the destination has been fully written and synced.
"""

import errno
import io
import os
from collections.abc import Callable
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any, BinaryIO, Literal

import structlog

from treesync.core.config import Settings, load_settings
from treesync.core.errors import (
    DestinationWriteError,
    InvalidPathError,
    MoveError,
    RenameError,
    SourceCleanupError,
    SourceNotFoundError,
    SourceReadError,
)
from treesync.fs.handle import EntryKind, FilesystemHandle, classify
from treesync.fs.paths import join_components, split_components

# Windows reports renames across volumes with this winerror code
ERROR_NOT_SAME_DEVICE = 17

CrossDevicePredicate = Callable[[BaseException], bool]


@dataclass
class MoveOutcome:
    """Result of a successful move."""

    src: str
    dst: str
    op: Literal["rename", "copy"]
    bytes_copied: int = 0


def is_cross_device_error(exc: BaseException) -> bool:
    """Return True if ``exc`` means a rename crossed a device boundary.

    Args:
        exc: Exception raised by a filesystem handle's rename

    Returns:
        True for EXDEV on POSIX and ERROR_NOT_SAME_DEVICE on Windows
    """
    if not isinstance(exc, OSError):
        return False
    if exc.errno == errno.EXDEV:
        return True
    return getattr(exc, "winerror", None) == ERROR_NOT_SAME_DEVICE


def is_same_file(
    src_fs: FilesystemHandle, dst_fs: FilesystemHandle, src: str, dst: str
) -> bool:
    """Return True if both names refer to one entry of the same storage.

    Handles with equal ``uri`` are taken to share their storage. Invalid
    names never match.
    """
    if src_fs is not dst_fs and src_fs.uri != dst_fs.uri:
        return False
    try:
        return join_components(split_components(src)) == join_components(
            split_components(dst)
        )
    except InvalidPathError:
        return False


def _sync(fd: BinaryIO) -> None:
    fd.flush()
    try:
        fileno = fd.fileno()
    except (AttributeError, io.UnsupportedOperation):
        # In-memory streams are durable once closed.
        return
    os.fsync(fileno)


def _close_quietly(fd: BinaryIO, name: str, log: Any) -> None:
    try:
        fd.close()
    except OSError as e:
        log.warning("move.close_failed", name=name, error=str(e))


def _stream(
    src_fd: BinaryIO, dst_fd: BinaryIO, src: str, dst: str, buffer_size: int
) -> int:
    copied = 0
    while True:
        try:
            chunk = src_fd.read(buffer_size)
        except OSError as e:
            raise SourceReadError(
                src, dst, f"read failed after {copied} bytes: {e}"
            ) from e
        if not chunk:
            return copied
        try:
            written = dst_fd.write(chunk)
        except OSError as e:
            raise DestinationWriteError(
                src, dst, f"write failed after {copied} bytes: {e}"
            ) from e
        if written is not None and written != len(chunk):
            raise DestinationWriteError(
                src, dst, f"short write: {written} of {len(chunk)} bytes"
            )
        copied += len(chunk)


def copy_file(
    src_fs: FilesystemHandle,
    dst_fs: FilesystemHandle,
    src: str,
    dst: str,
    *,
    settings: Settings | None = None,
    logger: Any = None,
) -> int:
    """Copy the content of ``src`` on ``src_fs`` to ``dst`` on ``dst_fs``.

    The destination is created or truncated, written in full, flushed and
    synced before it is closed. The source is never modified. If the copy
    fails after the destination was created, the partial destination is
    removed.

    Copying a file onto itself would truncate it before it is read, so a
    destination that names the source on the same storage (see
    ``is_same_file``) is refused before anything is opened.

    Args:
        src_fs: Filesystem holding the source
        dst_fs: Filesystem receiving the copy
        src: Source name
        dst: Destination name
        settings: Settings supplying the copy buffer size
        logger: Optional structlog logger instance

    Returns:
        Number of bytes copied

    Raises:
        SourceNotFoundError: If the source does not exist
        SourceReadError: If the source cannot be opened or read, or its
            name is invalid
        DestinationWriteError: If the destination cannot be created,
            written, synced or closed, its name is invalid, or it is the
            source itself
    """
    buffer_size = (settings or load_settings()).copy_buffer_size
    log = (logger or structlog.get_logger(__name__)).bind(src=src, dst=dst)
    created = False

    if is_same_file(src_fs, dst_fs, src, dst):
        raise DestinationWriteError(
            src, dst, "source and destination are the same file"
        )

    try:
        with ExitStack() as stack:
            try:
                src_fd = src_fs.open(src)
            except FileNotFoundError as e:
                raise SourceNotFoundError(src, dst, "source does not exist") from e
            except (OSError, InvalidPathError) as e:
                raise SourceReadError(src, dst, f"cannot open source: {e}") from e
            stack.callback(_close_quietly, src_fd, src, log)

            try:
                dst_fd = dst_fs.create(dst)
            except (OSError, InvalidPathError) as e:
                raise DestinationWriteError(
                    src, dst, f"cannot create destination: {e}"
                ) from e
            created = True
            stack.callback(_close_quietly, dst_fd, dst, log)

            copied = _stream(src_fd, dst_fd, src, dst, buffer_size)

            try:
                _sync(dst_fd)
                dst_fd.close()
            except OSError as e:
                raise DestinationWriteError(
                    src, dst, f"cannot sync destination: {e}"
                ) from e
    except (SourceReadError, DestinationWriteError):
        if created:
            try:
                dst_fs.remove(dst)
            except OSError as cleanup_e:
                log.warning("move.partial_cleanup_failed", error=str(cleanup_e))
        raise

    return copied


def _rename_failure(
    fs: FilesystemHandle, src: str, dst: str, exc: Exception
) -> MoveError:
    if isinstance(exc, InvalidPathError):
        return RenameError(src, dst, str(exc))
    if (
        isinstance(exc, FileNotFoundError)
        and classify(fs, src).kind is EntryKind.ABSENT
    ):
        return SourceNotFoundError(src, dst, "source does not exist")
    return RenameError(src, dst, f"rename failed: {exc}")


def rename_or_copy(
    src_fs: FilesystemHandle,
    dst_fs: FilesystemHandle,
    src: str,
    dst: str,
    *,
    cross_device: CrossDevicePredicate = is_cross_device_error,
    settings: Settings | None = None,
    logger: Any = None,
) -> MoveOutcome:
    """Move ``src`` on ``src_fs`` to ``dst`` on ``dst_fs``.

    When both handles are the same object the move is a single rename. If
    the handles differ, or the rename fails with an error ``cross_device``
    accepts, the file is copied and the source removed afterwards.

    Args:
        src_fs: Filesystem holding the source
        dst_fs: Filesystem receiving the file
        src: Source name
        dst: Destination name; existing content is replaced
        cross_device: Predicate deciding whether a rename failure should
            fall back to copying
        settings: Settings supplying the copy buffer size
        logger: Optional structlog logger instance

    Returns:
        MoveOutcome describing how the move was performed

    Raises:
        SourceNotFoundError: If the source does not exist
        RenameError: If a same-filesystem rename fails for another reason,
            a name is invalid, or two handles on the same storage are asked
            to move a file onto itself
        SourceReadError: If the source cannot be read during a copy
        DestinationWriteError: If the destination cannot be written; the
            source is left in place
        SourceCleanupError: If the copy succeeded but the source could not
            be removed
    """
    base_logger = logger or structlog.get_logger(__name__)
    log = base_logger.bind(src=src, dst=dst)

    if src_fs is dst_fs:
        try:
            src_fs.rename(src, dst)
        except InvalidPathError as e:
            log.warning("move.rename_failed", error=str(e))
            raise _rename_failure(src_fs, src, dst, e) from e
        except OSError as e:
            if not cross_device(e):
                log.warning("move.rename_failed", error=str(e))
                raise _rename_failure(src_fs, src, dst, e) from e
            log.info("move.rename_cross_device", error=str(e))
        else:
            log.info("move.renamed", op="rename")
            return MoveOutcome(src=src, dst=dst, op="rename")
    elif is_same_file(src_fs, dst_fs, src, dst):
        log.warning("move.same_file")
        raise RenameError(src, dst, "source and destination are the same file")

    try:
        copied = copy_file(
            src_fs, dst_fs, src, dst, settings=settings, logger=base_logger
        )
    except MoveError as e:
        log.warning("move.copy_failed", error_code=e.error_code, reason=e.reason)
        raise

    try:
        src_fs.remove(src)
    except OSError as e:
        log.warning("move.cleanup_failed", bytes_copied=copied, error=str(e))
        raise SourceCleanupError(
            src, dst, f"cannot remove source: {e}", bytes_copied=copied
        ) from e

    log.info("move.copied", op="copy", bytes_copied=copied)
    return MoveOutcome(src=src, dst=dst, op="copy", bytes_copied=copied)
