"""Custom exceptions for treesync.

This module defines the typed exceptions raised by the filesystem
primitives. Move failures are split by where they happened so callers can
tell a lost write from a leftover source.
"""

from typing import Any


class TreeSyncError(Exception):
    """Base exception for all treesync errors.

    All custom exceptions inherit from this base class to allow for broad
    exception handling when needed.
    """

    pass


class InvalidPathError(TreeSyncError, ValueError):
    """Raised when a name cannot be resolved below a filesystem root.

    Attributes:
        path: The offending name
        reason: Human-readable reason the name was rejected
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid path {path!r}: {reason}")

    def __repr__(self) -> str:
        """Return repr string for debugging."""
        return f"InvalidPathError(path={self.path!r}, reason={self.reason!r})"


class MoveError(TreeSyncError):
    """Raised when moving a file between two names fails.

    The underlying OSError, when there is one, is chained as ``__cause__``.

    Attributes:
        src: Source name on the source filesystem
        dst: Destination name on the destination filesystem
        reason: Human-readable description of the failure
        severity: "error" when the move did not happen, "warning" when the
            destination was written but something was left behind
    """

    error_code = "move_failed"
    severity = "error"

    def __init__(self, src: str, dst: str, reason: str) -> None:
        """Initialize MoveError.

        Args:
            src: Source name
            dst: Destination name
            reason: Reason for the failure
        """
        self.src = src
        self.dst = dst
        self.reason = reason
        super().__init__(f"Move {src!r} -> {dst!r} failed: {reason}")

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured reporting.

        Returns:
            Dictionary representation suitable for JSON output
        """
        result: dict[str, Any] = {
            "error": self.error_code,
            "severity": self.severity,
            "src": self.src,
            "dst": self.dst,
            "reason": self.reason,
        }
        cause = self.__cause__
        if isinstance(cause, OSError) and cause.errno is not None:
            result["errno"] = cause.errno
        return result

    def __repr__(self) -> str:
        """Return repr string for debugging."""
        return (
            f"{type(self).__name__}(src={self.src!r}, "
            f"dst={self.dst!r}, reason={self.reason!r})"
        )


class SourceNotFoundError(MoveError):
    """Raised when the source of a move does not exist."""

    error_code = "source_not_found"


class SourceReadError(MoveError):
    """Raised when the source could not be opened or read during a copy."""

    error_code = "source_read_failed"


class DestinationWriteError(MoveError):
    """Raised when the destination could not be created, written or synced.

    The source is always left in place when this is raised.
    """

    error_code = "destination_write_failed"


class RenameError(MoveError):
    """Raised when a same-filesystem rename fails for a reason other than
    crossing a device boundary."""

    error_code = "rename_failed"


class SourceCleanupError(MoveError):
    """Raised when the copy completed but the source could not be removed.

    The destination holds the full content; the source is a duplicate that
    the caller may remove later.

    Attributes:
        bytes_copied: Number of bytes written to the destination
        copied: Always True, the destination is complete
    """

    error_code = "source_cleanup_failed"
    severity = "warning"
    copied = True

    def __init__(self, src: str, dst: str, reason: str, bytes_copied: int) -> None:
        self.bytes_copied = bytes_copied
        super().__init__(src, dst, reason)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured reporting."""
        result = super().to_dict()
        result["copied"] = self.copied
        result["bytes_copied"] = self.bytes_copied
        return result
