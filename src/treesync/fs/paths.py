"""Path utilities for filesystem handles.

Names handed to a filesystem handle are canonical: relative to the handle's
root and separated by forward slashes. These helpers convert between that
form and the platform's native separator and split names into components.
"""

import os
from collections.abc import Iterable

from treesync.core.errors import InvalidPathError


def native_filename(name: str) -> str:
    """Convert a canonical slash-separated name to the native separator.

    Args:
        name: Canonical name, e.g. ``"05/7a/4d52f284145b9fe8"``

    Returns:
        The same name using ``os.sep``
    """
    if os.sep == "/":
        return name
    return name.replace("/", os.sep)


def canonical_filename(name: str) -> str:
    """Convert a native name to the canonical slash-separated form."""
    if os.sep == "/":
        return name
    return name.replace(os.sep, "/")


def split_components(name: str) -> tuple[str, ...]:
    """Split a name into its path components.

    Empty and ``.`` components are dropped, so ``"a//./b/"`` yields
    ``("a", "b")`` and the root itself yields ``()``.

    Args:
        name: Canonical or native relative name

    Returns:
        Tuple of components in order from the root

    Raises:
        InvalidPathError: If a component is ``..``
    """
    parts: list[str] = []
    for part in canonical_filename(name).split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            raise InvalidPathError(name, "parent directory references escape the root")
        parts.append(part)
    return tuple(parts)


def join_components(parts: Iterable[str]) -> str:
    """Join components back into a canonical name."""
    return "/".join(parts)
