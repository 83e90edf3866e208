"""Trace output for the filesystem handles and the deletion check.

``TREESYNC_DEBUG=1`` (or ``true``/``yes``) turns tracing on; it is read once,
when this module is first imported.
"""

import os
import sys
from typing import Any

_DEBUG_ENABLED = os.environ.get("TREESYNC_DEBUG", "").lower() in (
    "1",
    "true",
    "yes",
)


def debug(msg: Any) -> None:
    """Write ``[DEBUG] msg`` to stdout when tracing is on."""
    if _DEBUG_ENABLED:
        print(f"[DEBUG] {msg}", file=sys.stdout)
