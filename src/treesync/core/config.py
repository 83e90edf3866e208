"""Runtime settings for treesync.

Settings are a small pydantic model. ``load_settings`` fills it from the
environment so deployments can tune copy behaviour without code changes.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["DEFAULT_COPY_BUFFER_SIZE", "Settings", "load_settings"]

DEFAULT_COPY_BUFFER_SIZE = 128 * 1024
DEFAULT_FAKE_MAX_SIZE = 1 << 20


class Settings(BaseModel):
    """Tunables for the filesystem primitives.

    Attributes:
        copy_buffer_size: Chunk size in bytes used when streaming a copy
        fake_max_file_size: Upper bound for randomly generated fake files
    """

    model_config = ConfigDict(frozen=True)

    copy_buffer_size: int = Field(default=DEFAULT_COPY_BUFFER_SIZE, gt=0)
    fake_max_file_size: int = Field(default=DEFAULT_FAKE_MAX_SIZE, ge=0)


def load_settings() -> Settings:
    """Build settings from TREESYNC_* environment variables.

    Returns:
        Settings with any environment overrides applied.

    Raises:
        pydantic.ValidationError: If an override is not a valid value.
    """

    overrides: dict[str, str] = {}
    buffer_size = os.getenv("TREESYNC_COPY_BUFFER_SIZE")
    if buffer_size:
        overrides["copy_buffer_size"] = buffer_size
    fake_max = os.getenv("TREESYNC_FAKE_MAX_SIZE")
    if fake_max:
        overrides["fake_max_file_size"] = fake_max

    return Settings.model_validate(overrides)
