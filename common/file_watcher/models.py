"""Data models for the watch subsystem."""

from typing import Tuple

from pydantic import BaseModel, ConfigDict

CREATED = "created"
MODIFIED = "modified"
REMOVED = "removed"
RENAMED = "renamed"


class FilesystemChange(BaseModel):
    """One debounced change batch: every path touched by a single kind of event."""

    model_config = ConfigDict(frozen=True)

    kind: str
    paths: Tuple[str, ...]
