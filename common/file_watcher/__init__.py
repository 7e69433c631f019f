"""Filesystem watch subsystem: one debounced watch at a time."""

from .base import BaseWatchManager
from .channel import FS_CHANGE_EVENT, FS_ERROR_EVENT, ChangeChannel, ChangeStream, Subscription
from .debounce import ChangeDebouncer
from .manager import WatchdogWatchManager
from .models import FilesystemChange

__all__ = [
    "BaseWatchManager",
    "ChangeChannel",
    "ChangeDebouncer",
    "ChangeStream",
    "FS_CHANGE_EVENT",
    "FS_ERROR_EVENT",
    "FilesystemChange",
    "Subscription",
    "WatchdogWatchManager",
]
