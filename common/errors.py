"""Error types surfaced by the explorer backend."""


class ExplorerError(Exception):
    """Base class for every caller-facing error; str() is the user message."""


class FileOperationError(ExplorerError):
    """A file or folder operation could not be completed."""


class CommandNotFoundError(ExplorerError):
    """No command is registered under the requested name."""


class WatchError(ExplorerError):
    """Base class for watch manager failures."""


class LockContentionError(WatchError):
    """The shared watch state could not be acquired."""


class WatcherConstructionError(WatchError):
    """The OS-level observer could not be created."""


class WatchInstallError(WatchError):
    """The OS refused to watch the requested path."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to watch {path}: {reason}")
        self.path = path
        self.reason = reason


class WatchDeliveryError(WatchError):
    """The observer reported an error instead of an event batch."""

    def __init__(self, watched_path: str, reason: str) -> None:
        super().__init__(f"Watch on {watched_path} reported an error: {reason}")
        self.watched_path = watched_path
        self.reason = reason
