"""Base watch manager interface."""

from abc import ABC, abstractmethod
from typing import Optional


class BaseWatchManager(ABC):
    """Abstract base class for single-session watch managers."""

    @abstractmethod
    def start_watch(self, path: str) -> None:
        """Watch ``path`` (non-recursively), replacing any active watch.

        The previous session is always torn down first, even when the new
        watch then fails to install.

        Args:
            path: Directory to watch

        Raises:
            LockContentionError: If the shared watch state cannot be acquired
            WatcherConstructionError: If the observer cannot be created
            WatchInstallError: If the OS refuses to watch the path
        """
        pass

    @abstractmethod
    def stop_watch(self) -> None:
        """Tear down the active watch, if any.

        Raises:
            LockContentionError: If the shared watch state cannot be acquired
        """
        pass

    @property
    @abstractmethod
    def watched_path(self) -> Optional[str]:
        """Path bound to the active session, or None when idle."""
        pass

    def is_watching(self) -> bool:
        return self.watched_path is not None
