"""Concrete implementation of the watch manager using watchdog."""

import os
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from common.errors import (
    LockContentionError,
    WatchDeliveryError,
    WatcherConstructionError,
    WatchInstallError,
)
from common.utils import logger, lossy_text

from .base import BaseWatchManager
from .channel import ChangeChannel
from .debounce import DEFAULT_WINDOW_SECONDS, ChangeDebouncer
from .models import CREATED, MODIFIED, REMOVED, RENAMED, FilesystemChange

# watchdog event types we forward; opened/closed events are dropped
EVENT_KINDS = {
    "created": CREATED,
    "modified": MODIFIED,
    "deleted": REMOVED,
    "moved": RENAMED,
}


def _decode(path: Any) -> str:
    """Normalize a watchdog path (str or bytes) to an absolute, UTF-8 safe string."""
    return lossy_text(os.path.abspath(os.fsdecode(path)))


class WatchEventHandler(FileSystemEventHandler):
    """Translates watchdog events into debouncer input."""

    def __init__(
        self,
        watched_path: str,
        debouncer: ChangeDebouncer,
        on_error: Callable[[WatchDeliveryError], None],
    ) -> None:
        super().__init__()
        self.watched_path = watched_path
        self._root = lossy_text(watched_path)
        self.debouncer = debouncer
        self.on_error = on_error

    def dispatch(self, event: FileSystemEvent) -> None:
        try:
            super().dispatch(event)
        except Exception as e:
            self.on_error(WatchDeliveryError(self.watched_path, str(e)))

    def on_any_event(self, event: FileSystemEvent) -> None:
        kind = EVENT_KINDS.get(event.event_type)
        if kind is None:
            return

        src_path = _decode(event.src_path)

        # The parent directory echoes every child change as "modified"
        if kind == MODIFIED and src_path == self._root:
            return

        paths = [src_path]
        if kind == RENAMED and getattr(event, "dest_path", None):
            paths.append(_decode(event.dest_path))

        logger.debug(f"Raw event: {event.event_type} - {', '.join(paths)}")
        self.debouncer.push(kind, paths)

        if kind in (REMOVED, RENAMED) and src_path == self._root:
            self.on_error(
                WatchDeliveryError(self.watched_path, "watched directory is gone")
            )


class WatchSession:
    """The single active OS-level watch and its associated path."""

    def __init__(
        self,
        path: str,
        observer: Any,
        event_handler: WatchEventHandler,
        debouncer: ChangeDebouncer,
    ) -> None:
        self.path = path
        self.observer = observer
        self.event_handler = event_handler
        self.debouncer = debouncer
        self._is_running = False

    def start(self) -> None:
        """Install the watch; raises whatever the OS reports."""
        self.observer.schedule(self.event_handler, self.path, recursive=False)
        self.observer.start()
        self._is_running = True
        logger.info(f"Started watching {self.path}")

    def stop(self) -> None:
        """Release the OS watch and drop any pending window."""
        self.debouncer.close()
        if self._is_running:
            self.observer.stop()
            if self.observer is not threading.current_thread():
                self.observer.join(timeout=5.0)
            self._is_running = False
            logger.info(f"Stopped watching {self.path}")
        else:
            self.observer.unschedule_all()


class WatchdogWatchManager(BaseWatchManager):
    """Owns at most one ``WatchSession`` and publishes its changes.

    ``start_watch``/``stop_watch`` hold one non-recursive lock for the whole
    teardown-and-replace step. Notifications are delivered from the debounce
    timer thread without that lock, so a change from a replaced session may
    still arrive shortly after the swap.
    """

    def __init__(
        self,
        channel: ChangeChannel,
        debounce_seconds: float = DEFAULT_WINDOW_SECONDS,
        lock_timeout: Optional[float] = None,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        super().__init__()
        self.channel = channel
        self.debounce_seconds = debounce_seconds
        self.lock_timeout = lock_timeout
        self._observer_factory = observer_factory
        self._session: Optional[WatchSession] = None
        self._lock = threading.Lock()

    @contextmanager
    def _acquire(self) -> Iterator[None]:
        timeout = -1 if self.lock_timeout is None else self.lock_timeout
        if not self._lock.acquire(timeout=timeout):
            raise LockContentionError("Failed to acquire watcher state lock")
        try:
            yield
        finally:
            self._lock.release()

    @property
    def watched_path(self) -> Optional[str]:
        session = self._session
        return session.path if session is not None else None

    def start_watch(self, path: str) -> None:
        """Replace the active session with one watching ``path``."""
        watch_path = os.path.abspath(os.path.expanduser(path))

        with self._acquire():
            self._teardown()

            try:
                observer = self._observer_factory()
            except Exception as e:
                raise WatcherConstructionError(f"Failed to create watcher: {e}") from e

            debouncer = ChangeDebouncer(
                on_flush=self._deliver, window_seconds=self.debounce_seconds
            )
            event_handler = WatchEventHandler(
                watched_path=watch_path,
                debouncer=debouncer,
                on_error=self._report_error,
            )
            session = WatchSession(
                path=watch_path,
                observer=observer,
                event_handler=event_handler,
                debouncer=debouncer,
            )

            try:
                session.start()
            except Exception as e:
                reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
                try:
                    session.stop()
                except Exception as cleanup_error:
                    logger.warning(
                        f"Cleanup after failed watch on {watch_path}: {cleanup_error}"
                    )
                raise WatchInstallError(watch_path, reason) from e

            self._session = session

    def stop_watch(self) -> None:
        """Tear down the active session; a no-op when idle."""
        with self._acquire():
            self._teardown()

    def _teardown(self) -> None:
        session = self._session
        self._session = None
        if session is not None:
            session.stop()

    def _deliver(self, changes: List[FilesystemChange]) -> None:
        for change in changes:
            logger.info(f"Filesystem {change.kind}: {', '.join(change.paths)}")
            self.channel.publish(change)

    def _report_error(self, error: WatchDeliveryError) -> None:
        logger.error(str(error))
        self.channel.publish_error(error)
