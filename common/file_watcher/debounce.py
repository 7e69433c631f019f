"""Time-windowed grouping of raw filesystem events.

The debouncer is a two-state machine:

- no window open: the first raw event opens a window and starts a one-shot
  timer of ``window_seconds``;
- window open: further events are grouped into the window, the timer is NOT
  restarted, so a burst is flushed at most ``window_seconds`` after its first
  event.

When the timer fires, the window is closed and one ``FilesystemChange`` per
kind is emitted, kinds ordered by first arrival, paths de-duplicated in
arrival order.
"""

import threading
from typing import Callable, Dict, List, Optional, Sequence

from common.file_watcher.models import FilesystemChange
from common.utils import logger

DEFAULT_WINDOW_SECONDS = 0.5

TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


def _daemon_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class ChangeDebouncer:
    """Collects raw events and flushes them as grouped changes."""

    def __init__(
        self,
        on_flush: Callable[[List[FilesystemChange]], None],
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        timer_factory: TimerFactory = _daemon_timer,
    ) -> None:
        self.on_flush = on_flush
        self.window_seconds = window_seconds
        self._timer_factory = timer_factory
        self._pending: Dict[str, List[str]] = {}
        self._timer: Optional[threading.Timer] = None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def window_open(self) -> bool:
        with self._lock:
            return self._timer is not None

    def push(self, kind: str, paths: Sequence[str]) -> None:
        """Add a raw event to the current window, opening one if needed."""
        with self._lock:
            if self._closed:
                return

            bucket = self._pending.setdefault(kind, [])
            for path in paths:
                if path not in bucket:
                    bucket.append(path)

            if self._timer is None:
                self._timer = self._timer_factory(self.window_seconds, self.flush)
                self._timer.start()

    def flush(self) -> List[FilesystemChange]:
        """Close the current window and emit its changes."""
        with self._lock:
            pending = self._pending
            self._pending = {}
            timer = self._timer
            self._timer = None
            closed = self._closed

        # An early flush must not let the armed timer close the next window
        if timer is not None and timer is not threading.current_thread():
            timer.cancel()

        if closed or not pending:
            return []

        changes = [
            FilesystemChange(kind=kind, paths=tuple(paths))
            for kind, paths in pending.items()
        ]
        logger.debug(f"Flushing {len(changes)} change group(s)")

        try:
            self.on_flush(changes)
        except Exception as e:
            logger.error(f"Error delivering filesystem changes: {e}")

        return changes

    def close(self) -> None:
        """Cancel the pending window; later events are ignored."""
        with self._lock:
            self._closed = True
            self._pending.clear()
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
