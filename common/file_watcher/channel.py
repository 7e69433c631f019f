"""Push channel carrying debounced changes to the UI layer."""

import queue
import threading
import time
from typing import Callable, List, Optional

from common.errors import WatchDeliveryError
from common.file_watcher.models import FilesystemChange
from common.utils import logger

FS_CHANGE_EVENT = "fs-change"
FS_ERROR_EVENT = "fs-error"

ChangeListener = Callable[[FilesystemChange], None]
ErrorListener = Callable[[WatchDeliveryError], None]


class Subscription:
    """Handle returned by ``ChangeChannel.subscribe``."""

    def __init__(
        self,
        channel: "ChangeChannel",
        listener: ChangeListener,
        on_error: Optional[ErrorListener] = None,
    ) -> None:
        self.channel = channel
        self.listener = listener
        self.on_error = on_error

    @property
    def active(self) -> bool:
        return self.channel.current is self

    def cancel(self) -> None:
        self.channel.unsubscribe(self)


class ChangeStream(Subscription):
    """Queue-backed subscription for consumers that pull changes."""

    def __init__(self, channel: "ChangeChannel") -> None:
        super().__init__(channel, self._put, self._put_error)
        self._changes: "queue.Queue[FilesystemChange]" = queue.Queue()
        self.errors: List[WatchDeliveryError] = []

    def _put(self, change: FilesystemChange) -> None:
        self._changes.put(change)

    def _put_error(self, error: WatchDeliveryError) -> None:
        self.errors.append(error)

    def get(self, timeout: Optional[float] = None) -> Optional[FilesystemChange]:
        """Next change, or None when nothing arrives within ``timeout``."""
        try:
            return self._changes.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self, quiet: float = 1.0, limit: float = 10.0) -> List[FilesystemChange]:
        """Collect changes until none arrive for ``quiet`` seconds."""
        collected: List[FilesystemChange] = []
        deadline = time.monotonic() + limit
        while time.monotonic() < deadline:
            change = self.get(timeout=quiet)
            if change is None:
                break
            collected.append(change)
        return collected


class ChangeChannel:
    """Single-consumer, best-effort delivery of ``FilesystemChange`` messages.

    Subscribing replaces any previous subscriber. Messages published while
    nobody listens are dropped; there is no replay.
    """

    def __init__(self) -> None:
        self._subscription: Optional[Subscription] = None
        self._lock = threading.Lock()

    @property
    def current(self) -> Optional[Subscription]:
        with self._lock:
            return self._subscription

    def subscribe(
        self, listener: ChangeListener, on_error: Optional[ErrorListener] = None
    ) -> Subscription:
        subscription = Subscription(self, listener, on_error)
        self._install(subscription)
        return subscription

    def stream(self) -> ChangeStream:
        subscription = ChangeStream(self)
        self._install(subscription)
        return subscription

    def _install(self, subscription: Subscription) -> None:
        with self._lock:
            if self._subscription is not None:
                logger.debug("Replacing existing change subscriber")
            self._subscription = subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if self._subscription is subscription:
                self._subscription = None

    def publish(self, change: FilesystemChange) -> None:
        subscription = self.current
        if subscription is None:
            logger.debug(f"No subscriber, dropping {change.kind} change")
            return

        try:
            subscription.listener(change)
        except Exception as e:
            logger.error(f"Change listener failed on {change.kind}: {e}")

    def publish_error(self, error: WatchDeliveryError) -> None:
        subscription = self.current
        if subscription is None or subscription.on_error is None:
            return

        try:
            subscription.on_error(error)
        except Exception as e:
            logger.error(f"Error listener failed: {e}")
