"""Explorer commands controlling the filesystem watch."""

from typing import Optional

from common.containers import container
from common.decorators import Command


@Command
def start_watch(path: str) -> str:
    """Watch a directory (non-recursively), replacing any active watch.

    Changes are pushed on the "fs-change" channel in debounced batches.

    Args:
        path: Directory to watch.

    Returns:
        Status message
    """
    manager = container.watch_manager()
    manager.start_watch(path)
    return f"Watching: {manager.watched_path}"


@Command
def stop_watch() -> str:
    """Stop the active watch; succeeds when nothing is being watched."""
    manager = container.watch_manager()
    previous = manager.watched_path
    manager.stop_watch()
    if previous is None:
        return "No active watch"
    return f"Stopped watching: {previous}"


@Command
def watch_status() -> Optional[str]:
    """Return the watched directory, or null when nothing is watched."""
    return container.watch_manager().watched_path


file_watcher_commands = [start_watch, stop_watch, watch_status]
