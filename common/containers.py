import os

from dependency_injector import containers, providers

from common.file_ops import DEFAULT_MAX_READ_BYTES
from common.file_watcher.channel import ChangeChannel
from common.file_watcher.debounce import DEFAULT_WINDOW_SECONDS
from common.file_watcher.manager import WatchdogWatchManager

DEFAULT_CONFIG = {
    "log_dir": ".explorer",
    "watch": {
        "debounce_seconds": DEFAULT_WINDOW_SECONDS,
        "lock_timeout": None,
    },
    "files": {
        "max_read_bytes": DEFAULT_MAX_READ_BYTES,
    },
}


class ExplorerContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    change_channel = providers.Singleton(ChangeChannel)

    watch_manager = providers.Singleton(
        WatchdogWatchManager,
        channel=change_channel,
        debounce_seconds=config.watch.debounce_seconds,
        lock_timeout=config.watch.lock_timeout,
    )


def load_config(target: ExplorerContainer) -> None:
    """Apply defaults, then EXPLORER_* environment overrides."""
    target.config.from_dict(DEFAULT_CONFIG)
    target.config.log_dir.from_env("EXPLORER_LOG_DIR", default=DEFAULT_CONFIG["log_dir"])
    target.config.watch.debounce_seconds.from_env(
        "EXPLORER_DEBOUNCE_SECONDS", as_=float, default=DEFAULT_WINDOW_SECONDS
    )
    target.config.files.max_read_bytes.from_env(
        "EXPLORER_MAX_READ_BYTES", as_=int, default=DEFAULT_MAX_READ_BYTES
    )
    if "EXPLORER_LOCK_TIMEOUT" in os.environ:
        target.config.watch.lock_timeout.from_env("EXPLORER_LOCK_TIMEOUT", as_=float)


container = ExplorerContainer()
load_config(container)
