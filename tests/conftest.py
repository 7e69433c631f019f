"""Pytest configuration and shared fixtures for the explorer backend tests."""

import threading
from pathlib import Path
from typing import Any, Callable, Generator, List

import pytest

from common.containers import container
from common.file_watcher.channel import ChangeChannel, ChangeStream
from common.file_watcher.manager import WatchdogWatchManager
from common.utils import logger

from tests.fakes import FakeTimer


@pytest.fixture
def fake_timers() -> List[FakeTimer]:
    """Timers created by a debouncer built with ``timer_factory=fake_timer_factory``."""
    return []


@pytest.fixture
def fake_timer_factory(fake_timers: List[FakeTimer]) -> Callable[[float, Callable[[], None]], FakeTimer]:
    def factory(interval: float, function: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, function)
        fake_timers.append(timer)
        return timer

    return factory


@pytest.fixture
def log_messages() -> Generator[List[str], None, None]:
    """Capture loguru messages emitted during the test."""
    messages: List[str] = []
    lock = threading.Lock()

    def sink(message: Any) -> None:
        with lock:
            messages.append(f"{message.record['level'].name}: {message.record['message']}")

    handler_id = logger.add(sink, level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def channel() -> ChangeChannel:
    return ChangeChannel()


@pytest.fixture
def stream(channel: ChangeChannel) -> ChangeStream:
    return channel.stream()


@pytest.fixture
def watch_manager(channel: ChangeChannel) -> Generator[WatchdogWatchManager, None, None]:
    """Manager backed by real watchdog observers."""
    manager = WatchdogWatchManager(channel=channel)
    yield manager
    manager.stop_watch()


@pytest.fixture
def explorer_dir(tmp_path: Path) -> Path:
    """Directory holding {"b.txt", "A/", "a.txt"}."""
    (tmp_path / "b.txt").write_text("bravo")
    (tmp_path / "A").mkdir()
    (tmp_path / "a.txt").write_text("alpha")
    return tmp_path


@pytest.fixture(autouse=True)
def reset_container_watch_manager() -> Generator[None, None, None]:
    """Keep the container's singleton manager from leaking watches between tests."""
    yield
    container.watch_manager().stop_watch()
    container.watch_manager.reset()
    container.change_channel.reset()
