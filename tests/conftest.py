"""
Pytest configuration and fixtures for studyr tests.
"""

import pytest
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Configure pytest-asyncio
pytest_plugins = ["pytest_asyncio"]

# Add packages to path for testing
packages_dir = Path(__file__).parent.parent / "packages"
sys.path.insert(0, str(packages_dir / "studyr-core"))
sys.path.insert(0, str(packages_dir / "studyr-mcp"))


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class ManualTicker:
    """Ticker driven by the test instead of the event loop."""

    def __init__(self):
        self._callback = None
        self.starts = 0

    def start(self, callback) -> None:
        self._callback = callback
        self.starts += 1

    def cancel(self) -> None:
        self._callback = None

    @property
    def active(self) -> bool:
        return self._callback is not None

    def fire(self, times: int = 1) -> int:
        """Deliver up to `times` ticks; stops early once cancelled."""
        fired = 0
        while fired < times and self._callback is not None:
            self._callback()
            fired += 1
        return fired


class RecordingNotifier:
    """Notifier that remembers what it was asked to send."""

    def __init__(self):
        self.sent = []

    async def send_immediate(self, title, body, data=None):
        self.sent.append({"title": title, "body": body, "data": data})


class RecordingPresenter:
    """Alert presenter that remembers every alert shown."""

    def __init__(self):
        self.shown = []

    def show_success(self, title, message):
        self.shown.append(("success", title, message))

    def show_warning(self, title, message):
        self.shown.append(("warning", title, message))

    def show_error(self, title, message):
        self.shown.append(("error", title, message))

    def show_info(self, title, message):
        self.shown.append(("info", title, message))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / ".studyr"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def clock():
    """Fake clock fixed at Wednesday 2024-03-13 10:00 local time."""
    return FakeClock(datetime(2024, 3, 13, 10, 0, 0))


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def memory_store():
    """Fresh in-memory key-value store."""
    from studyr.store.memory import MemoryStore

    return MemoryStore()


@pytest.fixture
def sample_task_data():
    """Sample task data for testing."""
    return {
        "title": "Problem Set 4",
        "description": "Graph theory exercises",
        "priority": "high",
        "task_type": "assignment",
        "difficulty": "hard",
        "weight": 10,
    }
