"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fluency.adaptive.config import DEFAULT_CONFIG  # noqa: E402
from fluency.adaptive.memory_model import MemoryModel  # noqa: E402
from fluency.adaptive.selector import AdaptiveSelector  # noqa: E402
from fluency.storage.memory import MemoryStorage  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Controllable clock; call it to read, advance() to move forward."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, hours: float = 0, **kwargs) -> datetime:
        self.now += timedelta(hours=hours, **kwargs)
        return self.now


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    """Provide a fixed, advanceable clock."""
    return FakeClock()


@pytest.fixture
def rng():
    """Provide a seeded random source so selection is reproducible."""
    return random.Random(1234)


@pytest.fixture
def storage():
    """Provide an empty in-memory storage adapter."""
    return MemoryStorage()


@pytest.fixture
def config():
    """Provide the default adaptive config."""
    return DEFAULT_CONFIG


@pytest.fixture
def model(storage, clock):
    """Provide a memory model over in-memory storage."""
    return MemoryModel(storage, DEFAULT_CONFIG, clock=clock)


@pytest.fixture
def selector(storage, rng, clock):
    """Provide a selector over in-memory storage."""
    return AdaptiveSelector(storage, DEFAULT_CONFIG, rng=rng, clock=clock)


@pytest.fixture
def sample_items():
    """Provide a small pool of note items."""
    return ["C", "D", "E", "F", "G", "A", "B"]
