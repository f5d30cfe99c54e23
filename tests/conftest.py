"""Shared fixtures for taskboard tests."""

import tempfile
from pathlib import Path

import pytest
import structlog

from taskboard.repository import BoardRepository
from taskboard.storage import JsonStorage


@pytest.fixture(autouse=True)
def reset_structlog():
    """Drop logging configuration made by a test (e.g. through cli.main)."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def temp_storage():
    """Create a temporary storage file path for testing."""
    with tempfile.NamedTemporaryFile(mode="w", delete=False, suffix=".json") as f:
        temp_path = f.name
    # Delete the file immediately - we just need the path
    Path(temp_path).unlink()
    yield temp_path
    # Cleanup
    path = Path(temp_path)
    if path.exists():
        path.unlink()


@pytest.fixture
def repo(temp_storage):
    """Create a BoardRepository with temporary storage."""
    return BoardRepository(JsonStorage(temp_storage))


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
