"""Shared pytest fixtures for unit tests."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Ensure project root is on sys.path for imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class FakeClock:
    """Controllable time source; call it to read the current time."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at 2024-01-01 00:00:00 until advanced."""
    return FakeClock()
