"""
Pytest configuration and fixtures for TriBot tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from tribot.datatypes.discord_datatypes import UserID  # noqa: E402
from tribot.state.state_store import StateSnapshot, StateStore  # noqa: E402


ADMIN_ID = 100
USER_ID = 200
OTHER_ID = 300


class FakeClock:
    """Settable epoch-millis clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    return tmp_path / "state.json"


@pytest.fixture
def store(state_path: Path) -> StateStore:
    """Store with one admin, bound to a temporary state file."""
    snapshot = StateSnapshot(admins={UserID(ADMIN_ID)}, source_path=state_path)
    return StateStore(snapshot)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
