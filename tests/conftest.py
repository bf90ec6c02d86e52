"""
Shared test fixtures for the file relay test suite.

Every test gets settings rooted in its own temporary directory and a
controllable clock, so TTL and refill behaviour is tested without sleeping.
"""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from filerelay.config.settings import RelaySettings, Settings
from filerelay.storage.file_store import FileStore
from filerelay.storage.resource_store import ResourceStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedRandom(random.Random):
    """random.Random whose randrange() replays a fixed script, then repeats the last value."""

    def __init__(self, values: list[int]) -> None:
        super().__init__(0)
        self._values = list(values)
        self.calls = 0

    def randrange(self, *args, **kwargs) -> int:
        self.calls += 1
        if len(self._values) > 1:
            return self._values.pop(0)
        return self._values[0]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temp directory."""
    s = Settings(project_root=tmp_path)
    s.ensure_dirs()
    return s


@pytest.fixture
def relay_settings() -> RelaySettings:
    return RelaySettings()


@pytest.fixture
def store(relay_settings: RelaySettings, clock: FakeClock) -> ResourceStore:
    """ResourceStore on the fake clock with default relay settings."""
    return ResourceStore(relay_settings, clock=clock)


@pytest.fixture
def file_store(tmp_path: Path) -> FileStore:
    return FileStore(tmp_path / "uploads")
