"""Pytest configuration and fixtures for metro_core tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class FakeClock:
    """Microsecond clock that only moves when told to (or by ``step`` per read)."""

    def __init__(self, start: int = 0, step: int = 0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> int:
        current = self.now
        self.now += self.step
        return current

    def advance(self, micros: int) -> int:
        self.now += micros
        return self.now


def pytest_configure(config: pytest.Config) -> None:  # pragma: no cover - pytest hook
    config.addinivalue_line("markers", "threaded: tests that start worker threads")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
