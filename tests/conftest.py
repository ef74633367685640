from datetime import timedelta
from threading import Lock

import pytest

from lapse import Cache


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self._now = start
        self._mutex = Lock()

    def now(self) -> float:
        with self._mutex:
            return self._now

    def advance(self, delta: timedelta) -> None:
        with self._mutex:
            self._now += delta.total_seconds()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> Cache:
    return Cache(clock=clock)
