import os

# Must be set before database.py is imported by any test module
os.environ.setdefault("HANOI_DATABASE_URL", "sqlite://")

import pytest

from errors import PersistenceUnavailable
from storage import KeyValueStore, MemoryStore


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingStore(KeyValueStore):
    def get(self, key):
        raise PersistenceUnavailable("storage disabled")

    def set(self, key, value):
        raise PersistenceUnavailable("storage full")

    def remove(self, key):
        raise PersistenceUnavailable("storage disabled")


class CountingStore(MemoryStore):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = 0

    def set(self, key, value):
        self.writes += 1
        super().set(key, value)


# Optimal 3-disk solution as (source, destination) pole pairs
OPTIMAL_3 = [(0, 2), (0, 1), (2, 1), (0, 2), (1, 0), (1, 2), (0, 2)]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> CountingStore:
    return CountingStore()
