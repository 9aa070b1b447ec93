"""Shared fixtures for A/B testing tests."""
import pytest

from src.ab_testing.registry import ExperimentRegistry, DEFAULT_EXPERIMENTS
from src.ab_testing.storage import InMemoryStorage, StorageError
from src.ab_testing.store import AssignmentStore


class FailingStorage:
    """Storage that is always unavailable (quota exceeded, disabled)."""

    def get_item(self, key):
        raise StorageError("storage disabled")

    def set_item(self, key, value):
        raise StorageError("quota exceeded")

    def remove_item(self, key):
        raise StorageError("storage disabled")


class FakeClock:
    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def registry():
    return ExperimentRegistry(DEFAULT_EXPERIMENTS)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(registry, storage, clock):
    return AssignmentStore(registry, storage, subject_id="subject_001", clock=clock)


@pytest.fixture
def failing_storage():
    return FailingStorage()
