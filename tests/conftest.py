"""Shared fixtures: deterministic clock, ids and in-memory storage."""

from datetime import datetime, timedelta, timezone

import pytest

from boulderbody.core.lifecycle import SessionLifecycle
from boulderbody.errors import StorageUnavailableError
from boulderbody.io.kv_store import MemoryKeyValueStore
from boulderbody.io.session_store import SessionStore

T0 = datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class SequentialIds:
    """Id generator producing id-1, id-2, ..."""

    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count}"


class FlakyWrites(MemoryKeyValueStore):
    """Memory store that rejects writes while ``broken`` is set."""

    broken = False

    def set(self, key: str, value: bytes) -> None:
        if self.broken:
            raise StorageUnavailableError(f"disk unplugged, cannot write {key}")
        super().set(key, value)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def store(kv) -> SessionStore:
    return SessionStore(kv)


@pytest.fixture
def lifecycle(store, clock, ids) -> SessionLifecycle:
    return SessionLifecycle(store, clock=clock, id_factory=ids)
