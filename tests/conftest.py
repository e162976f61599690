"""
Pytest configuration and shared test fixtures.

Provides an in-memory async store emulating the Redis GET/SET-with-expiry
behaviour the cache relies on, an event recorder standing in for the
logger sink, and cache instances wired to both.
"""

import asyncio
from typing import Optional
from unittest.mock import MagicMock

import pytest

from descript_redis_cache.cache.engine import Cache
from descript_redis_cache.cache.events import EventType, LifecycleEvent
from descript_redis_cache.core.config import CacheOptions, SerializationPolicy


class InMemoryStore:
    """
    Async key-value store keeping payloads in a dict.

    ``read_gate`` can be cleared to hold reads until the test releases them;
    ``read_error`` / ``write_error`` make the next operations fail.
    """

    def __init__(self) -> None:
        self.client = MagicMock(name="redis-client")
        self.data: dict[str, bytes] = {}
        self.expirations: dict[str, int] = {}
        self.reads: list[str] = []
        self.writes: list[tuple[str, str, int]] = []
        self.read_gate = asyncio.Event()
        self.read_gate.set()
        self.read_completed = asyncio.Event()
        self.read_cancelled = False
        self.read_error: Optional[Exception] = None
        self.write_error: Optional[Exception] = None
        self.acknowledge_writes = True
        self.closed = False

    async def read(self, key: str) -> Optional[bytes]:
        self.reads.append(key)
        try:
            await self.read_gate.wait()
        except asyncio.CancelledError:
            self.read_cancelled = True
            raise
        self.read_completed.set()
        if self.read_error is not None:
            raise self.read_error
        return self.data.get(key)

    async def write(self, key: str, value: str, expire_seconds: int) -> bool:
        self.writes.append((key, value, expire_seconds))
        if self.write_error is not None:
            raise self.write_error
        if not self.acknowledge_writes:
            return False
        self.data[key] = value.encode("utf-8")
        self.expirations[key] = expire_seconds
        return True

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self.closed = True


class EventRecorder:
    """Logger sink collecting lifecycle events."""

    def __init__(self) -> None:
        self.events: list[LifecycleEvent] = []

    def log(self, event: LifecycleEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[EventType]:
        return [event.type for event in self.events]

    def of_type(self, event_type: EventType) -> list[LifecycleEvent]:
        return [event for event in self.events if event.type == event_type]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def make_store():
    """Factory for additional in-memory stores."""
    return InMemoryStore


@pytest.fixture
def store() -> InMemoryStore:
    """In-memory store shared by reads and writes."""
    return InMemoryStore()


@pytest.fixture
def recorder() -> EventRecorder:
    """Lifecycle event recorder."""
    return EventRecorder()


@pytest.fixture
def options() -> CacheOptions:
    """Cache options with a short read timeout."""
    return CacheOptions(read_timeout=50)


@pytest.fixture
def cache(options: CacheOptions, recorder: EventRecorder, store: InMemoryStore) -> Cache:
    """
    Cache wired to the in-memory store and event recorder.

    The initialization event is cleared so tests only see operation events.
    """
    instance = Cache(options, recorder, reader=store, writer=store)
    recorder.clear()
    return instance


@pytest.fixture
def http_cache(recorder: EventRecorder, store: InMemoryStore) -> Cache:
    """Cache persisting only the HTTP response fields."""
    instance = Cache(
        CacheOptions(read_timeout=50, serialization=SerializationPolicy.HTTP_RESPONSE),
        recorder,
        reader=store,
        writer=store,
    )
    recorder.clear()
    return instance
