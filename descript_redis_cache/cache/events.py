"""
Cache lifecycle events.

Every cache operation emits a start event and exactly one terminal event.
Each event type is its own frozen model carrying only the fields relevant
to it, tagged by ``EventType``. Events are purely observational: they are
handed to the injected logger and never consumed by control flow.
"""

import time
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

from descript_redis_cache.core.config import CacheOptions


class EventType(str, Enum):
    """Lifecycle event identifiers."""

    INITIALIZED = "REDIS_CACHE_INITIALIZED"
    ERROR = "REDIS_CACHE_ERROR"

    JSON_PARSING_FAILED = "REDIS_CACHE_JSON_PARSING_FAILED"
    JSON_STRINGIFY_FAILED = "REDIS_CACHE_JSON_STRINGIFY_FAILED"

    READ_DONE = "REDIS_CACHE_READ_DONE"
    READ_ERROR = "REDIS_CACHE_READ_ERROR"
    READ_KEY_NOT_FOUND = "REDIS_CACHE_READ_KEY_NOT_FOUND"
    READ_START = "REDIS_CACHE_READ_START"
    READ_TIMEOUT = "REDIS_CACHE_READ_TIMEOUT"

    WRITE_DONE = "REDIS_CACHE_WRITE_DONE"
    WRITE_ERROR = "REDIS_CACHE_WRITE_ERROR"
    WRITE_FAILED = "REDIS_CACHE_WRITE_FAILED"
    WRITE_START = "REDIS_CACHE_WRITE_START"


class Stopwatch:
    """Monotonic elapsed-time measurement started on construction."""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._start) * 1000, 3)


class Timers(BaseModel):
    """
    Elapsed times of one operation in milliseconds.

    ``network_ms`` covers the interaction with the store only and is absent
    when the operation failed before reaching it.
    """

    model_config = ConfigDict(frozen=True)

    total_ms: float
    network_ms: Optional[float] = None

    @classmethod
    def measure(cls, total: Stopwatch, network: Optional[Stopwatch] = None) -> "Timers":
        return cls(
            total_ms=total.elapsed_ms(),
            network_ms=network.elapsed_ms() if network is not None else None,
        )


class CacheEvent(BaseModel):
    """Base of all lifecycle events."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: EventType


class InitializedEvent(CacheEvent):
    type: Literal[EventType.INITIALIZED] = EventType.INITIALIZED
    options: CacheOptions


class CacheErrorEvent(CacheEvent):
    type: Literal[EventType.ERROR] = EventType.ERROR
    error: Exception


class KeyedEvent(CacheEvent):
    """Event bound to one logical key and its storage key."""

    key: str
    normalized_key: str


class ReadStartEvent(KeyedEvent):
    type: Literal[EventType.READ_START] = EventType.READ_START


class ReadTimeoutEvent(KeyedEvent):
    type: Literal[EventType.READ_TIMEOUT] = EventType.READ_TIMEOUT
    timers: Timers


class ReadErrorEvent(KeyedEvent):
    type: Literal[EventType.READ_ERROR] = EventType.READ_ERROR
    error: Exception
    timers: Timers


class ReadKeyNotFoundEvent(KeyedEvent):
    type: Literal[EventType.READ_KEY_NOT_FOUND] = EventType.READ_KEY_NOT_FOUND
    timers: Timers


class JSONParsingFailedEvent(KeyedEvent):
    type: Literal[EventType.JSON_PARSING_FAILED] = EventType.JSON_PARSING_FAILED
    data: Any
    error: Exception
    timers: Timers


class ReadDoneEvent(KeyedEvent):
    type: Literal[EventType.READ_DONE] = EventType.READ_DONE
    data: Any
    timers: Timers


class WriteStartEvent(KeyedEvent):
    type: Literal[EventType.WRITE_START] = EventType.WRITE_START


class JSONStringifyFailedEvent(KeyedEvent):
    type: Literal[EventType.JSON_STRINGIFY_FAILED] = EventType.JSON_STRINGIFY_FAILED
    data: Any
    error: Exception
    timers: Timers


class WriteErrorEvent(KeyedEvent):
    type: Literal[EventType.WRITE_ERROR] = EventType.WRITE_ERROR
    error: Exception
    timers: Timers


class WriteFailedEvent(KeyedEvent):
    type: Literal[EventType.WRITE_FAILED] = EventType.WRITE_FAILED
    timers: Timers


class WriteDoneEvent(KeyedEvent):
    type: Literal[EventType.WRITE_DONE] = EventType.WRITE_DONE
    data: str
    timers: Timers


LifecycleEvent = Union[
    InitializedEvent,
    CacheErrorEvent,
    ReadStartEvent,
    ReadTimeoutEvent,
    ReadErrorEvent,
    ReadKeyNotFoundEvent,
    JSONParsingFailedEvent,
    ReadDoneEvent,
    WriteStartEvent,
    JSONStringifyFailedEvent,
    WriteErrorEvent,
    WriteFailedEvent,
    WriteDoneEvent,
]

TERMINAL_READ_EVENTS = frozenset(
    {
        EventType.READ_TIMEOUT,
        EventType.READ_ERROR,
        EventType.READ_KEY_NOT_FOUND,
        EventType.JSON_PARSING_FAILED,
        EventType.READ_DONE,
    }
)

TERMINAL_WRITE_EVENTS = frozenset(
    {
        EventType.JSON_STRINGIFY_FAILED,
        EventType.WRITE_ERROR,
        EventType.WRITE_FAILED,
        EventType.WRITE_DONE,
    }
)
