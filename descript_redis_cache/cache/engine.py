"""
Redis cache with bounded-time reads.

``Cache`` runs single get/set operations against the backing store. Reads
race the store response against the configured read timeout; whichever
completes first decides the outcome, and a store response arriving after
the timeout is discarded. Each operation emits a start event and exactly
one terminal lifecycle event to the injected logger.
"""

import asyncio
from typing import Any, Optional, Protocol

from descript_redis_cache.cache.errors import (
    JSONParsingError,
    JSONStringifyError,
    KeyNotFoundError,
    ReadTimeoutError,
    StoreReadError,
    StoreWriteError,
    WriteNotAcknowledgedError,
)
from descript_redis_cache.cache.events import (
    CacheErrorEvent,
    InitializedEvent,
    JSONParsingFailedEvent,
    JSONStringifyFailedEvent,
    LifecycleEvent,
    ReadDoneEvent,
    ReadErrorEvent,
    ReadKeyNotFoundEvent,
    ReadStartEvent,
    ReadTimeoutEvent,
    Stopwatch,
    Timers,
    WriteDoneEvent,
    WriteErrorEvent,
    WriteFailedEvent,
    WriteStartEvent,
)
from descript_redis_cache.cache.keys import KeyNormalizer
from descript_redis_cache.cache.redis_client import CacheStore, create_stores
from descript_redis_cache.cache.serialization import CacheSerializer
from descript_redis_cache.core.config import CacheOptions
from descript_redis_cache.core.logging import get_logger

logger = get_logger(__name__)


class EventLogger(Protocol):
    """Sink receiving cache lifecycle events."""

    def log(self, event: LifecycleEvent) -> None:
        ...


def _discard_late_read(read: "asyncio.Future[Optional[bytes]]") -> None:
    # Retrieve the outcome so a failed late read is not reported as unhandled.
    if read.cancelled():
        return
    error = read.exception()
    logger.debug(
        "Discarded cache read completed after timeout",
        error=str(error) if error is not None else None,
    )


class Cache:
    """
    Async Redis cache.

    Reads go through the reader store and writes through the writer store;
    outside sentinel split-read mode both are the same store.

    Example:
        >>> cache = Cache(CacheOptions(read_timeout=50), StructlogEventLogger())
        >>> await cache.set("user:1", {"name": "Jane"})
        >>> await cache.get("user:1")
        {'name': 'Jane'}
    """

    def __init__(
        self,
        options: Optional[CacheOptions] = None,
        logger: Optional[EventLogger] = None,
        *,
        reader: Optional[CacheStore] = None,
        writer: Optional[CacheStore] = None,
    ):
        """
        Initialize cache.

        Args:
            options: Cache options (defaults if None)
            logger: Lifecycle event sink, events are dropped if None
            reader: Store serving reads (built from options if both stores are None)
            writer: Store serving writes (built from options if both stores are None)
        """
        self._options = options or CacheOptions()
        self._logger = logger
        self._normalizer = KeyNormalizer(self._options.generation)
        self._serializer = CacheSerializer(self._options.serialization)

        if reader is None and writer is None:
            reader, writer = create_stores(self._options.redis)
        self._reader: CacheStore = reader or writer
        self._writer: CacheStore = writer or reader

        self._log(InitializedEvent(options=self._options))

    @property
    def options(self) -> CacheOptions:
        return self._options

    def get_client(self) -> Any:
        """Return the redis client used for writes."""
        return self._writer.client

    def get_reader_client(self) -> Any:
        """Return the redis client used for reads."""
        return self._reader.client

    async def get(self, key: str) -> Any:
        """
        Read and decode the value cached under ``key``.

        Args:
            key: Logical cache key

        Returns:
            Decoded cached value

        Raises:
            ReadTimeoutError: If the store did not answer within the read timeout
            StoreReadError: If the store reported an error
            KeyNotFoundError: If nothing is cached under the key
            JSONParsingError: If the cached payload is not valid JSON
        """
        normalized_key = self._normalizer.normalize(key)
        self._log(ReadStartEvent(key=key, normalized_key=normalized_key))

        total_timer = Stopwatch()
        network_timer = Stopwatch()

        read = asyncio.ensure_future(self._reader.read(normalized_key))
        try:
            done, _ = await asyncio.wait({read}, timeout=self._options.read_timeout / 1000)
        except asyncio.CancelledError:
            read.cancel()
            raise

        if not done:
            read.add_done_callback(_discard_late_read)
            self._log(
                ReadTimeoutEvent(
                    key=key,
                    normalized_key=normalized_key,
                    timers=Timers.measure(total_timer, network_timer),
                )
            )
            raise ReadTimeoutError(key, self._options.read_timeout)

        network_ms = network_timer.elapsed_ms()

        def timers() -> Timers:
            return Timers(total_ms=total_timer.elapsed_ms(), network_ms=network_ms)

        if read.cancelled():
            # Cancelled by the store itself (e.g. connection teardown), not by the caller.
            error: Optional[BaseException] = ConnectionAbortedError("Store read was cancelled")
        else:
            error = read.exception()
        if error is not None:
            self._log(
                ReadErrorEvent(
                    key=key,
                    normalized_key=normalized_key,
                    error=error,
                    timers=timers(),
                )
            )
            raise StoreReadError(key, error) from error

        data = read.result()
        if not data:
            self._log(
                ReadKeyNotFoundEvent(key=key, normalized_key=normalized_key, timers=timers())
            )
            raise KeyNotFoundError(key)

        try:
            value = self._serializer.decode(data)
        except JSONParsingError as e:
            e.context.setdefault("key", key)
            self._log(
                JSONParsingFailedEvent(
                    key=key,
                    normalized_key=normalized_key,
                    data=data,
                    error=e.__cause__ or e,
                    timers=timers(),
                )
            )
            raise

        self._log(
            ReadDoneEvent(
                key=key,
                normalized_key=normalized_key,
                data=value,
                timers=timers(),
            )
        )
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Encode and store ``value`` under ``key``.

        A ``None`` value means there is nothing to cache: the call returns
        without touching the store or emitting events. There is no timeout
        on writes.

        Args:
            key: Logical cache key
            value: Value to cache
            ttl: Expiration in seconds (defaults to ``default_key_ttl``)

        Raises:
            ValueError: If ttl is not positive
            JSONStringifyError: If the value cannot be encoded
            StoreWriteError: If the store reported an error
            WriteNotAcknowledgedError: If the store did not apply the write
        """
        if value is None:
            return

        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        expire_seconds = self._options.default_key_ttl if ttl is None else ttl

        total_timer = Stopwatch()
        normalized_key = self._normalizer.normalize(key)
        self._log(WriteStartEvent(key=key, normalized_key=normalized_key))

        try:
            payload = self._serializer.encode(value)
        except JSONStringifyError as e:
            e.context.setdefault("key", key)
            self._log(
                JSONStringifyFailedEvent(
                    key=key,
                    normalized_key=normalized_key,
                    data=value,
                    error=e.__cause__ or e,
                    timers=Timers.measure(total_timer),
                )
            )
            raise

        network_timer = Stopwatch()
        try:
            acknowledged = await self._writer.write(normalized_key, payload, expire_seconds)
        except Exception as e:
            self._log(
                WriteErrorEvent(
                    key=key,
                    normalized_key=normalized_key,
                    error=e,
                    timers=Timers.measure(total_timer, network_timer),
                )
            )
            raise StoreWriteError(key, e) from e

        timers = Timers.measure(total_timer, network_timer)
        if not acknowledged:
            self._log(WriteFailedEvent(key=key, normalized_key=normalized_key, timers=timers))
            raise WriteNotAcknowledgedError(key)

        self._log(
            WriteDoneEvent(
                key=key,
                normalized_key=normalized_key,
                data=payload,
                timers=timers,
            )
        )

    async def ping(self) -> bool:
        """
        Perform a health check of the backing store(s).

        Returns:
            True if every store answered, False otherwise
        """
        try:
            for store in self._stores():
                await store.ping()
        except Exception as e:
            self._log(CacheErrorEvent(error=e))
            return False
        return True

    async def close(self) -> None:
        """Close the backing store client(s)."""
        for store in self._stores():
            await store.close()

    async def __aenter__(self) -> "Cache":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _stores(self) -> list[CacheStore]:
        if self._reader is self._writer:
            return [self._writer]
        return [self._writer, self._reader]

    def _log(self, event: LifecycleEvent) -> None:
        if self._logger is None:
            return
        try:
            self._logger.log(event)
        except Exception as e:
            logger.warning(
                "Cache event logger failed",
                event_type=event.type.value,
                error=str(e),
                error_type=type(e).__name__,
            )
