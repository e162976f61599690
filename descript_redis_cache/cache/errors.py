"""
Cache operation errors.

Every failure of a cache operation surfaces as a distinct ``CacheError``
subclass whose ``code`` is the identifier of the lifecycle event emitted
for it. ``KeyNotFoundError`` and ``ReadTimeoutError`` are routine outcomes
(cache miss, slow backend) and are flagged ``expected``; callers should fall
through to computing the value instead of alerting on them.
"""

from typing import Any

from descript_redis_cache.cache.events import EventType


class CacheError(Exception):
    """Base exception for cache operations."""

    expected = False

    def __init__(self, message: str, code: EventType, **context: Any):
        super().__init__(message)
        self.code = code
        self.context = context


class ReadTimeoutError(CacheError):
    """Raised when the store did not answer a read within the read timeout."""

    expected = True

    def __init__(self, key: str, timeout_ms: float):
        super().__init__(
            f"Cache read timed out after {timeout_ms}ms",
            code=EventType.READ_TIMEOUT,
            key=key,
            timeout_ms=timeout_ms,
        )


class KeyNotFoundError(CacheError):
    """Raised when the store holds no value for the key."""

    expected = True

    def __init__(self, key: str):
        super().__init__(
            f"Cache key not found: {key}",
            code=EventType.READ_KEY_NOT_FOUND,
            key=key,
        )


class StoreError(CacheError):
    """Base exception for failures reported by the backing store."""


class StoreReadError(StoreError):
    """Raised when the store failed to serve a read."""

    def __init__(self, key: str, error: Exception):
        super().__init__(
            f"Cache read failed: {error}",
            code=EventType.READ_ERROR,
            key=key,
            error_type=type(error).__name__,
        )


class StoreWriteError(StoreError):
    """Raised when the store failed to serve a write."""

    def __init__(self, key: str, error: Exception):
        super().__init__(
            f"Cache write failed: {error}",
            code=EventType.WRITE_ERROR,
            key=key,
            error_type=type(error).__name__,
        )


class WriteNotAcknowledgedError(CacheError):
    """Raised when the store answered a write without applying it."""

    def __init__(self, key: str):
        super().__init__(
            f"Cache write not acknowledged: {key}",
            code=EventType.WRITE_FAILED,
            key=key,
        )


class SerializationError(CacheError):
    """Base exception for payload encoding and decoding failures."""


class JSONParsingError(SerializationError):
    """Raised when a stored payload is not valid JSON."""

    def __init__(self, reason: str, **context: Any):
        super().__init__(
            f"Cached payload is not valid JSON: {reason}",
            code=EventType.JSON_PARSING_FAILED,
            **context,
        )


class JSONStringifyError(SerializationError):
    """Raised when a value cannot be encoded as JSON."""

    def __init__(self, reason: str, **context: Any):
        super().__init__(
            f"Value cannot be cached as JSON: {reason}",
            code=EventType.JSON_STRINGIFY_FAILED,
            **context,
        )
