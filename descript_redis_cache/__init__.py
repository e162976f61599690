"""
Redis cache adapter with bounded-time reads.

Memoizes computed results (HTTP responses, function results) in Redis under
SHA-512 storage keys derived from a logical key and a cache generation.
"""

from descript_redis_cache.cache.decorators import cached
from descript_redis_cache.cache.engine import Cache, EventLogger
from descript_redis_cache.cache.errors import (
    CacheError,
    JSONParsingError,
    JSONStringifyError,
    KeyNotFoundError,
    ReadTimeoutError,
    SerializationError,
    StoreError,
    StoreReadError,
    StoreWriteError,
    WriteNotAcknowledgedError,
)
from descript_redis_cache.cache.events import EventType, LifecycleEvent
from descript_redis_cache.cache.keys import KeyNormalizer
from descript_redis_cache.cache.redis_client import CacheStore, RedisStore, create_stores
from descript_redis_cache.cache.serialization import CacheSerializer, http_response_payload
from descript_redis_cache.core.config import (
    CacheOptions,
    CacheSettings,
    RedisConnectionOptions,
    RedisNode,
    SerializationPolicy,
    get_settings,
)
from descript_redis_cache.core.logging import StructlogEventLogger, configure_logging

__all__ = [
    "Cache",
    "CacheError",
    "CacheOptions",
    "CacheSerializer",
    "CacheSettings",
    "CacheStore",
    "EventLogger",
    "EventType",
    "JSONParsingError",
    "JSONStringifyError",
    "KeyNormalizer",
    "KeyNotFoundError",
    "LifecycleEvent",
    "ReadTimeoutError",
    "RedisConnectionOptions",
    "RedisNode",
    "RedisStore",
    "SerializationError",
    "SerializationPolicy",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "StructlogEventLogger",
    "WriteNotAcknowledgedError",
    "cached",
    "configure_logging",
    "create_stores",
    "get_settings",
    "http_response_payload",
]
