"""
Redis backing-store capability.

This module provides the minimal store interface the cache engine calls
through, a redis.asyncio implementation of it, and the factory building
reader/writer stores for single-node, cluster and sentinel topologies.
Connection pooling, reconnects and connection-level retries are left to
redis-py.
"""

from typing import Any, Optional, Protocol, Union

from redis.asyncio import Redis
from redis.asyncio.cluster import ClusterNode, RedisCluster
from redis.asyncio.retry import Retry
from redis.asyncio.sentinel import Sentinel
from redis.backoff import ExponentialBackoff

from descript_redis_cache.core.config import DEFAULT_REDIS_URL, RedisConnectionOptions
from descript_redis_cache.core.logging import get_logger

logger = get_logger(__name__)

RedisHandle = Union[Redis, RedisCluster]


class CacheStore(Protocol):
    """Key-value store the cache reads from and writes to."""

    client: Any

    async def read(self, key: str) -> Optional[bytes]:
        ...

    async def write(self, key: str, value: str, expire_seconds: int) -> bool:
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


class RedisStore:
    """
    Cache store backed by a redis.asyncio client.

    The client is shared by all in-flight operations; redis-py handles
    concurrent use through its connection pool.
    """

    def __init__(self, client: RedisHandle, role: str = "primary"):
        """
        Initialize store.

        Args:
            client: Redis or RedisCluster client
            role: ``primary`` or ``replica``, for logging
        """
        self.client = client
        self.role = role

    async def read(self, key: str) -> Optional[bytes]:
        """
        Get value from Redis by key.

        Returns:
            Stored payload or None if key doesn't exist

        Raises:
            RedisError: If Redis operation fails
        """
        return await self.client.get(key)

    async def write(self, key: str, value: str, expire_seconds: int) -> bool:
        """
        Set value in Redis with expiration.

        Args:
            key: Storage key
            value: Encoded payload
            expire_seconds: Expiration time in seconds

        Returns:
            True if Redis acknowledged the write

        Raises:
            RedisError: If Redis operation fails
        """
        result = await self.client.set(key, value, ex=expire_seconds)
        return bool(result)

    async def ping(self) -> bool:
        """
        Check that Redis answers.

        Raises:
            RedisError: If Redis is unreachable
        """
        return bool(await self.client.ping())

    async def close(self) -> None:
        """Close the client and release its connection pool."""
        await self.client.aclose()
        logger.info("Redis store closed", role=self.role)


def _sanitize_url(url: str) -> str:
    """
    Sanitize Redis URL for logging (remove password).

    Args:
        url: Redis connection URL

    Returns:
        Sanitized URL safe for logging
    """
    if "@" in url and "://" in url:
        protocol, rest = url.split("://", 1)
        _, host_part = rest.rsplit("@", 1)
        return f"{protocol}://***@{host_part}"
    return url


def _retry() -> Retry:
    return Retry(ExponentialBackoff(base=0.1, cap=2.0), retries=3)


def create_stores(options: RedisConnectionOptions) -> tuple[RedisStore, RedisStore]:
    """
    Create reader and writer stores for the configured topology.

    Reads go through the reader store and writes through the writer store.
    Outside sentinel split-read mode both are the same store.

    Args:
        options: Connection descriptor

    Returns:
        Tuple of (reader, writer)
    """
    client_kwargs = {
        "socket_timeout": options.socket_timeout,
        "socket_connect_timeout": options.socket_connect_timeout,
        "retry": _retry(),
    }

    if options.is_cluster:
        client = RedisCluster(
            startup_nodes=[ClusterNode(n.host, n.port) for n in options.startup_nodes],
            max_connections=options.max_connections,
            **client_kwargs,
        )
        logger.info(
            "Redis cluster store created",
            startup_nodes=[f"{n.host}:{n.port}" for n in options.startup_nodes],
        )
        store = RedisStore(client)
        return store, store

    if options.is_sentinel:
        sentinel = Sentinel(
            [(n.host, n.port) for n in options.sentinels],
            socket_timeout=options.socket_timeout,
        )
        writer = RedisStore(sentinel.master_for(options.service_name, **client_kwargs))
        if options.split_reads:
            reader = RedisStore(
                sentinel.slave_for(options.service_name, **client_kwargs),
                role="replica",
            )
        else:
            reader = writer
        logger.info(
            "Redis sentinel stores created",
            service_name=options.service_name,
            split_reads=options.split_reads,
        )
        return reader, writer

    url = options.url or DEFAULT_REDIS_URL
    client = Redis.from_url(
        url,
        max_connections=options.max_connections,
        retry_on_timeout=True,
        health_check_interval=30,
        **client_kwargs,
    )
    logger.info(
        "Redis store created",
        url=_sanitize_url(url),
        max_connections=options.max_connections,
    )
    store = RedisStore(client)
    return store, store
