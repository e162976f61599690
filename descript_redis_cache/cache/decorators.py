"""
Memoization of async functions through the cache.

Cache misses and read timeouts fall through to calling the function; other
cache failures are logged and also fall through, so the cache never makes
a call fail.
"""

import functools
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from descript_redis_cache.cache.engine import Cache
from descript_redis_cache.cache.errors import CacheError
from descript_redis_cache.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def cached(
    cache: Cache,
    key: Union[str, Callable[..., str]],
    ttl: Optional[int] = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Cache the results of an async function.

    In ``http_response`` mode a cache hit returns the narrowed payload, not
    the object the function originally returned.

    Args:
        cache: Cache instance
        key: Logical key, or a callable deriving it from the call arguments
        ttl: Expiration in seconds (cache default if None)

    Returns:
        Decorator

    Example:
        >>> @cached(cache, key=lambda user_id: f"profile:{user_id}")
        ... async def load_profile(user_id: int) -> dict:
        ...     return await fetch_profile(user_id)
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            cache_key = key(*args, **kwargs) if callable(key) else key

            try:
                return await cache.get(cache_key)
            except CacheError as e:
                log_method = logger.debug if e.expected else logger.warning
                log_method(
                    "Cache read fell through",
                    key=cache_key,
                    code=e.code.value,
                    error=str(e),
                )

            value = await func(*args, **kwargs)

            try:
                await cache.set(cache_key, value, ttl=ttl)
            except CacheError as e:
                logger.warning(
                    "Cache write failed",
                    key=cache_key,
                    code=e.code.value,
                    error=str(e),
                )

            return value

        return wrapper

    return decorator
