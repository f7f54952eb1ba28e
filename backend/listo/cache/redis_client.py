from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, TypeVar

import redis

from ..errors import StorageUnavailable
from ..settings import settings

T = TypeVar("T")


@lru_cache(maxsize=1)
def get_redis() -> redis.Redis:
    """
    Process-wide Redis client. Connections are opened lazily on first command,
    so building the client never touches the network.
    """
    kwargs: dict[str, Any] = {
        "decode_responses": True,
        "socket_connect_timeout": settings.redis_timeout_seconds,
        "socket_timeout": settings.redis_timeout_seconds,
        "health_check_interval": 30,
    }
    if settings.redis_password:
        kwargs["password"] = settings.redis_password
    if settings.redis_db is not None:
        kwargs["db"] = int(settings.redis_db)
    return redis.Redis.from_url(settings.redis_url, **kwargs)


def cache_call(operation: str, fn: Callable[[], T]) -> T:
    """Run one cache command, surfacing transport failures as `StorageUnavailable`."""
    try:
        return fn()
    except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
        raise StorageUnavailable(
            message=f"Cache unavailable during {operation}", retryable=True, cause=e
        ) from e
    except redis.exceptions.RedisError as e:
        raise StorageUnavailable(message=f"Cache request failed during {operation}", cause=e) from e
