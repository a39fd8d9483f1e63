"""Redis client backing the per-IP rate limiter.

Redis is optional: without it the limiter passes requests through and
``/ready`` reports the rate limiter as disabled.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError

_client: redis.Redis | None = None


async def init_redis(url: str, timeout_seconds: float = 1.0) -> None:
    """Create the client. Short timeouts keep a dead Redis from stalling requests."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        decode_responses=True,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Get the Redis client. Raises RuntimeError when it was never initialised."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


async def rate_limiter_status() -> str:
    """``ok``, ``disabled`` (no client) or ``error: ...`` for the readiness probe."""
    try:
        await get_redis().ping()
    except RuntimeError:
        return "disabled"
    except RedisError as exc:
        return f"error: {exc}"
    return "ok"
