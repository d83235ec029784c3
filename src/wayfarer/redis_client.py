"""Redis client used for notification pub/sub and rate limiting.

Redis is optional at runtime: code paths that only push notifications or
count requests call ``get_redis_or_none`` and skip their work when the
client was never initialized.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50) -> None:
    """Create the shared client backed by a connection pool."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    """Close the shared client and release its pool."""
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
    _client = None


def get_redis_or_none() -> redis.Redis | None:
    """Return the shared client, or None when Redis is not configured."""
    return _client
