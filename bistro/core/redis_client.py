"""
Bistro API — Shared Redis connection

One lazily created asyncio client per process, used by the token rate
limiter and the health probe. The same instance carries the Celery broker
queues, so every key the API writes goes under REDIS_KEY_PREFIX.
"""
import redis.asyncio as aioredis
from bistro.core.config import get_settings

settings = get_settings()

_client: aioredis.Redis | None = None


def redis_key(*parts: str) -> str:
    """Build a namespaced key, e.g. redis_key("ratelimit", "jwt", email)."""
    return ":".join((settings.REDIS_KEY_PREFIX, *parts))


def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
            socket_timeout=settings.HEALTH_CHECK_TIMEOUT,
            health_check_interval=30,
            client_name=settings.SERVICE_NAME,
        )
    return _client


async def close_redis():
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
