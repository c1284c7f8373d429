import logging
from typing import Optional
from redis.asyncio import Redis
from redis.exceptions import RedisError
from healthquote.core.config import settings

logger = logging.getLogger(__name__)

# Shared client; stays None while Redis is unreachable
redis: Optional[Redis] = None


async def init_redis() -> Redis:
    global redis
    client = Redis.from_url(settings.REDIS_URL, decode_responses=False)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        await client.aclose()
        logger.error(f"Redis at {settings.REDIS_URL} unreachable: {e}")
        raise
    redis = client
    logger.info("Connected to Redis")
    return redis


async def close_redis():
    global redis
    if redis is not None:
        await redis.aclose()
        redis = None


def get_redis() -> Optional[Redis]:
    """Return the shared client, or None when Redis was never reached.

    Callers treat Redis as optional: caching, rate limiting and idempotency
    are skipped without it.
    """
    return redis


async def redis_ping() -> bool:
    if redis is None:
        return False
    try:
        return bool(await redis.ping())
    except (RedisError, OSError) as e:
        logger.warning(f"Redis ping failed: {e}")
        return False
