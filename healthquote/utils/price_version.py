"""Version counter for the price tables; cached previews are keyed by it."""
import logging
from redis.exceptions import RedisError
from healthquote.core.redis import get_redis

logger = logging.getLogger(__name__)

PRICE_VERSION_KEY = "prices:version"


async def get_price_version() -> int:
    redis = get_redis()
    if redis is None:
        return 0
    v = await redis.get(PRICE_VERSION_KEY)
    return int(v) if v else 0


async def bump_price_version() -> None:
    """Call after a committed price change so earlier previews stop matching."""
    redis = get_redis()
    if redis is None:
        return
    try:
        await redis.incr(PRICE_VERSION_KEY)
    except (RedisError, OSError) as e:
        logger.error(f"Price version not bumped, cached previews may be stale: {e}")
