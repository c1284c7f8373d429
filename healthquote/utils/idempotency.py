import json
from healthquote.core.redis import get_redis
from healthquote.core.config import settings


def _key(user_id: int, key: str) -> str:
    return f"idemp:{user_id}:{key}"


async def get_idempotent(user_id: int, key: str):
    redis = get_redis()
    if not key or redis is None:
        return None
    v = await redis.get(_key(user_id, key))
    return json.loads(v) if v else None

async def set_idempotent(user_id: int, key: str, value: dict):
    redis = get_redis()
    if not key or redis is None:
        return
    await redis.set(_key(user_id, key), json.dumps(value, default=str), ex=settings.IDEMPOTENCY_TTL)
