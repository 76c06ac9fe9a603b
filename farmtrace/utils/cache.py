# farmtrace/utils/cache.py
"""
JSON-over-Redis helpers. The cache is best-effort: a Redis failure is logged and
treated as a miss (or a skipped write), never surfaced to the request.
"""
import json
import logging
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


async def cache_get(redis: Redis, key: str):
    try:
        val = await redis.get(key)
    except Exception as e:
        logger.warning("cache get error key=%s err=%s", key, e)
        return None
    if not val:
        return None
    try:
        return json.loads(val)
    except ValueError as e:
        logger.warning("cache decode error key=%s err=%s", key, e)
        return None


async def cache_set(redis: Redis, key: str, value, ex: int = 60):
    try:
        await redis.set(key, json.dumps(value, separators=(",", ":")), ex=ex)
    except Exception as e:
        logger.warning("cache set error key=%s err=%s", key, e)


async def cache_delete(redis: Redis, key: str):
    try:
        await redis.delete(key)
    except Exception as e:
        logger.warning("cache delete error key=%s err=%s", key, e)
