from typing import Optional
from redis.asyncio import Redis
from farmtrace.domain.models.product import ProductView
from farmtrace.utils.cache import cache_delete, cache_get, cache_set


class QrLookupCacheRepo:
    """
    Adapter for caching consumer QR lookups in Redis.
    Stores the joined ProductView so a scan costs one GET when warm.
    No business logic here: services decide when to read, write and invalidate.
    """
    def __init__(self, redis: Redis, key_prefix: str = "qr"):
        self.cache = redis
        self.prefix = key_prefix

    def key(self, qr_code: str) -> str:
        return f"{self.prefix}:{qr_code}"

    async def get(self, qr_code: str) -> Optional[ProductView]:
        """Returns None on miss."""
        data = await cache_get(self.cache, self.key(qr_code))
        return ProductView.model_validate(data) if data else None

    async def set(self, view: ProductView, ttl: int) -> None:
        await cache_set(self.cache, self.key(view.qr_code), view.model_dump(mode="json"), ex=ttl)

    async def invalidate(self, qr_code: str) -> None:
        await cache_delete(self.cache, self.key(qr_code))
