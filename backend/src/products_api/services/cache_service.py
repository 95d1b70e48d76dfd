"""Redis-backed cache for product listings."""

from redis.asyncio import Redis

ALL_PRODUCTS_KEY = "all_products"


class ProductCacheService:
    """Service class for product cache operations.

    Entries are best-effort copies of store data. A stale entry surviving a
    concurrent write for a moment is acceptable.
    """

    def __init__(self, redis: Redis):
        """Initialize cache service with a Redis client.

        Args:
            redis: Async Redis client instance
        """
        self.redis = redis

    async def evict(self, key: str = ALL_PRODUCTS_KEY) -> bool:
        """Remove a cached entry.

        Args:
            key: Cache key, defaults to the full product listing

        Returns:
            True if an entry was removed
        """
        removed = await self.redis.delete(key)
        return bool(removed)
