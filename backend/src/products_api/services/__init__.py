"""Business logic services."""

from products_api.services.cache_service import ALL_PRODUCTS_KEY, ProductCacheService

__all__ = [
    "ALL_PRODUCTS_KEY",
    "ProductCacheService",
]
