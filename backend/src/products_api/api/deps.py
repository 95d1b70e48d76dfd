"""API dependencies for database, cache and service access."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from products_api.core.database import get_db
from products_api.core.redis import get_redis
from products_api.repositories.product_repository import SqlAlchemyProductRepository
from products_api.services.cache_service import ProductCacheService
from products_api.services.product_service import ProductService

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_cache_service() -> ProductCacheService:
    redis = await get_redis()
    return ProductCacheService(redis)


CacheServiceDep = Annotated[ProductCacheService, Depends(get_cache_service)]


async def get_product_service(db: DbSession, cache_service: CacheServiceDep) -> ProductService:
    """Build a ProductService bound to this request's session.

    One session per request keeps every lookup and the insert on the same
    connection.
    """
    return ProductService(SqlAlchemyProductRepository(db), cache_service)


ProductServiceDep = Annotated[ProductService, Depends(get_product_service)]
