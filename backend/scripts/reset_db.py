"""Reset the product catalog to an empty state.

Deletes every row from ``products`` and evicts the cached product listing.

Usage:
    python -m scripts.reset_db
"""

import asyncio

from sqlalchemy import delete

from products_api.core.database import async_session_maker, engine, init_models
from products_api.core.redis import close_redis, get_redis
from products_api.models.product import Product
from products_api.services.cache_service import ALL_PRODUCTS_KEY, ProductCacheService


async def reset_database():
    """Clear all products from the database."""
    print("=" * 60)
    print("Resetting product catalog...")
    print("=" * 60)

    await init_models()
    async with async_session_maker() as session:
        result = await session.execute(delete(Product))
        await session.commit()
        print(f"  Deleted {result.rowcount} rows from products")


async def reset_cache():
    """Evict the cached product listing."""
    print("\nResetting cache...")

    try:
        cache = ProductCacheService(await get_redis())
        removed = await cache.evict(ALL_PRODUCTS_KEY)
        print(f"  Evicted {ALL_PRODUCTS_KEY}: {removed}")
    except Exception as e:
        print(f"  Warning: Could not reach Redis: {e}")
        print("  (This is OK if Redis is not running locally)")
    finally:
        await close_redis()


async def main():
    await reset_database()
    await reset_cache()

    print("\n" + "=" * 60)
    print("Reset complete!")
    print("=" * 60)
    print("\nTo re-seed the catalog, run:")
    print("  python -m scripts.seed_data")
    print("=" * 60)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
