"""Seed the catalog with sample products for development.

Every product goes through ``ProductService.create``, so rejected samples
show exactly what a client would see.

Usage:
    python -m scripts.seed_data
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

from products_api.core.database import async_session_maker, engine, init_models
from products_api.core.redis import close_redis, get_redis
from products_api.models.base import utc_today
from products_api.repositories.product_repository import SqlAlchemyProductRepository
from products_api.schemas.product import ProductCreate
from products_api.services.cache_service import ProductCacheService
from products_api.services.exceptions import ProductCreationError
from products_api.services.product_service import ProductService


def sample_products() -> list[ProductCreate]:
    today = utc_today()
    return [
        ProductCreate(
            name="Smart Tech Laptop",
            brand="Mega Tech",
            sku="LAP-12345",
            category="Electronics",
            price=Decimal("1500.00"),
            release_date=today - timedelta(days=60),
            stock_quantity=3,
            image_url="https://example.com/images/laptop.jpg",
        ),
        ProductCreate(
            name="Soft Cushion",
            brand="Cozy Home",
            sku="HOME-001",
            category="Home",
            price=Decimal("100.00"),
            release_date=today - timedelta(days=180),
            stock_quantity=10,
            image_url="https://example.com/images/cushion.jpg",
        ),
        ProductCreate(
            name="Linen Summer Shirt",
            brand="Northwind Apparel",
            sku="CLO-2024-07",
            category="Clothing",
            price=Decimal("45.50"),
            release_date=today - timedelta(days=400),
            stock_quantity=120,
        ),
        ProductCreate(
            name="Collected Essays",
            brand="Harbor Press",
            sku="BOOK-00042",
            category="Books",
            price=Decimal("18.99"),
            release_date=today - timedelta(days=2000),
            stock_quantity=1,
            image_url="https://example.com/images/essays.png",
        ),
    ]


async def seed_products() -> None:
    print("=" * 60)
    print("Seeding product catalog...")
    print("=" * 60)

    await init_models()
    redis = await get_redis()
    cache = ProductCacheService(redis)

    for request in sample_products():
        async with async_session_maker() as session:
            service = ProductService(SqlAlchemyProductRepository(session), cache)
            try:
                created = await service.create(request)
            except ProductCreationError as e:
                print(f"  Skipped {request.sku}: {e}")
                continue
            view = created.product
            print(
                f"  Created {view.sku} ({view.category_display_name}) "
                f"{view.formatted_price} | {view.product_age} | {view.availability_status}"
            )


async def main():
    try:
        await seed_products()
    finally:
        await close_redis()
        await engine.dispose()

    print("\n" + "=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
