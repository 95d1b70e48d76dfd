"""Pytest configuration and fixtures for testing."""

import asyncio
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from products_api.middleware.metrics import CreationMetrics
from products_api.models.base import utcnow
from products_api.models.product import Product, ProductCategory
from products_api.repositories.product_repository import ProductRepository
from products_api.schemas.product import ProductCreate
from products_api.services.exceptions import ConstraintViolation

TODAY = date(2026, 6, 15)


class InMemoryProductRepository(ProductRepository):
    """Dict-backed store with the same SKU guarantee as the unique index.

    Every call yields to the event loop once, so concurrent callers
    interleave the way they would against a real database.
    """

    def __init__(self):
        self.products: dict[str, Product] = {}

    async def find_by_sku(self, sku: str) -> Product | None:
        await asyncio.sleep(0)
        return self.products.get(sku)

    async def find_by_name_and_brand(self, name: str, brand: str) -> Product | None:
        await asyncio.sleep(0)
        for product in self.products.values():
            if product.name == name and product.brand == brand:
                return product
        return None

    async def count_created_on(self, day: date) -> int:
        await asyncio.sleep(0)
        return sum(1 for p in self.products.values() if p.created_at.date() == day)

    async def insert(self, product: Product) -> Product:
        await asyncio.sleep(0)
        if product.sku in self.products:
            raise ConstraintViolation()
        self.products[product.sku] = product
        return product

    async def exists(self, sku: str) -> bool:
        await asyncio.sleep(0)
        return sku in self.products


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def repository() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def mock_repository() -> AsyncMock:
    """A store that holds nothing and accepts every insert."""
    repo = AsyncMock(spec=ProductRepository)
    repo.find_by_sku = AsyncMock(return_value=None)
    repo.find_by_name_and_brand = AsyncMock(return_value=None)
    repo.count_created_on = AsyncMock(return_value=0)
    repo.exists = AsyncMock(return_value=False)
    repo.insert = AsyncMock(side_effect=lambda product: product)
    return repo


# Mock Redis client fixture
@pytest.fixture
def mock_redis() -> AsyncMock:
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def recorded_metrics() -> list[CreationMetrics]:
    return []


def make_request(**overrides) -> ProductCreate:
    """A Books request that passes every rule unless overridden."""
    data = {
        "name": "Collected Essays",
        "brand": "Harbor Press",
        "sku": "BOOK-00042",
        "category": "Books",
        "price": Decimal("25.00"),
        "release_date": TODAY - timedelta(days=90),
        "stock_quantity": 5,
        "image_url": None,
    }
    data.update(overrides)
    return ProductCreate(**data)


def make_product(**overrides) -> Product:
    """A stored product built the way ProductService builds one."""
    data = {
        "id": uuid4(),
        "name": "Collected Essays",
        "brand": "Harbor Press",
        "sku": "BOOK-00042",
        "category": ProductCategory.BOOKS,
        "price": Decimal("25.00"),
        "release_date": TODAY - timedelta(days=90),
        "image_url": "https://example.com/essays.png",
        "stock_quantity": 10,
        "is_available": True,
        "created_at": utcnow(),
        "updated_at": None,
    }
    data.update(overrides)
    return Product(**data)
