"""Product repository: the store contract used by the creation pipeline.

Every call made while handling one request goes through the same repository
instance (and therefore the same session), so uniqueness lookups, the daily
count and the insert all share one view of the database.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from products_api.models.product import Product
from products_api.services.exceptions import ConstraintViolation

logger = logging.getLogger(__name__)

SKU_CONSTRAINT = "uq_products_sku"


class ProductRepository(ABC):

    @abstractmethod
    async def find_by_sku(self, sku: str) -> Product | None:
        """Return the product with this SKU, or None."""

    @abstractmethod
    async def find_by_name_and_brand(self, name: str, brand: str) -> Product | None:
        """Return a product with exactly this name and brand, or None."""

    @abstractmethod
    async def count_created_on(self, day: date) -> int:
        """Count products whose created_at falls on ``day`` (UTC)."""

    @abstractmethod
    async def insert(self, product: Product) -> Product:
        """Persist a new product.

        Raises:
            ConstraintViolation: If the SKU is already taken.
        """

    @abstractmethod
    async def exists(self, sku: str) -> bool:
        """Return True if any product uses this SKU."""


class SqlAlchemyProductRepository(ProductRepository):
    """Product store backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_sku(self, sku: str) -> Product | None:
        result = await self.db.execute(select(Product).where(Product.sku == sku))
        return result.scalar_one_or_none()

    async def find_by_name_and_brand(self, name: str, brand: str) -> Product | None:
        result = await self.db.execute(
            select(Product)
            .where(Product.name == name)
            .where(Product.brand == brand)
            .limit(1)
        )
        return result.scalars().first()

    async def count_created_on(self, day: date) -> int:
        start = datetime.combine(day, time.min, tzinfo=timezone.utc)
        end = start + timedelta(days=1)
        result = await self.db.execute(
            select(func.count(Product.id))
            .where(Product.created_at >= start)
            .where(Product.created_at < end)
        )
        return result.scalar_one()

    async def insert(self, product: Product) -> Product:
        try:
            self.db.add(product)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if SKU_CONSTRAINT not in str(e.orig):
                raise
            logger.warning(f"Insert rejected by unique constraint for SKU {product.sku}: {e.orig}")
            raise ConstraintViolation() from e
        await self.db.refresh(product)
        return product

    async def exists(self, sku: str) -> bool:
        result = await self.db.execute(
            select(func.count(Product.id)).where(Product.sku == sku)
        )
        return result.scalar_one() > 0
