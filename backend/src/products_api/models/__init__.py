"""SQLAlchemy ORM models."""

from products_api.models.base import TimestampMixin
from products_api.models.product import Product, ProductCategory

__all__ = [
    "TimestampMixin",
    "Product",
    "ProductCategory",
]
