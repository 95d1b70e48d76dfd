"""Persistence adapters."""

from products_api.repositories.product_repository import (
    ProductRepository,
    SqlAlchemyProductRepository,
)

__all__ = [
    "ProductRepository",
    "SqlAlchemyProductRepository",
]
