"""Pydantic schemas for request/response validation."""

from products_api.schemas.product import (
    FieldErrorResponse,
    ProductCreate,
    ProductResponse,
    ValidationErrorResponse,
)

__all__ = [
    "ProductCreate",
    "ProductResponse",
    "FieldErrorResponse",
    "ValidationErrorResponse",
]
