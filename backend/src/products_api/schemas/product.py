"""Product schemas for request/response validation."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    """Schema for product creation request.

    Only types are checked here; business constraints are reported by
    ``ProductValidator`` so that every failure reaches the caller at once.
    """

    name: str = ""
    brand: str = ""
    sku: str = ""
    category: str = ""
    price: Decimal
    release_date: date
    stock_quantity: int
    image_url: str | None = None


class FieldErrorResponse(BaseModel):
    """A single validation failure."""

    field: str | None = None
    message: str


class ValidationErrorResponse(BaseModel):
    """Schema for a rejected creation request."""

    code: str = "VALIDATION_FAILED"
    errors: list[FieldErrorResponse] = Field(default_factory=list)


class ProductResponse(BaseModel):
    """Read-only view of a stored product.

    Derived fields are recomputed on every projection and never stored.
    """

    id: UUID
    name: str
    brand: str
    sku: str
    category: str
    category_display_name: str
    price: Decimal
    formatted_price: str
    release_date: date
    product_age: str
    brand_initials: str
    availability_status: str
    is_available: bool
    stock_quantity: int
    image_url: str | None = None
    created_at: datetime
