"""Product model for catalog entries."""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Date, Enum, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from products_api.core.database import Base
from products_api.models.base import TimestampMixin


class ProductCategory(str, enum.Enum):
    """Catalog categories accepted on product creation."""

    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    BOOKS = "Books"
    HOME = "Home"


class Product(Base, TimestampMixin):
    """Product model representing a catalog item.

    SKU uniqueness is enforced by ``uq_products_sku``; service-level checks
    only narrow the window in which two writers can race for the same SKU.
    """

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    brand: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    sku: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    category: Mapped[ProductCategory] = mapped_column(
        Enum(
            ProductCategory,
            native_enum=False,
            length=20,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
    )
    release_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    image_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )
    is_available: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    stock_quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __table_args__ = (
        Index("uq_products_sku", "sku", unique=True),
        Index("idx_products_name_brand", "name", "brand"),
        CheckConstraint("stock_quantity >= 0", name="chk_product_stock_non_negative"),
        CheckConstraint("price > 0", name="chk_product_price_positive"),
    )
