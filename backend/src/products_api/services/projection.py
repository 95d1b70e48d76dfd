"""Projection of stored products into their response view.

Every derived field is a plain function of the product. Nothing computed
here is written back to the store.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from products_api.core.config import settings
from products_api.models.base import utc_today
from products_api.models.product import Product, ProductCategory
from products_api.schemas.product import ProductResponse

CATEGORY_DISPLAY_NAMES = {
    ProductCategory.ELECTRONICS: "Electronics & Technology",
    ProductCategory.CLOTHING: "Clothing & Fashion",
    ProductCategory.BOOKS: "Books & Media",
    ProductCategory.HOME: "Home & Garden",
}
UNCATEGORIZED = "Uncategorized"

HOME_DISCOUNT_RATE = Decimal("0.9")
CENTS = Decimal("0.01")
CLASSIC_AGE_DAYS = 1825


def _category(value) -> ProductCategory | None:
    try:
        return ProductCategory(value)
    except ValueError:
        return None


def category_display_name(product: Product) -> str:
    return CATEGORY_DISPLAY_NAMES.get(_category(product.category), UNCATEGORIZED)


def display_price(product: Product) -> Decimal:
    """Stored price, with the Home discount applied and rounded to cents."""
    price = Decimal(product.price)
    if _category(product.category) == ProductCategory.HOME:
        return (price * HOME_DISCOUNT_RATE).quantize(CENTS, rounding=ROUND_HALF_UP)
    return price.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_price(amount: Decimal, currency_symbol: str | None = None) -> str:
    symbol = settings.CURRENCY_SYMBOL if currency_symbol is None else currency_symbol
    return f"{symbol}{amount:,.2f}"


def _as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def _plural(count: int, unit: str) -> str:
    if count <= 1:
        return f"1 {unit} old"
    return f"{count} {unit}s old"


def product_age(release_date: date, today: date | None = None) -> str:
    """Bucket the time since release into a human readable label.

    Exactly five years (1825 days) reads "Classic"; anything older falls
    back to a year count.
    """
    release_date = _as_date(release_date)
    today = utc_today() if today is None else today
    days = (today - release_date).days

    if days < 30:
        return "New Release"
    if days < 365:
        return _plural(days // 30, "month")
    if days < CLASSIC_AGE_DAYS:
        return _plural(days // 365, "year")
    if abs(days - CLASSIC_AGE_DAYS) < 0.1:
        return "Classic"
    return _plural(days // 365, "year")


def brand_initials(brand: str | None) -> str:
    if not brand or not brand.strip():
        return "?"
    parts = brand.split()
    if len(parts) == 1:
        return parts[0][0].upper()
    return f"{parts[0][0].upper()}{parts[-1][0].upper()}"


def availability_status(product: Product) -> str:
    if not product.is_available:
        return "Out of Stock"
    if product.stock_quantity <= 0:
        return "Unavailable"
    if product.stock_quantity == 1:
        return "Last Item"
    if product.stock_quantity <= 5:
        return "Limited Stock"
    return "In Stock"


def visible_image_url(product: Product) -> str | None:
    if _category(product.category) == ProductCategory.HOME:
        return None
    return product.image_url


def project_product(
    product: Product,
    today: date | None = None,
    currency_symbol: str | None = None,
) -> ProductResponse:
    """Build the response view for a stored product.

    Args:
        product: Persisted product
        today: Reference date for the age label (defaults to the UTC date)
        currency_symbol: Overrides ``settings.CURRENCY_SYMBOL``

    Returns:
        ProductResponse with all derived fields computed
    """
    price = display_price(product)
    category = _category(product.category)
    return ProductResponse(
        id=product.id,
        name=product.name,
        brand=product.brand,
        sku=product.sku,
        category=category.value if category else str(product.category),
        category_display_name=category_display_name(product),
        price=price,
        formatted_price=format_price(price, currency_symbol),
        release_date=_as_date(product.release_date),
        product_age=product_age(product.release_date, today),
        brand_initials=brand_initials(product.brand),
        availability_status=availability_status(product),
        is_available=product.is_available,
        stock_quantity=product.stock_quantity,
        image_url=visible_image_url(product),
        created_at=product.created_at,
    )
