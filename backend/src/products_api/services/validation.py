"""Rule engine for product creation requests.

Rules are plain callables evaluated in order. Each one returns a (possibly
empty) list of ``FieldError``; store-backed rules are coroutines. Every
failure is collected, so a single response lists everything the caller
has to fix.

Category-specific rule groups are selected by the request's parsed
category and run after the field rules. The whole-request stock rule runs
last.
"""

import inspect
import logging
import re
from datetime import date
from decimal import Decimal
from typing import Awaitable, Callable, Union
from urllib.parse import urlsplit

from products_api.models.base import utc_today
from products_api.models.product import ProductCategory
from products_api.repositories.product_repository import ProductRepository
from products_api.schemas.product import ProductCreate
from products_api.services.exceptions import FieldError

logger = logging.getLogger(__name__)

INAPPROPRIATE_WORDS = ("bad", "fake", "illegal")
TECHNOLOGY_KEYWORDS = (
    "tech", "smart", "laptop", "phone", "tablet", "gaming", "pc", "monitor", "headphones",
)
HOME_RESTRICTED_WORDS = ("explosive", "toxic")

NAME_MAX_LENGTH = 200
BRAND_MIN_LENGTH = 2
BRAND_MAX_LENGTH = 100
CLOTHING_BRAND_MIN_LENGTH = 3
MAX_PRICE = Decimal("10000")
ELECTRONICS_MIN_PRICE = Decimal("50")
HOME_MAX_PRICE = Decimal("200")
EXPENSIVE_PRICE = Decimal("100")
EXPENSIVE_MAX_STOCK = 20
MAX_STOCK = 100_000
EARLIEST_RELEASE_DATE = date(1900, 1, 1)
ELECTRONICS_MAX_AGE_YEARS = 5

BRAND_PATTERN = re.compile(r"^[A-Za-z0-9 .\-']+$")
SKU_PATTERN = re.compile(r"^[A-Za-z0-9-]{5,20}$")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")

RuleResult = Union[list[FieldError], Awaitable[list[FieldError]]]
Rule = Callable[[ProductCreate, date], RuleResult]


def normalize_sku(sku: str) -> str:
    """Strip spaces so "LAP 12345" and "LAP12345" are the same SKU."""
    return sku.replace(" ", "")


def parse_category(value: str) -> ProductCategory | None:
    try:
        return ProductCategory(value)
    except ValueError:
        return None


def contains_any(text: str, words: tuple[str, ...]) -> bool:
    """Case-insensitive substring match against a word list."""
    lowered = text.lower()
    return any(word in lowered for word in words)


def years_before(day: date, years: int) -> date:
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def is_valid_sku(sku: str) -> bool:
    return bool(SKU_PATTERN.fullmatch(normalize_sku(sku)))


def is_valid_image_url(image_url: str) -> bool:
    """Absolute http(s) URL whose path ends in a known image extension."""
    try:
        parts = urlsplit(image_url.strip())
    except ValueError:
        return False
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        return False
    return parts.path.lower().endswith(IMAGE_EXTENSIONS)


# ==================== Field Rules ====================

def check_name(request: ProductCreate, today: date) -> list[FieldError]:
    name = request.name
    if not name.strip():
        return [FieldError("name", "Product name is required.")]
    errors = []
    if len(name) > NAME_MAX_LENGTH:
        errors.append(FieldError("name", "Product name must not exceed 200 characters."))
    if contains_any(name, INAPPROPRIATE_WORDS):
        errors.append(FieldError("name", "Product name contains inappropriate content."))
    return errors


def check_brand(request: ProductCreate, today: date) -> list[FieldError]:
    brand = request.brand
    if not brand.strip():
        return [FieldError("brand", "Brand is required.")]
    errors = []
    if len(brand) < BRAND_MIN_LENGTH:
        errors.append(FieldError("brand", "Brand must be at least 2 characters."))
    if len(brand) > BRAND_MAX_LENGTH:
        errors.append(FieldError("brand", "Brand must not exceed 100 characters."))
    if not BRAND_PATTERN.fullmatch(brand):
        errors.append(FieldError("brand", "Brand contains invalid characters."))
    return errors


def check_sku(request: ProductCreate, today: date) -> list[FieldError]:
    if not request.sku.strip():
        return [FieldError("sku", "SKU is required.")]
    if not is_valid_sku(request.sku):
        return [FieldError("sku", "SKU must be 5-20 characters, alphanumeric with hyphens.")]
    return []


def check_category(request: ProductCreate, today: date) -> list[FieldError]:
    if parse_category(request.category) is None:
        return [FieldError("category", "Category must be a valid value.")]
    return []


def check_price(request: ProductCreate, today: date) -> list[FieldError]:
    if request.price <= 0:
        return [FieldError("price", "Price must be greater than 0.")]
    if request.price >= MAX_PRICE:
        return [FieldError("price", "Price must be less than 10,000.")]
    return []


def check_release_date(request: ProductCreate, today: date) -> list[FieldError]:
    if request.release_date > today:
        return [FieldError("release_date", "Release date cannot be in the future.")]
    if request.release_date <= EARLIEST_RELEASE_DATE:
        return [FieldError("release_date", "Release date cannot be before 1900.")]
    return []


def check_stock_quantity(request: ProductCreate, today: date) -> list[FieldError]:
    if request.stock_quantity < 0:
        return [FieldError("stock_quantity", "Stock cannot be negative.")]
    if request.stock_quantity > MAX_STOCK:
        return [FieldError("stock_quantity", "Stock cannot exceed 100,000.")]
    return []


def check_image_url(request: ProductCreate, today: date) -> list[FieldError]:
    if request.image_url is None or not request.image_url.strip():
        return []
    if not is_valid_image_url(request.image_url):
        return [FieldError("image_url", "ImageUrl must be a valid image URL.")]
    return []


# ==================== Category Rules ====================

def check_electronics(request: ProductCreate, today: date) -> list[FieldError]:
    errors = []
    if request.price < ELECTRONICS_MIN_PRICE:
        errors.append(FieldError("price", "Electronics must have a minimum price of $50.00."))
    if not contains_any(request.name, TECHNOLOGY_KEYWORDS):
        errors.append(FieldError(
            "name",
            "Electronics products must contain technology-related keywords in the name.",
        ))
    if request.release_date < years_before(today, ELECTRONICS_MAX_AGE_YEARS):
        errors.append(FieldError(
            "release_date",
            "Electronics products must be released within the last 5 years.",
        ))
    return errors


def check_home(request: ProductCreate, today: date) -> list[FieldError]:
    errors = []
    if request.price > HOME_MAX_PRICE:
        errors.append(FieldError("price", "Home products must not exceed a price of $200.00."))
    if contains_any(request.name, HOME_RESTRICTED_WORDS):
        errors.append(FieldError("name", "Home product name contains inappropriate content."))
    return errors


def check_clothing(request: ProductCreate, today: date) -> list[FieldError]:
    if len(request.brand) < CLOTHING_BRAND_MIN_LENGTH:
        return [FieldError("brand", "Clothing brand must be at least 3 characters.")]
    return []


CATEGORY_RULES: dict[ProductCategory, list[Rule]] = {
    ProductCategory.ELECTRONICS: [check_electronics],
    ProductCategory.HOME: [check_home],
    ProductCategory.CLOTHING: [check_clothing],
    ProductCategory.BOOKS: [],
}


# ==================== Whole-Request Rules ====================

def check_expensive_stock(request: ProductCreate, today: date) -> list[FieldError]:
    """Price above 100 caps stock at 20.

    BusinessRulesEvaluator applies a separate, stricter cap (price above 500,
    stock at most 10); both are enforced.
    """
    if request.price > EXPENSIVE_PRICE and request.stock_quantity > EXPENSIVE_MAX_STOCK:
        return [FieldError(None, "Expensive products (price > 100) must have stock ≤ 20 units.")]
    return []


class ProductValidator:
    """Validates creation requests against field, store and category rules."""

    def __init__(
        self,
        repository: ProductRepository,
        today: Callable[[], date] = utc_today,
    ):
        self.repository = repository
        self.today = today
        self.rules: list[Rule] = [
            check_name,
            self.check_unique_name,
            check_brand,
            check_sku,
            self.check_unique_sku,
            check_category,
            check_price,
            check_release_date,
            check_stock_quantity,
            check_image_url,
            self.check_category_rules,
            check_expensive_stock,
        ]

    async def validate(self, request: ProductCreate) -> list[FieldError]:
        """Run every rule and return all failures in rule order.

        Args:
            request: Product creation request

        Returns:
            List of field errors, empty when the request is valid
        """
        today = self.today()
        errors: list[FieldError] = []
        for rule in self.rules:
            result = rule(request, today)
            if inspect.isawaitable(result):
                result = await result
            errors.extend(result)
        return errors

    async def check_unique_name(self, request: ProductCreate, today: date) -> list[FieldError]:
        if not request.name.strip():
            return []
        logger.debug(f"Checking unique name for product {request.name} and brand {request.brand}")
        existing = await self.repository.find_by_name_and_brand(request.name, request.brand)
        if existing is not None:
            return [FieldError("name", "A product with the same name already exists for this brand.")]
        return []

    async def check_unique_sku(self, request: ProductCreate, today: date) -> list[FieldError]:
        if not request.sku.strip() or not is_valid_sku(request.sku):
            return []
        sku = normalize_sku(request.sku)
        logger.info(f"Checking SKU uniqueness for {sku}")
        if await self.repository.find_by_sku(sku) is not None:
            return [FieldError("sku", "A product with this SKU already exists.")]
        return []

    def check_category_rules(self, request: ProductCreate, today: date) -> list[FieldError]:
        category = parse_category(request.category)
        if category is None:
            return []
        errors = []
        for rule in CATEGORY_RULES[category]:
            errors.extend(rule(request, today))
        return errors
