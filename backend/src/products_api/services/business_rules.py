"""Business policy gate evaluated after field validation passes."""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable

from products_api.core.config import settings
from products_api.models.base import utc_today
from products_api.models.product import ProductCategory
from products_api.repositories.product_repository import ProductRepository
from products_api.schemas.product import ProductCreate
from products_api.services.validation import (
    ELECTRONICS_MIN_PRICE,
    HOME_RESTRICTED_WORDS,
    contains_any,
    parse_category,
)

logger = logging.getLogger(__name__)

BUSINESS_RULES_MESSAGE = "Product does not satisfy business rules."
HIGH_VALUE_PRICE = Decimal("500")
HIGH_VALUE_MAX_STOCK = 10


class BusinessRulesEvaluator:
    """Whole-request policies.

    Callers only ever see ``BUSINESS_RULES_MESSAGE``; the specific reason
    returned by ``evaluate`` is for logs.
    """

    def __init__(
        self,
        repository: ProductRepository,
        daily_limit: int | None = None,
        today: Callable[[], date] = utc_today,
    ):
        self.repository = repository
        self.daily_limit = settings.DAILY_PRODUCT_LIMIT if daily_limit is None else daily_limit
        self.today = today

    async def evaluate(self, request: ProductCreate) -> str | None:
        """Check every policy in order.

        Args:
            request: A request that already passed ``ProductValidator``

        Returns:
            Reason for the first failed policy, or None if all pass
        """
        todays_count = await self.repository.count_created_on(self.today())
        if todays_count >= self.daily_limit:
            logger.warning(f"Daily product addition limit reached: {todays_count}")
            return f"Daily product addition limit of {self.daily_limit} reached"

        category = parse_category(request.category)

        # Repeats the validator's category guards
        if category == ProductCategory.ELECTRONICS and request.price < ELECTRONICS_MIN_PRICE:
            logger.warning(f"Electronics product below minimum price: {request.price}")
            return "Electronics product below minimum price"

        if category == ProductCategory.HOME and contains_any(request.name, HOME_RESTRICTED_WORDS):
            logger.warning(f"Home product contains restricted word in name: {request.name}")
            return "Home product contains restricted word in name"

        if request.price > HIGH_VALUE_PRICE and request.stock_quantity > HIGH_VALUE_MAX_STOCK:
            logger.warning(f"High-value product has too much stock: {request.stock_quantity}")
            return "High-value product has too much stock"

        return None
