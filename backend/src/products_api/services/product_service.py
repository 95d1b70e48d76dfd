"""Product service: the create-product pipeline.

A request moves through validation, the business policy gate, a last SKU
check, the insert, cache invalidation and projection. Any stage can fail;
nothing is written before the insert, and exactly one ``CreationMetrics``
record is emitted per call whatever the outcome.
"""

import asyncio
import enum
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Callable
from uuid import UUID

from products_api.core.config import settings
from products_api.middleware.metrics import CreationMetrics, record_creation_metrics
from products_api.models.base import utc_today, utcnow
from products_api.models.product import Product, ProductCategory
from products_api.repositories.product_repository import ProductRepository
from products_api.schemas.product import ProductCreate, ProductResponse
from products_api.services.business_rules import BUSINESS_RULES_MESSAGE, BusinessRulesEvaluator
from products_api.services.cache_service import ALL_PRODUCTS_KEY, ProductCacheService
from products_api.services.exceptions import UnexpectedFailure, ValidationFailed
from products_api.services.projection import project_product
from products_api.services.validation import ProductValidator, normalize_sku

logger = logging.getLogger(__name__)


class CreationStage(str, enum.Enum):
    START = "start"
    VALIDATING = "validating"
    POLICY_CHECKING = "policy_checking"
    SKU_GUARD = "sku_guard"
    PERSISTING = "persisting"
    INVALIDATING = "invalidating"
    PROJECTING = "projecting"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ProductCreated:
    """Successful creation: the new id, where to find it, and its view."""

    product_id: UUID
    location: str
    product: ProductResponse


def new_operation_id() -> str:
    return uuid.uuid4().hex[:8]


class ProductService:
    """Service class for product creation."""

    def __init__(
        self,
        repository: ProductRepository,
        cache_service: ProductCacheService | None = None,
        validator: ProductValidator | None = None,
        business_rules: BusinessRulesEvaluator | None = None,
        metrics_recorder: Callable[[CreationMetrics], None] = record_creation_metrics,
        today: Callable[[], date] = utc_today,
        cache_timeout: float | None = None,
    ):
        self.repository = repository
        self.cache_service = cache_service
        self.cache_timeout = settings.CACHE_EVICT_TIMEOUT if cache_timeout is None else cache_timeout
        self.validator = validator or ProductValidator(repository, today=today)
        self.business_rules = business_rules or BusinessRulesEvaluator(repository, today=today)
        self.metrics_recorder = metrics_recorder
        self.today = today

    async def create(self, request: ProductCreate) -> ProductCreated:
        """Validate, persist and project a new product.

        Args:
            request: Product creation data

        Returns:
            ProductCreated with the id, location and projected view

        Raises:
            ValidationFailed: A rule or policy rejected the request, or the SKU is taken
            ConstraintViolation: The store's unique index rejected the insert
            UnexpectedFailure: Any other store or collaborator error
        """
        operation_id = new_operation_id()
        request = request.model_copy(update={"sku": normalize_sku(request.sku)})
        total_started = time.perf_counter()
        validation_duration = 0.0
        db_duration = 0.0
        stage = CreationStage.START

        logger.info(
            f"[{operation_id}] Starting product creation | Name: {request.name}, "
            f"Brand: {request.brand}, SKU: {request.sku}, Category: {request.category}"
        )

        def emit(success: bool, error_reason: str | None = None) -> None:
            self._emit_metrics(CreationMetrics(
                operation_id=operation_id,
                product_name=request.name,
                sku=request.sku,
                category=request.category,
                validation_duration=validation_duration,
                database_save_duration=db_duration,
                total_duration=time.perf_counter() - total_started,
                success=success,
                error_reason=error_reason,
            ))

        try:
            validation_started = time.perf_counter()
            try:
                stage = CreationStage.VALIDATING
                logger.info(f"[{operation_id}] Validating SKU {request.sku}")
                errors = await self.validator.validate(request)
                if errors:
                    logger.warning(
                        f"[{operation_id}] Product validation failed for {request.name} "
                        f"({request.sku}). Errors: {'; '.join(e.message for e in errors)}"
                    )
                    raise ValidationFailed(errors)

                stage = CreationStage.POLICY_CHECKING
                reason = await self.business_rules.evaluate(request)
                if reason is not None:
                    logger.warning(f"[{operation_id}] Business rules rejected {request.sku}: {reason}")
                    raise ValidationFailed(BUSINESS_RULES_MESSAGE)
            finally:
                validation_duration = time.perf_counter() - validation_started

            stage = CreationStage.SKU_GUARD
            if await self.repository.exists(request.sku):
                logger.warning(f"[{operation_id}] SKU {request.sku} already exists in database.")
                raise ValidationFailed("SKU already exists.", field="sku")

            stage = CreationStage.PERSISTING
            logger.info(
                f"[{operation_id}] Starting database save operation for {request.name} ({request.sku})"
            )
            db_started = time.perf_counter()
            try:
                product = await self.repository.insert(self._build_product(request))
            finally:
                db_duration = time.perf_counter() - db_started
            logger.info(f"[{operation_id}] Database save completed for ProductId {product.id}")

            stage = CreationStage.INVALIDATING
            await self._invalidate_cache(operation_id)

            stage = CreationStage.PROJECTING
            view = project_product(product, today=self.today())
            stage = CreationStage.DONE
        except ValidationFailed as e:
            logger.info(
                f"[{operation_id}] Product creation rejected at stage {stage.value} "
                f"-> {CreationStage.FAILED.value}"
            )
            emit(success=False, error_reason=str(e))
            raise
        except asyncio.CancelledError:
            logger.info(
                f"[{operation_id}] Product creation cancelled at stage {stage.value} "
                f"-> {CreationStage.FAILED.value}"
            )
            emit(success=False, error_reason="Cancelled")
            raise
        except Exception as e:
            logger.exception(
                f"Error during product creation | OperationId: {operation_id}, "
                f"Stage: {stage.value} -> {CreationStage.FAILED.value}, "
                f"Name: {request.name}, SKU: {request.sku}, Category: {request.category}"
            )
            emit(success=False, error_reason=str(e))
            raise UnexpectedFailure(operation_id) from e

        emit(success=True)
        return ProductCreated(
            product_id=product.id,
            location=f"/products/{product.id}",
            product=view,
        )

    def _build_product(self, request: ProductCreate) -> Product:
        image_url = request.image_url if request.image_url and request.image_url.strip() else None
        return Product(
            id=uuid.uuid4(),
            name=request.name,
            brand=request.brand,
            sku=request.sku,
            category=ProductCategory(request.category),
            price=request.price,
            release_date=request.release_date,
            image_url=image_url,
            stock_quantity=request.stock_quantity,
            is_available=request.stock_quantity > 0,
            created_at=utcnow(),
            updated_at=None,
        )

    async def _invalidate_cache(self, operation_id: str) -> None:
        """Evict the product listing within ``cache_timeout`` seconds.

        A failure or timeout here never fails the request.
        """
        if self.cache_service is None:
            return
        logger.info(f"[{operation_id}] Invalidating cache key {ALL_PRODUCTS_KEY}")
        try:
            await asyncio.wait_for(self.cache_service.evict(ALL_PRODUCTS_KEY), timeout=self.cache_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"[{operation_id}] Cache invalidation for {ALL_PRODUCTS_KEY} "
                f"timed out after {self.cache_timeout}s"
            )
        except Exception as e:
            logger.warning(f"[{operation_id}] Cache invalidation failed for {ALL_PRODUCTS_KEY}: {e}")

    def _emit_metrics(self, metrics: CreationMetrics) -> None:
        try:
            self.metrics_recorder(metrics)
        except Exception as e:
            logger.warning(f"Failed to record creation metrics for {metrics.operation_id}: {e}")
