"""Tests for the product creation pipeline.

Runs the full service against the in-memory store: validation, policy
gate, SKU guard, insert, cache invalidation, projection and metrics.
"""

import asyncio
import logging
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from conftest import TODAY, InMemoryProductRepository, make_request
from products_api.services.business_rules import BUSINESS_RULES_MESSAGE
from products_api.services.cache_service import ALL_PRODUCTS_KEY, ProductCacheService
from products_api.services.exceptions import (
    ConstraintViolation,
    UnexpectedFailure,
    ValidationFailed,
)
from products_api.services.product_service import CreationStage, ProductService


def build_service(repository, recorded_metrics, cache_service=None, **kwargs) -> ProductService:
    return ProductService(
        repository,
        cache_service=cache_service,
        metrics_recorder=recorded_metrics.append,
        today=lambda: TODAY,
        **kwargs,
    )


def laptop_request(**overrides):
    data = {
        "name": "Smart Tech Laptop",
        "brand": "Mega Tech",
        "sku": "LAP-12345",
        "category": "Electronics",
        "price": Decimal("1500"),
        "release_date": TODAY - timedelta(days=61),
        "stock_quantity": 3,
        "image_url": "https://example.com/laptop.jpg",
    }
    data.update(overrides)
    return make_request(**data)


def is_duplicate_sku_failure(exc: ValidationFailed) -> bool:
    return any(err.field == "sku" and "already exists" in err.message for err in exc.errors)


class TestCreateProduct:

    @pytest.mark.asyncio
    async def test_electronics_end_to_end(self, repository, recorded_metrics, mock_redis):
        """Test creating an electronics product end to end."""
        service = build_service(repository, recorded_metrics, ProductCacheService(mock_redis))

        created = await service.create(laptop_request())

        view = created.product
        assert created.location == f"/products/{created.product_id}"
        assert view.id == created.product_id
        assert view.category_display_name == "Electronics & Technology"
        assert view.brand_initials == "MT"
        assert view.availability_status == "Limited Stock"
        assert view.product_age == "2 months old"
        assert view.formatted_price.startswith("$")
        assert view.image_url == "https://example.com/laptop.jpg"
        assert "LAP-12345" in repository.products

    @pytest.mark.asyncio
    async def test_home_product_discount_and_hidden_image(self, repository, recorded_metrics):
        """Test that Home products are discounted and hide their image."""
        service = build_service(repository, recorded_metrics)
        request = make_request(
            name="Soft Cushion", brand="Cozy Home", sku="HOME-001", category="Home",
            price=Decimal("100"), stock_quantity=10,
            image_url="https://example.com/cushion.jpg",
        )

        created = await service.create(request)

        assert created.product.category_display_name == "Home & Garden"
        assert created.product.price == Decimal("90.00")
        assert created.product.image_url is None
        stored = repository.products["HOME-001"]
        assert stored.price == Decimal("100")
        assert stored.image_url == "https://example.com/cushion.jpg"

    @pytest.mark.parametrize("stock,available", [(0, False), (1, True), (40, True)])
    @pytest.mark.asyncio
    async def test_availability_derived_from_stock(self, repository, recorded_metrics, stock, available):
        """Test that availability follows the stock quantity."""
        service = build_service(repository, recorded_metrics)

        await service.create(make_request(stock_quantity=stock))

        stored = repository.products["BOOK-00042"]
        assert stored.is_available is available
        assert stored.created_at is not None
        assert stored.updated_at is None

    @pytest.mark.asyncio
    async def test_sku_is_stored_without_spaces(self, repository, recorded_metrics):
        """Test that spaces are removed from the stored SKU."""
        service = build_service(repository, recorded_metrics)

        created = await service.create(make_request(sku="BOOK 000 42"))

        assert created.product.sku == "BOOK00042"
        assert "BOOK00042" in repository.products

    @pytest.mark.asyncio
    async def test_success_emits_one_metrics_record(self, repository, recorded_metrics):
        """Test that a successful creation records metrics once."""
        service = build_service(repository, recorded_metrics)

        await service.create(make_request())

        assert len(recorded_metrics) == 1
        metrics = recorded_metrics[0]
        assert metrics.success is True
        assert metrics.error_reason is None
        assert metrics.sku == "BOOK-00042"
        assert len(metrics.operation_id) == 8
        assert metrics.total_duration >= metrics.validation_duration >= 0

    @pytest.mark.asyncio
    async def test_evicts_product_listing_cache(self, repository, recorded_metrics, mock_redis):
        """Test cache invalidation after a successful insert."""
        service = build_service(repository, recorded_metrics, ProductCacheService(mock_redis))

        await service.create(make_request())

        mock_redis.delete.assert_awaited_once_with(ALL_PRODUCTS_KEY)


class TestCreateProductFailures:

    @pytest.mark.asyncio
    async def test_second_create_with_same_sku_is_rejected(self, repository, recorded_metrics):
        """Test creating the same SKU twice in a row."""
        service = build_service(repository, recorded_metrics)
        await service.create(make_request())

        with pytest.raises(ValidationFailed) as exc_info:
            await service.create(make_request(name="Other Title", brand="Other Press"))

        assert is_duplicate_sku_failure(exc_info.value)
        assert len(repository.products) == 1

    @pytest.mark.asyncio
    async def test_validation_failure_writes_nothing(self, repository, recorded_metrics, mock_redis):
        """Test that a rejected request leaves the store and cache untouched."""
        service = build_service(repository, recorded_metrics, ProductCacheService(mock_redis))

        with pytest.raises(ValidationFailed) as exc_info:
            await service.create(laptop_request(price=Decimal("40")))

        assert [e.message for e in exc_info.value.errors] == [
            "Electronics must have a minimum price of $50.00."
        ]
        assert repository.products == {}
        mock_redis.delete.assert_not_awaited()
        assert len(recorded_metrics) == 1
        assert recorded_metrics[0].success is False
        assert "minimum price" in recorded_metrics[0].error_reason

    @pytest.mark.asyncio
    async def test_policy_failure_has_single_generic_message(self, repository, recorded_metrics):
        """Test the message returned for a policy failure."""
        service = build_service(repository, recorded_metrics)

        with pytest.raises(ValidationFailed) as exc_info:
            await service.create(laptop_request(price=Decimal("900"), stock_quantity=15))

        assert [e.message for e in exc_info.value.errors] == [BUSINESS_RULES_MESSAGE]
        assert repository.products == {}

    @pytest.mark.asyncio
    async def test_daily_limit_blocks_creation(self, recorded_metrics):
        """Test that the daily limit stops creation."""
        repository = InMemoryProductRepository()
        repository.count_created_on = AsyncMock(return_value=500)
        service = build_service(repository, recorded_metrics)

        with pytest.raises(ValidationFailed) as exc_info:
            await service.create(make_request())

        assert str(exc_info.value) == BUSINESS_RULES_MESSAGE

    @pytest.mark.asyncio
    async def test_sku_guard_catches_duplicate_missed_by_validation(self, repository, recorded_metrics):
        """Test the SKU check that runs right before the insert."""
        validator = AsyncMock()
        validator.validate = AsyncMock(return_value=[])
        service = build_service(repository, recorded_metrics, validator=validator)
        await service.create(make_request())

        with pytest.raises(ValidationFailed) as exc_info:
            await service.create(make_request())

        assert str(exc_info.value) == "SKU already exists."
        assert not isinstance(exc_info.value, ConstraintViolation)

    @pytest.mark.asyncio
    async def test_store_constraint_violation(self, repository, recorded_metrics):
        """Test a duplicate caught only by the store's unique index."""
        repository.exists = AsyncMock(return_value=False)
        repository.find_by_sku = AsyncMock(return_value=None)
        service = build_service(repository, recorded_metrics)
        await service.create(make_request())

        with pytest.raises(ConstraintViolation) as exc_info:
            await service.create(make_request(name="Another Title"))

        assert is_duplicate_sku_failure(exc_info.value)
        assert len(repository.products) == 1
        assert [m.success for m in recorded_metrics] == [True, False]

    @pytest.mark.asyncio
    async def test_unexpected_store_error(self, repository, recorded_metrics):
        """Test that unknown store errors are wrapped without leaking details."""
        repository.insert = AsyncMock(side_effect=RuntimeError("connection reset by peer"))
        service = build_service(repository, recorded_metrics)

        with pytest.raises(UnexpectedFailure) as exc_info:
            await service.create(make_request())

        assert "connection reset" not in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert len(recorded_metrics) == 1
        assert recorded_metrics[0].success is False
        assert recorded_metrics[0].error_reason == "connection reset by peer"

    @pytest.mark.asyncio
    async def test_cache_failure_does_not_fail_creation(self, repository, recorded_metrics, mock_redis):
        """Test that a cache outage does not fail creation."""
        mock_redis.delete = AsyncMock(side_effect=ConnectionError("redis down"))
        service = build_service(repository, recorded_metrics, ProductCacheService(mock_redis))

        created = await service.create(make_request())

        assert created.product.sku == "BOOK-00042"
        assert recorded_metrics[0].success is True

    @pytest.mark.asyncio
    async def test_slow_cache_eviction_is_bounded(self, repository, recorded_metrics, mock_redis):
        """Test that a hung cache is abandoned after the eviction timeout."""
        async def hang(key):
            await asyncio.sleep(10)

        mock_redis.delete = AsyncMock(side_effect=hang)
        service = build_service(
            repository, recorded_metrics, ProductCacheService(mock_redis), cache_timeout=0.01,
        )

        created = await asyncio.wait_for(service.create(make_request()), timeout=2)

        assert created.product.sku == "BOOK-00042"
        assert recorded_metrics[0].success is True

    @pytest.mark.asyncio
    async def test_sku_with_trailing_newline_is_rejected(self, repository, recorded_metrics):
        """Test that a trailing newline cannot sneak a second copy of a SKU in."""
        service = build_service(repository, recorded_metrics)
        await service.create(make_request())

        with pytest.raises(ValidationFailed) as exc_info:
            await service.create(make_request(name="Other Title", sku="BOOK-00042\n"))

        assert [e.field for e in exc_info.value.errors] == ["sku"]
        assert list(repository.products) == ["BOOK-00042"]

    @pytest.mark.asyncio
    async def test_failure_logs_transition_to_failed(self, repository, recorded_metrics, caplog):
        """Test that a rejected request logs its move into the failed stage."""
        service = build_service(repository, recorded_metrics)

        with caplog.at_level(logging.INFO, logger="products_api.services.product_service"):
            with pytest.raises(ValidationFailed):
                await service.create(make_request(name=""))

        assert f"validating -> {CreationStage.FAILED.value}" in caplog.text

    @pytest.mark.asyncio
    async def test_metrics_recorder_failure_is_not_fatal(self, repository):
        """Test that a broken metrics sink does not fail creation."""
        def broken_recorder(metrics):
            raise RuntimeError("sink unavailable")

        service = ProductService(repository, metrics_recorder=broken_recorder, today=lambda: TODAY)

        created = await service.create(make_request())

        assert created.product.sku == "BOOK-00042"


class TestConcurrentCreation:

    @pytest.mark.asyncio
    async def test_only_one_of_many_same_sku_requests_succeeds(self, repository, recorded_metrics):
        """Test concurrent creation with the same SKU."""
        attempts = 10
        services = [build_service(repository, recorded_metrics) for _ in range(attempts)]

        results = await asyncio.gather(
            *(service.create(make_request()) for service in services),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, BaseException)]
        failures = [r for r in results if isinstance(r, BaseException)]
        assert len(successes) == 1
        assert len(failures) == attempts - 1
        assert all(isinstance(f, ValidationFailed) for f in failures)
        assert all(is_duplicate_sku_failure(f) for f in failures)
        assert list(repository.products) == ["BOOK-00042"]
        assert len(recorded_metrics) == attempts
