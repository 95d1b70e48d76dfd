"""Prometheus metrics for HTTP traffic and product creation."""
import logging
import time
from dataclasses import asdict, dataclass
from typing import Callable

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


# =============================================================================
# Prometheus Metrics Definitions
# =============================================================================

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
)

PRODUCT_CREATIONS = Counter(
    "product_creations_total",
    "Product creation attempts",
    ["status"],  # success, failed
)

PRODUCT_CREATION_STAGE_LATENCY = Histogram(
    "product_creation_stage_seconds",
    "Product creation latency per stage in seconds",
    ["stage"],  # validation, database_save, total
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)


# =============================================================================
# Product Creation Metrics
# =============================================================================

@dataclass(frozen=True)
class CreationMetrics:
    """Outcome of one product creation call. Durations are in seconds."""

    operation_id: str
    product_name: str
    sku: str
    category: str
    validation_duration: float
    database_save_duration: float
    total_duration: float
    success: bool
    error_reason: str | None = None


def record_creation_metrics(metrics: CreationMetrics) -> None:
    """Log a creation outcome and feed the Prometheus collectors."""
    logger.info(
        f"Product creation metrics | OperationId: {metrics.operation_id}, "
        f"Name: {metrics.product_name}, SKU: {metrics.sku}, Category: {metrics.category}, "
        f"ValidationMs: {metrics.validation_duration * 1000:.2f}, "
        f"DbSaveMs: {metrics.database_save_duration * 1000:.2f}, "
        f"TotalMs: {metrics.total_duration * 1000:.2f}, "
        f"Success: {metrics.success}, ErrorReason: {metrics.error_reason or ''}",
        extra={"creation_metrics": asdict(metrics)},
    )

    PRODUCT_CREATIONS.labels(status="success" if metrics.success else "failed").inc()
    PRODUCT_CREATION_STAGE_LATENCY.labels(stage="validation").observe(metrics.validation_duration)
    PRODUCT_CREATION_STAGE_LATENCY.labels(stage="database_save").observe(
        metrics.database_save_duration
    )
    PRODUCT_CREATION_STAGE_LATENCY.labels(stage="total").observe(metrics.total_duration)


# =============================================================================
# Metrics Middleware
# =============================================================================

class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for all HTTP requests."""

    # Endpoints to normalize for metrics (reduce cardinality)
    ENDPOINT_PATTERNS = {
        "/api/v1/products": "/api/v1/products",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            status_code = 500
            raise
        finally:
            ACTIVE_REQUESTS.dec()
            latency = time.perf_counter() - start_time
            endpoint = self._normalize_endpoint(request.url.path)

            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status=status_code,
            ).inc()

            REQUEST_LATENCY.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(latency)

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce metric cardinality."""
        for pattern, normalized in self.ENDPOINT_PATTERNS.items():
            if path.startswith(pattern):
                return normalized

        if path in ("/health", "/metrics"):
            return path

        return "/other"


# =============================================================================
# Metrics Endpoint
# =============================================================================

async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics scrape endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
