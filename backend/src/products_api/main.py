import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from products_api.api.v1 import products
from products_api.core.config import settings
from products_api.core.database import engine, init_models
from products_api.core.redis import close_redis
from products_api.middleware.metrics import PrometheusMiddleware, metrics_endpoint

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting application...")
    await init_models()

    yield

    logger.info("Shutting down application...")
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Products API",
    version="1.0.0",
    description="Product creation with layered validation and computed views",
    lifespan=lifespan,
)

app.add_middleware(PrometheusMiddleware)

app.include_router(products.router, prefix="/api/v1/products", tags=["products"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Prometheus metrics endpoint
app.add_route("/metrics", metrics_endpoint)
