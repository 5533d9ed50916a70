"""FastAPI application - minimal setup with dependency injection."""
import logging
from contextlib import asynccontextmanager
from typing import Optional, Tuple

from fastapi import FastAPI

from pricecache.api.dependencies import init_services
from pricecache.api.routes import health, history
from pricecache.config import app_config, upstream_config
from pricecache.domain.interfaces import PriceStore, UpstreamClient
from pricecache.infrastructure.iex_client import IexCloudClient
from pricecache.infrastructure.yahoo_client import YahooFinanceClient
from pricecache.repository.clickhouse_client import ClickHouseConnection
from pricecache.repository.price_repository import (
    ClickHousePriceRepository, InMemoryPriceRepository
)

logging.basicConfig(
    level=app_config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_store(backend: str) -> Tuple[PriceStore, Optional[ClickHouseConnection]]:
    """Create the configured price store and its connection, if any."""
    if backend == "memory":
        return InMemoryPriceRepository(), None
    if backend == "clickhouse":
        connection = ClickHouseConnection()
        connection.connect()
        repository = ClickHousePriceRepository(connection)
        repository.ensure_schema()
        return repository, connection
    raise ValueError(f"Unknown STORE_BACKEND '{backend}'")


def build_upstream(provider: str) -> UpstreamClient:
    """Create the configured market data client."""
    if provider == "iex":
        return IexCloudClient()
    if provider == "yahoo":
        return YahooFinanceClient()
    raise ValueError(f"Unknown UPSTREAM_PROVIDER '{provider}'")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting application...")

    store, connection = build_store(app_config.STORE_BACKEND)
    upstream = build_upstream(upstream_config.PROVIDER)
    init_services(store, upstream)

    logger.info(
        f"Application started (store={app_config.STORE_BACKEND}, "
        f"upstream={upstream_config.PROVIDER})"
    )
    yield

    logger.info("Shutting down...")
    if isinstance(upstream, IexCloudClient):
        upstream.close()
    if connection:
        connection.disconnect()
    logger.info("Shutdown complete")


# Create app
app = FastAPI(
    title="pricecache API",
    description="Historical stock prices served from a local cache with upstream backfill",
    version="0.1.0",
    lifespan=lifespan,
)

# Register routes
app.include_router(health.router)
app.include_router(history.router)
