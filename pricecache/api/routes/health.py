"""Health check endpoint."""
from datetime import datetime
from fastapi import APIRouter, Depends

from pricecache.api.dependencies import get_historical_service
from pricecache.api.schemas import HealthResponse
from pricecache.config import app_config, upstream_config
from pricecache.services.historical_service import HistoricalPriceService

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    service: HistoricalPriceService = Depends(get_historical_service)
) -> HealthResponse:
    """Health check endpoint with reconciliation counters."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now().isoformat(),
        store_backend=app_config.STORE_BACKEND,
        upstream_provider=upstream_config.PROVIDER,
        counters=service.metrics.snapshot(),
    )
