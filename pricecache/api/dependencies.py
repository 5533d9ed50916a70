"""FastAPI dependency injection setup."""
from typing import Optional

from pricecache.domain.interfaces import PriceStore, UpstreamClient
from pricecache.services.historical_service import HistoricalPriceService
from pricecache.services.metrics import ReconcilerMetrics


# Application state (set during lifespan)
_historical_service: Optional[HistoricalPriceService] = None


def init_services(store: PriceStore, upstream: UpstreamClient) -> None:
    """Initialize services with their collaborators."""
    global _historical_service
    _historical_service = HistoricalPriceService(
        store=store,
        upstream=upstream,
        metrics=ReconcilerMetrics(),
    )


def get_historical_service() -> HistoricalPriceService:
    """Get historical price service dependency."""
    if _historical_service is None:
        raise RuntimeError("Services not initialized")
    return _historical_service
