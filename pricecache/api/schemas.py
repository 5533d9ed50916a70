"""API request/response schemas (DTOs)."""
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel


class DailyPriceResponse(BaseModel):
    """Response for single daily price record."""
    date: str
    symbol: str
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: int


class HistoricalPricesResponse(BaseModel):
    """Response for historical prices lookup."""
    symbol: str
    range: str
    date: Optional[str] = None
    records: List[DailyPriceResponse]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    store_backend: str
    upstream_provider: str
    counters: Dict[str, int]
