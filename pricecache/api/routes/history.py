"""Historical prices endpoint."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from pricecache.api.schemas import DailyPriceResponse, HistoricalPricesResponse
from pricecache.api.dependencies import get_historical_service
from pricecache.domain.errors import (
    DateFormatError, InvalidRangeError, PriceCacheError, StoreWriteError, UpstreamFetchError
)
from pricecache.services.historical_service import HistoricalPriceService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/iex", tags=["history"])

_STATUS_CODES = {
    InvalidRangeError: 400,
    DateFormatError: 400,
    UpstreamFetchError: 502,
    StoreWriteError: 503,
}


def _error_detail(e: PriceCacheError) -> dict:
    return {"type": e.__class__.__name__, "message": e.message, "details": e.details}


@router.get("/historicalPrices", response_model=HistoricalPricesResponse)
def get_historical_prices(
    symbol: str,
    range_code: str = Query(..., alias="range"),
    date: Optional[str] = None,
    service: HistoricalPriceService = Depends(get_historical_service)
) -> HistoricalPricesResponse:
    """Get daily prices for a symbol, backfilling the local cache as needed."""
    # an empty ?date= means no date
    date = date or None
    try:
        prices = service.get_historical_prices(symbol, range_code, date)
    except PriceCacheError as e:
        logger.error(f"Error getting historical prices for {symbol} ({range_code}): {e}")
        raise HTTPException(status_code=_STATUS_CODES.get(type(e), 500), detail=_error_detail(e))
    except Exception as e:
        logger.error(f"Error getting historical prices for {symbol} ({range_code}): {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return HistoricalPricesResponse(
        symbol=symbol.upper(),
        range=range_code,
        date=date,
        records=[
            DailyPriceResponse(
                date=p.date.isoformat(),
                symbol=p.symbol,
                open=p.open,
                high=p.high,
                low=p.low,
                close=p.close,
                volume=p.volume,
            )
            for p in prices
        ],
        count=len(prices),
    )
