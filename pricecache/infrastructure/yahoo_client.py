"""Yahoo Finance historical prices client backed by yfinance."""
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional
import logging

import yfinance as yf
from pydantic import ValidationError

from pricecache.config import upstream_config
from pricecache.domain.entities import DailyPrice, RangeUnit
from pricecache.domain.errors import PriceCacheError, UpstreamFetchError
from pricecache.domain.interfaces import UpstreamClient
from pricecache.domain.ranges import normalize_date, parse_range

logger = logging.getLogger(__name__)

_PERIODS = {
    RangeUnit.YEAR_TO_DATE: "ytd",
    RangeUnit.MAX: "max",
}


def _to_decimal(value: float) -> Decimal:
    # yfinance hands back floats; go through repr so 101.5 stays 101.5
    number = Decimal(repr(float(value)))
    if not number.is_finite():
        raise ValueError(f"non-finite price {value}")
    return number


class YahooFinanceClient(UpstreamClient):
    """Translate range codes into yfinance periods or start/end windows."""

    def __init__(self, timeout: float = None, today=date.today):
        self._timeout = timeout or upstream_config.TIMEOUT
        self._today = today

    def _history_kwargs(self, range_code: str, date_arg: Optional[str]) -> Dict[str, str]:
        if range_code == RangeUnit.SINGLE_DATE.value:
            day = normalize_date(date_arg)
            return {
                "start": day.isoformat(),
                "end": (day + timedelta(days=1)).isoformat(),
            }
        request = parse_range(range_code, today=self._today())
        if request.unit in _PERIODS:
            return {"period": _PERIODS[request.unit]}
        end = self._today()
        return {
            "start": (end - timedelta(days=request.day_count)).isoformat(),
            "end": end.isoformat(),
        }

    def fetch(
        self, symbol: str, range_code: str, date: Optional[str] = None
    ) -> List[DailyPrice]:
        """Fetch daily candles for a symbol."""
        try:
            kwargs = self._history_kwargs(range_code, date)
            hist = yf.Ticker(symbol).history(
                interval="1d", auto_adjust=False, timeout=self._timeout, **kwargs
            )
        except PriceCacheError as e:
            raise UpstreamFetchError(
                f"Cannot map range {range_code} for Yahoo: {e.message}",
                {"symbol": symbol, "range": range_code, "date": date},
            ) from e
        except Exception as e:
            logger.error(f"Yahoo history failed for {symbol}: {e}")
            raise UpstreamFetchError(
                f"Yahoo history failed for {symbol}: {e}",
                {"symbol": symbol, "range": range_code, "date": date},
            ) from e

        if hist is None or hist.empty:
            logger.warning(f"No price data from Yahoo for {symbol} ({range_code}, {date})")
            return []

        prices = []
        for ts, row in hist.iterrows():
            day = ts.date() if isinstance(ts, datetime) else ts
            try:
                prices.append(DailyPrice(
                    symbol=symbol,
                    date=day,
                    open=_to_decimal(row["Open"]),
                    high=_to_decimal(row["High"]),
                    low=_to_decimal(row["Low"]),
                    close=_to_decimal(row["Close"]),
                    volume=int(row["Volume"]),
                ))
            except (KeyError, TypeError, ValueError, ValidationError) as e:
                raise UpstreamFetchError(
                    f"Malformed Yahoo candle for {symbol} on {day}: {e}",
                    {"symbol": symbol, "range": range_code, "date": date},
                ) from e
        logger.info(f"Fetched {len(prices)} prices from Yahoo for {symbol} ({range_code}, {date})")
        return prices
