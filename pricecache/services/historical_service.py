"""Historical price reconciliation between the local store and the upstream provider."""
from datetime import date, timedelta
from typing import Callable, List, Optional
import logging

from pricecache.domain.entities import DailyPrice, RangeRequest, RangeUnit
from pricecache.domain.errors import StoreWriteError, UpstreamFetchError
from pricecache.domain.interfaces import PriceStore, UpstreamClient
from pricecache.domain.ranges import parse_range
from pricecache.services.metrics import (
    CACHE_HIT, CACHE_MISS, UPSTREAM_FETCH, ReconcilerMetrics
)

logger = logging.getLogger(__name__)


class HistoricalPriceService:
    """Serve daily prices from the store, backfilling misses from upstream.

    Every upstream result is upserted before it is returned, so the store
    always holds everything ever observed. Concurrent calls for the same
    symbol may fetch the same day twice; the upsert makes that harmless.
    """

    def __init__(
        self,
        store: PriceStore,
        upstream: UpstreamClient,
        metrics: Optional[ReconcilerMetrics] = None,
        today: Callable[[], date] = date.today,
    ):
        self._store = store
        self._upstream = upstream
        self._metrics = metrics or ReconcilerMetrics()
        self._today = today

    @property
    def metrics(self) -> ReconcilerMetrics:
        return self._metrics

    def get_historical_prices(
        self, symbol: str, range_code: str, date: Optional[str] = None
    ) -> List[DailyPrice]:
        """Get daily prices for a symbol over a range descriptor.

        Args:
            symbol: Ticker symbol, any case.
            range_code: Descriptor such as ``5d``, ``3m``, ``ytd``, ``max`` or ``date``.
            date: Compact ``YYYYMMDD`` date, used by the ``date`` range.

        Returns:
            Records ordered oldest day first for finite ranges, otherwise in
            the order the store or provider returned them.

        Raises:
            InvalidRangeError: unrecognized range unit.
            DateFormatError: malformed date on the single-date path.
            UpstreamFetchError: provider failure; no partial result is returned.
            StoreWriteError: fetched prices could not be cached.
        """
        symbol = symbol.strip().upper()
        request = parse_range(range_code, date, today=self._today())

        if request.is_single_date and request.anchor_date is None:
            logger.info(f"No date given for single-date request on {symbol}")
            return []

        if self._store.count_for_symbol(symbol) == 0:
            logger.info(f"No cached prices for {symbol}, fetching {request.code} upstream")
            return self._fetch_and_cache(symbol, request.code, request.upstream_date)

        if request.is_max:
            logger.info(f"Refreshing full history for {symbol}")
            return self._fetch_and_cache(symbol, request.code)

        if request.is_single_date:
            return self._get_single_date(symbol, request)

        if request.day_count == 0:
            logger.info(f"Zero-day range {request.code} for {symbol}, refetching")
            return self._fetch_and_cache(symbol, request.code)

        return self._backfill(symbol, request.day_count)

    def _get_single_date(self, symbol: str, request: RangeRequest) -> List[DailyPrice]:
        """Serve one day from the store, fetching it on a miss."""
        cached = self._store.find_by_symbol_and_date(symbol, request.anchor_date)
        if cached:
            self._metrics.increment(CACHE_HIT)
            logger.info(f"Serving {symbol} {request.anchor_date} from store")
            return list(cached)

        self._metrics.increment(CACHE_MISS)
        logger.info(f"Fetching {symbol} {request.anchor_date} upstream")
        return self._fetch_and_cache(
            symbol, RangeUnit.SINGLE_DATE.value, request.upstream_date
        )

    def _backfill(self, symbol: str, day_count: int) -> List[DailyPrice]:
        """Walk the ``day_count`` days before today, oldest first, filling gaps."""
        today = self._today()
        results: List[DailyPrice] = []
        fetched = 0

        for offset in range(day_count, 0, -1):
            day = today - timedelta(days=offset)
            cached = self._store.find_by_symbol_and_date(symbol, day)
            if cached:
                self._metrics.increment(CACHE_HIT)
                logger.debug(f"Cache hit for {symbol} on {day}")
                results.extend(cached)
                continue

            self._metrics.increment(CACHE_MISS)
            results.extend(
                self._fetch_and_cache(
                    symbol, RangeUnit.SINGLE_DATE.value, day.strftime("%Y%m%d")
                )
            )
            fetched += 1

        logger.info(
            f"Resolved {day_count} days for {symbol}: "
            f"{day_count - fetched} from store, {fetched} from upstream"
        )
        return results

    def _fetch_and_cache(
        self, symbol: str, range_code: str, date: Optional[str] = None
    ) -> List[DailyPrice]:
        """Fetch from upstream and upsert the result before returning it."""
        self._metrics.increment(UPSTREAM_FETCH)
        try:
            prices = list(self._upstream.fetch(symbol, range_code, date))
        except UpstreamFetchError as e:
            logger.error(f"Upstream fetch failed for {symbol} ({range_code}, {date}): {e}")
            raise

        try:
            self._store.upsert_all(prices)
        except StoreWriteError as e:
            logger.error(f"Failed to cache {len(prices)} prices for {symbol}: {e}")
            raise
        return prices
