"""IEX Cloud historical prices client."""
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

import httpx
from pydantic import ValidationError

from pricecache.config import upstream_config
from pricecache.domain.entities import DailyPrice, RangeUnit
from pricecache.domain.errors import UpstreamFetchError
from pricecache.domain.interfaces import UpstreamClient

logger = logging.getLogger(__name__)


class IexCloudClient(UpstreamClient):
    """Fetch daily prices from ``/stock/{symbol}/chart/{range}/{date}``.

    JSON numbers are decoded straight into ``Decimal`` so prices never pass
    through ``float``.
    """

    def __init__(
        self,
        base_url: str = None,
        token: str = None,
        timeout: float = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._token = token if token is not None else upstream_config.IEX_TOKEN
        self._client = httpx.Client(
            base_url=base_url or upstream_config.IEX_BASE_URL,
            timeout=timeout or upstream_config.TIMEOUT,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch(
        self, symbol: str, range_code: str, date: Optional[str] = None
    ) -> List[DailyPrice]:
        """Fetch the chart for a symbol and range code."""
        path = f"/stock/{symbol}/chart/{range_code}"
        params: Dict[str, str] = {"token": self._token}
        if date:
            path = f"{path}/{date}"
        if range_code == RangeUnit.SINGLE_DATE.value:
            params["chartByDay"] = "true"

        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
            payload = response.json(parse_float=Decimal)
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(
                f"IEX returned HTTP {e.response.status_code} for {symbol} {range_code}",
                {"symbol": symbol, "range": range_code, "date": date,
                 "status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFetchError(
                f"IEX request failed for {symbol} {range_code}: {e}",
                {"symbol": symbol, "range": range_code, "date": date},
            ) from e
        except ValueError as e:
            raise UpstreamFetchError(
                f"IEX returned invalid JSON for {symbol} {range_code}: {e}",
                {"symbol": symbol, "range": range_code, "date": date},
            ) from e

        prices = self._parse_chart(symbol, payload)
        logger.info(f"Fetched {len(prices)} prices from IEX for {symbol} ({range_code}, {date})")
        return prices

    @staticmethod
    def _parse_chart(symbol: str, payload: Any) -> List[DailyPrice]:
        if not isinstance(payload, list):
            raise UpstreamFetchError(
                f"Unexpected IEX chart payload for {symbol}",
                {"symbol": symbol, "payload_type": type(payload).__name__},
            )
        try:
            return [
                DailyPrice(
                    symbol=item.get("symbol") or symbol,
                    date=item["date"],
                    open=item["open"],
                    high=item["high"],
                    low=item["low"],
                    close=item["close"],
                    volume=item["volume"],
                )
                for item in payload
            ]
        except (KeyError, TypeError, ValidationError) as e:
            raise UpstreamFetchError(
                f"Malformed IEX chart record for {symbol}: {e}",
                {"symbol": symbol},
            ) from e
