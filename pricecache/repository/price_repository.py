"""PriceStore implementations: ClickHouse and in-process memory."""
from datetime import date
from decimal import Decimal
from threading import Lock
from typing import Dict, List, Tuple
import logging

from pricecache.domain.entities import DailyPrice
from pricecache.domain.errors import StoreWriteError
from pricecache.domain.interfaces import PriceStore
from pricecache.repository.clickhouse_client import ClickHouseConnection

logger = logging.getLogger(__name__)

# ReplacingMergeTree keeps the row with the highest `updated_at` per
# (symbol, date); reads use FINAL so replaced rows are never observed.
CREATE_TABLE_QUERY = """
CREATE TABLE IF NOT EXISTS daily_prices (
    symbol LowCardinality(String),
    date Date,
    open Decimal(38, 8),
    high Decimal(38, 8),
    low Decimal(38, 8),
    close Decimal(38, 8),
    volume UInt64,
    updated_at DateTime64(6) DEFAULT now64(6)
)
ENGINE = ReplacingMergeTree(updated_at)
ORDER BY (symbol, date)
"""

TABLE = "daily_prices"
COLUMN_NAMES = ("symbol", "date", "open", "high", "low", "close", "volume")
_COLUMNS = ", ".join(COLUMN_NAMES)

PRICE_PRECISION = 38
PRICE_SCALE = 8
MAX_VOLUME = 2 ** 64 - 1


def _row_to_price(row: tuple) -> DailyPrice:
    return DailyPrice(
        symbol=row[0],
        date=row[1],
        open=row[2],
        high=row[3],
        low=row[4],
        close=row[5],
        volume=row[6],
    )


def _fits_decimal_column(value: Decimal) -> bool:
    """Whether value fits Decimal(38, PRICE_SCALE) without rounding."""
    _, digits, exponent = value.as_tuple()
    if not any(digits):
        return True
    digits = list(digits)
    # trailing zeros after the point carry no precision
    while exponent < 0 and len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    integer_digits = len(digits) + exponent
    return exponent >= -PRICE_SCALE and integer_digits <= PRICE_PRECISION - PRICE_SCALE


def _check_representable(price: DailyPrice) -> None:
    """Reject prices the column types would round or overflow."""
    for field in ("open", "high", "low", "close"):
        value = getattr(price, field)
        if not _fits_decimal_column(value):
            raise StoreWriteError(
                f"{price.symbol} {price.date} {field}={value} does not fit "
                f"Decimal({PRICE_PRECISION}, {PRICE_SCALE})",
                {"symbol": price.symbol, "date": price.date.isoformat(), "field": field},
            )
    if price.volume > MAX_VOLUME:
        raise StoreWriteError(
            f"{price.symbol} {price.date} volume={price.volume} exceeds UInt64",
            {"symbol": price.symbol, "date": price.date.isoformat(), "field": "volume"},
        )


class ClickHousePriceRepository(PriceStore):
    """ClickHouse implementation of the price store.

    Symbols are stored upper-cased, which makes lookups case-insensitive.
    Prices are stored as Decimal(38, 8) and volume as UInt64; records that
    would not fit exactly are rejected with StoreWriteError rather than
    rounded.
    """

    def __init__(self, connection: ClickHouseConnection):
        self._conn = connection

    def ensure_schema(self) -> None:
        """Create the daily_prices table if it does not exist."""
        self._conn.create_table(CREATE_TABLE_QUERY)

    def count_for_symbol(self, symbol: str) -> int:
        """Count cached records for a symbol."""
        query = f"""
        SELECT count()
        FROM {TABLE} FINAL
        WHERE symbol = %(symbol)s
        """
        result = self._conn.select(query, {"symbol": symbol.upper()})
        return int(result[0][0]) if result else 0

    def find_by_symbol(self, symbol: str) -> List[DailyPrice]:
        """Get all cached records for a symbol, oldest first."""
        query = f"""
        SELECT {_COLUMNS}
        FROM {TABLE} FINAL
        WHERE symbol = %(symbol)s
        ORDER BY date ASC
        """
        results = self._conn.select(query, {"symbol": symbol.upper()})
        return [_row_to_price(row) for row in results]

    def find_by_symbol_and_date(self, symbol: str, day: date) -> List[DailyPrice]:
        """Get cached records for a symbol on one day."""
        query = f"""
        SELECT {_COLUMNS}
        FROM {TABLE} FINAL
        WHERE symbol = %(symbol)s
          AND date = %(date)s
        """
        results = self._conn.select(query, {"symbol": symbol.upper(), "date": day})
        return [_row_to_price(row) for row in results]

    def upsert_all(self, records: List[DailyPrice]) -> None:
        """Insert records; newer rows replace older ones per (symbol, date)."""
        for rec in records:
            _check_representable(rec)
        written = self._conn.insert_rows(
            TABLE,
            COLUMN_NAMES,
            [
                (rec.symbol, rec.date, rec.open, rec.high, rec.low, rec.close, rec.volume)
                for rec in records
            ],
        )
        if written:
            logger.info(f"Upserted {written} daily price records")


class InMemoryPriceRepository(PriceStore):
    """Thread-safe dictionary-backed price store."""

    def __init__(self):
        self._prices: Dict[Tuple[str, date], DailyPrice] = {}
        self._lock = Lock()

    def count_for_symbol(self, symbol: str) -> int:
        symbol = symbol.upper()
        with self._lock:
            return sum(1 for key in self._prices if key[0] == symbol)

    def find_by_symbol(self, symbol: str) -> List[DailyPrice]:
        symbol = symbol.upper()
        with self._lock:
            prices = [p for key, p in self._prices.items() if key[0] == symbol]
        return sorted(prices, key=lambda p: p.date)

    def find_by_symbol_and_date(self, symbol: str, day: date) -> List[DailyPrice]:
        with self._lock:
            price = self._prices.get((symbol.upper(), day))
        return [price] if price is not None else []

    def upsert_all(self, records: List[DailyPrice]) -> None:
        with self._lock:
            for rec in records:
                self._prices[rec.key] = rec
