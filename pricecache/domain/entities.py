"""Domain entities - core business objects."""
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class DailyPrice(BaseModel):
    """Daily OHLCV record for one symbol.

    Prices are kept as ``Decimal`` end to end; the store and the upstream
    adapters must never round-trip them through ``float``.
    """
    symbol: str
    date: date
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: int = Field(ge=0)

    class Config:
        frozen = True
        from_attributes = True

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def key(self) -> tuple:
        """Store identity of this record."""
        return (self.symbol, self.date)


class RangeUnit(str, Enum):
    """Unit codes understood by the range classifier."""
    DAY = "d"
    WEEK = "w"
    MONTH = "m"
    YEAR = "y"
    YEAR_TO_DATE = "ytd"
    MAX = "max"
    SINGLE_DATE = "date"


class RangeRequest(BaseModel):
    """Parsed view of a range descriptor such as ``3m`` or ``ytd``.

    ``day_count`` is the number of calendar days before today that have to be
    checked one by one. It is ``None`` for the two sentinel units: ``max``
    (fetch everything) and ``date`` (fetch exactly ``anchor_date``).
    """
    code: str
    unit: RangeUnit
    magnitude: int = 0
    day_count: Optional[int] = None
    anchor_date: Optional[date] = None

    class Config:
        frozen = True

    @property
    def is_max(self) -> bool:
        return self.unit is RangeUnit.MAX

    @property
    def is_single_date(self) -> bool:
        return self.unit is RangeUnit.SINGLE_DATE

    @property
    def upstream_date(self) -> Optional[str]:
        """Anchor date in the provider's compact form, if any."""
        if self.anchor_date is None:
            return None
        return self.anchor_date.strftime("%Y%m%d")
