"""Collaborator interfaces (Ports) - abstraction for storage and market data."""
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from pricecache.domain.entities import DailyPrice


class PriceStore(ABC):
    """Interface for cached daily price access, keyed by (symbol, date).

    Symbols are case-insensitive. Writes are upserts: storing a record for an
    existing (symbol, date) replaces it.
    """

    @abstractmethod
    def count_for_symbol(self, symbol: str) -> int:
        """Count cached records for a symbol."""
        pass

    @abstractmethod
    def find_by_symbol(self, symbol: str) -> List[DailyPrice]:
        """Get all cached records for a symbol, oldest first."""
        pass

    @abstractmethod
    def find_by_symbol_and_date(self, symbol: str, day: date) -> List[DailyPrice]:
        """Get cached records for a symbol on one day."""
        pass

    @abstractmethod
    def upsert_all(self, records: List[DailyPrice]) -> None:
        """Insert or replace records. Raises StoreWriteError on failure."""
        pass


class UpstreamClient(ABC):
    """Interface for the market data provider."""

    @abstractmethod
    def fetch(
        self, symbol: str, range_code: str, date: Optional[str] = None
    ) -> List[DailyPrice]:
        """Fetch daily prices for a range code (and compact date for ``date`` ranges).

        Raises UpstreamFetchError on provider or network failure.
        """
        pass
