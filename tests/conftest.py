"""Pytest configuration and fixtures."""
from datetime import date, timedelta
from decimal import Decimal

import pytest
from unittest.mock import MagicMock

from pricecache.domain.entities import DailyPrice
from pricecache.domain.interfaces import UpstreamClient
from pricecache.repository.price_repository import InMemoryPriceRepository
from pricecache.services.historical_service import HistoricalPriceService

TODAY = date(2026, 10, 19)


def make_price(day: date, symbol: str = "TWTR", close: str = "38.51") -> DailyPrice:
    """Build a daily price with fixed OHLC around a close."""
    return DailyPrice(
        symbol=symbol,
        date=day,
        open=Decimal("38.10"),
        high=Decimal("39.02"),
        low=Decimal("37.95"),
        close=Decimal(close),
        volume=12345678,
    )


def days_before(count: int):
    """The `count` days before TODAY, oldest first."""
    return [TODAY - timedelta(days=offset) for offset in range(count, 0, -1)]


@pytest.fixture
def store():
    """Empty in-memory price store."""
    return InMemoryPriceRepository()


@pytest.fixture
def mock_upstream():
    """Mock market data client returning nothing by default."""
    client = MagicMock(spec=UpstreamClient)
    client.fetch = MagicMock(return_value=[])
    return client


@pytest.fixture
def service(store, mock_upstream):
    """Reconciler pinned to TODAY."""
    return HistoricalPriceService(store, mock_upstream, today=lambda: TODAY)
