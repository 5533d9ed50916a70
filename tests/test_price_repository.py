"""Tests for price store implementations."""
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from conftest import make_price
from pricecache.domain.errors import StoreWriteError
from pricecache.repository.clickhouse_client import ClickHouseConnection
from pricecache.repository.price_repository import ClickHousePriceRepository

JUNE_10 = date(2020, 6, 10)


def test_upsert_is_idempotent(store):
    """Test writing the same price twice equals writing it once."""
    price = make_price(JUNE_10)
    store.upsert_all([price])
    once = store.find_by_symbol("TWTR")

    store.upsert_all([price])

    assert store.find_by_symbol("TWTR") == once
    assert store.count_for_symbol("TWTR") == 1


def test_upsert_replaces_same_day(store):
    """Test a newer record for the same (symbol, date) replaces the old one."""
    store.upsert_all([make_price(JUNE_10, close="38.00")])
    store.upsert_all([make_price(JUNE_10, close="38.75")])

    assert store.find_by_symbol_and_date("TWTR", JUNE_10)[0].close == Decimal("38.75")


def test_symbol_lookup_is_case_insensitive(store):
    """Test symbols match regardless of case."""
    store.upsert_all([make_price(JUNE_10, symbol="twtr")])

    assert store.count_for_symbol("Twtr") == 1
    assert store.find_by_symbol_and_date("tWtR", JUNE_10)[0].symbol == "TWTR"


def test_find_by_symbol_sorted_by_date(store):
    """Test records come back oldest first."""
    later, earlier = make_price(date(2020, 6, 11)), make_price(JUNE_10)
    store.upsert_all([later, earlier])

    assert store.find_by_symbol("TWTR") == [earlier, later]
    assert store.find_by_symbol("AAPL") == []


def test_missing_day_is_empty(store):
    """Test a missing (symbol, date) yields an empty list."""
    assert store.find_by_symbol_and_date("TWTR", JUNE_10) == []


@pytest.fixture
def mock_connection():
    """Mock ClickHouse gateway."""
    connection = MagicMock(spec=ClickHouseConnection)
    connection.insert_rows.side_effect = lambda table, columns, rows: len(rows)
    return connection


def test_clickhouse_count_for_symbol(mock_connection):
    """Test count query upper-cases the symbol."""
    mock_connection.select.return_value = [(3,)]
    repo = ClickHousePriceRepository(mock_connection)

    assert repo.count_for_symbol("twtr") == 3
    query, params = mock_connection.select.call_args[0]
    assert "count()" in query
    assert params == {"symbol": "TWTR"}


def test_clickhouse_find_by_symbol_and_date(mock_connection):
    """Test point lookups map rows to daily prices."""
    mock_connection.select.return_value = [
        ("TWTR", JUNE_10, Decimal("38.10"), Decimal("39.02"),
         Decimal("37.95"), Decimal("38.51"), 12345678)
    ]
    repo = ClickHousePriceRepository(mock_connection)

    result = repo.find_by_symbol_and_date("twtr", JUNE_10)

    assert result == [make_price(JUNE_10)]
    query, params = mock_connection.select.call_args[0]
    assert "FINAL" in query
    assert params == {"symbol": "TWTR", "date": JUNE_10}


def test_clickhouse_upsert_all(mock_connection):
    """Test upserts are sent as one batch insert."""
    repo = ClickHousePriceRepository(mock_connection)

    repo.upsert_all([make_price(JUNE_10)])

    mock_connection.insert_rows.assert_called_once_with(
        "daily_prices",
        ("symbol", "date", "open", "high", "low", "close", "volume"),
        [("TWTR", JUNE_10, Decimal("38.10"), Decimal("39.02"),
          Decimal("37.95"), Decimal("38.51"), 12345678)],
    )


def test_clickhouse_upsert_failure_propagates(mock_connection):
    """Test gateway write failures reach the caller unchanged."""
    mock_connection.insert_rows.side_effect = StoreWriteError("connection reset")
    repo = ClickHousePriceRepository(mock_connection)

    with pytest.raises(StoreWriteError):
        repo.upsert_all([make_price(JUNE_10)])


@pytest.mark.parametrize("close", ["38.123456789", "1234567890123456789012345678901.5"])
def test_clickhouse_rejects_prices_that_would_be_rounded(mock_connection, close):
    """Test prices beyond Decimal(38, 8) are refused instead of truncated."""
    repo = ClickHousePriceRepository(mock_connection)

    with pytest.raises(StoreWriteError) as exc_info:
        repo.upsert_all([make_price(JUNE_10), make_price(date(2020, 6, 11), close=close)])
    assert exc_info.value.details["field"] == "close"
    mock_connection.insert_rows.assert_not_called()


@pytest.mark.parametrize("close", ["38.12345678", "38.1234567800000", "0E-12", "100"])
def test_clickhouse_accepts_exact_prices(mock_connection, close):
    """Test prices that fit the column exactly are written."""
    ClickHousePriceRepository(mock_connection).upsert_all([make_price(JUNE_10, close=close)])
    mock_connection.insert_rows.assert_called_once()


def test_clickhouse_rejects_oversized_volume(mock_connection):
    """Test volumes beyond UInt64 are refused."""
    price = make_price(JUNE_10).model_copy(update={"volume": 2 ** 64})

    with pytest.raises(StoreWriteError) as exc_info:
        ClickHousePriceRepository(mock_connection).upsert_all([price])
    assert exc_info.value.details["field"] == "volume"


def test_clickhouse_ensure_schema(mock_connection):
    """Test schema creation uses a ReplacingMergeTree keyed by symbol and date."""
    ClickHousePriceRepository(mock_connection).ensure_schema()

    ddl = mock_connection.create_table.call_args[0][0]
    assert "ReplacingMergeTree" in ddl
    assert "ORDER BY (symbol, date)" in ddl


@pytest.fixture
def mock_driver():
    """Patched clickhouse_driver Client."""
    with patch("pricecache.repository.clickhouse_client.Client") as client_cls:
        yield client_cls.return_value


def test_connection_insert_rows(mock_driver):
    """Test batch inserts name the columns and pass rows through."""
    with ClickHouseConnection() as connection:
        written = connection.insert_rows("daily_prices", ("symbol", "date"), [("TWTR", JUNE_10)])

    assert written == 1
    mock_driver.execute.assert_called_once_with(
        "INSERT INTO daily_prices (symbol, date) VALUES", [("TWTR", JUNE_10)]
    )
    mock_driver.disconnect.assert_called_once()


def test_connection_insert_nothing(mock_driver):
    """Test empty batches skip the driver."""
    with ClickHouseConnection() as connection:
        assert connection.insert_rows("daily_prices", ("symbol",), []) == 0
    mock_driver.execute.assert_not_called()


@pytest.mark.parametrize("failure", [ConnectionResetError("reset"), EOFError("eof")])
def test_connection_insert_failure(mock_driver, failure):
    """Test driver failures on insert become StoreWriteError."""
    mock_driver.execute.side_effect = failure

    with ClickHouseConnection() as connection:
        with pytest.raises(StoreWriteError) as exc_info:
            connection.insert_rows("daily_prices", ("symbol",), [("TWTR",)])
    assert exc_info.value.details == {"table": "daily_prices", "count": 1}


def test_connection_schema_failure(mock_driver):
    """Test failed DDL becomes StoreWriteError."""
    mock_driver.execute.side_effect = ConnectionRefusedError("refused")

    with ClickHouseConnection() as connection:
        with pytest.raises(StoreWriteError):
            connection.create_table("CREATE TABLE t (x UInt8) ENGINE = Memory")


def test_connection_select(mock_driver):
    """Test selects return driver rows."""
    mock_driver.execute.return_value = [(1,)]

    with ClickHouseConnection() as connection:
        assert connection.select("SELECT 1", {}) == [(1,)]


def test_connection_requires_connect():
    """Test use before connect fails loudly."""
    with pytest.raises(RuntimeError):
        ClickHouseConnection().select("SELECT 1", {})
