"""ClickHouse gateway for the daily price cache."""
from typing import Any, Dict, List, Optional, Sequence
import logging

from clickhouse_driver import Client
from clickhouse_driver.errors import Error as ClickHouseError

from pricecache.config import clickhouse_config
from pricecache.domain.errors import StoreWriteError

logger = logging.getLogger(__name__)

# Driver-level failures: server errors plus dropped or refused sockets.
_DRIVER_ERRORS = (ClickHouseError, OSError, EOFError)


class ClickHouseConnection:
    """Owns the driver client and exposes the three operations the cache needs.

    Reads return raw row tuples. Writes (batch inserts and DDL) translate
    driver failures into StoreWriteError so callers only see domain errors.
    """

    def __init__(self, settings=clickhouse_config):
        self._settings = settings
        self._client: Optional[Client] = None

    @property
    def dsn(self) -> str:
        return f"{self._settings.HOST}:{self._settings.PORT}/{self._settings.DATABASE}"

    def connect(self) -> None:
        """Open the driver client."""
        self._client = Client(
            host=self._settings.HOST,
            port=self._settings.PORT,
            database=self._settings.DATABASE,
            user=self._settings.USER,
            password=self._settings.PASSWORD,
        )
        logger.info(f"Price cache backed by ClickHouse at {self.dsn}")

    def disconnect(self) -> None:
        if self._client:
            self._client.disconnect()
            self._client = None
            logger.info(f"Closed ClickHouse price cache at {self.dsn}")

    def __enter__(self) -> "ClickHouseConnection":
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()

    def _require_client(self) -> Client:
        if not self._client:
            raise RuntimeError(f"ClickHouse price cache at {self.dsn} is not connected")
        return self._client

    def select(self, query: str, params: Dict[str, Any]) -> List[tuple]:
        """Run a parameterized SELECT and return its rows."""
        return self._require_client().execute(query, params)

    def create_table(self, ddl: str) -> None:
        """Apply a CREATE TABLE statement."""
        client = self._require_client()
        try:
            client.execute(ddl)
        except _DRIVER_ERRORS as e:
            logger.error(f"Schema setup failed on {self.dsn}: {e}")
            raise StoreWriteError(
                f"Schema setup failed: {e}", {"dsn": self.dsn}
            ) from e

    def insert_rows(self, table: str, columns: Sequence[str], rows: List[tuple]) -> int:
        """Batch insert rows into a table, returning how many were sent."""
        if not rows:
            return 0
        client = self._require_client()
        query = f"INSERT INTO {table} ({', '.join(columns)}) VALUES"
        try:
            client.execute(query, rows)
        except _DRIVER_ERRORS as e:
            logger.error(f"Insert of {len(rows)} rows into {table} failed: {e}")
            raise StoreWriteError(
                f"Failed to write {len(rows)} rows to {table}: {e}",
                {"table": table, "count": len(rows)},
            ) from e
        return len(rows)
