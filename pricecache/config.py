"""Configuration management using python-dotenv."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)


class ClickHouseConfig:
    """ClickHouse connection configuration."""
    HOST: str = os.getenv("CLICKHOUSE_HOST", "localhost")
    PORT: int = int(os.getenv("CLICKHOUSE_PORT", "9000"))
    DATABASE: str = os.getenv("CLICKHOUSE_DB", "pricecache")
    USER: str = os.getenv("CLICKHOUSE_USER", "default")
    PASSWORD: str = os.getenv("CLICKHOUSE_PASSWORD", "")


class UpstreamConfig:
    """Market data provider configuration."""
    PROVIDER: str = os.getenv("UPSTREAM_PROVIDER", "iex")
    IEX_BASE_URL: str = os.getenv("IEX_BASE_URL", "https://cloud.iexapis.com/stable")
    IEX_TOKEN: str = os.getenv("IEX_TOKEN", "")
    TIMEOUT: float = float(os.getenv("UPSTREAM_TIMEOUT", "10.0"))


class AppConfig:
    """Application configuration."""
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "clickhouse")


# Singleton instances
clickhouse_config = ClickHouseConfig()
upstream_config = UpstreamConfig()
app_config = AppConfig()
