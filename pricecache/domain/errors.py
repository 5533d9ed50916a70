"""Domain error taxonomy."""
from typing import Optional


class PriceCacheError(Exception):
    """Base exception for pricecache."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidRangeError(PriceCacheError):
    """Range descriptor has an unrecognized unit code."""
    pass


class DateFormatError(PriceCacheError):
    """Date argument is not a valid compact YYYYMMDD date."""
    pass


class UpstreamFetchError(PriceCacheError):
    """Market data provider failed or returned an unusable payload."""
    pass


class StoreWriteError(PriceCacheError):
    """Prices could not be persisted to the store."""
    pass
