"""Reconciliation counters."""
from collections import Counter
from threading import Lock
from typing import Dict

CACHE_HIT = "cache_hit"
CACHE_MISS = "cache_miss"
UPSTREAM_FETCH = "upstream_fetch"


class ReconcilerMetrics:
    """Thread-safe counters for cache hits, cache misses and upstream fetches."""

    def __init__(self):
        self._counts: Counter = Counter()
        self._lock = Lock()

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[name] += amount

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts[name]

    def snapshot(self) -> Dict[str, int]:
        """Current value of every counter."""
        with self._lock:
            return {
                name: self._counts[name]
                for name in (CACHE_HIT, CACHE_MISS, UPSTREAM_FETCH)
            }
