# app/services/result_cache.py
"""
In-memory TTL cache for computed analytics.

Entries expire a fixed time after they are set, whatever the access
pattern. Each entry may carry its own TTL.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, NamedTuple

from cachetools import TLRUCache

from app.constants import CacheDefaults

logger = logging.getLogger(__name__)


class _Entry(NamedTuple):
    value: Any
    ttl_seconds: float


def _time_to_use(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_seconds


class ResultCache:
    """
    Keyed TTL cache. Last set wins; get and set are serialized by a lock.

    Usage:
        cache = ResultCache()
        cache.set("post:abc123", analytics)
        cache.get("post:abc123")
    """

    def __init__(
        self,
        default_ttl_seconds: float = CacheDefaults.TTL_SECONDS,
        maxsize: int = CacheDefaults.MAX_ENTRIES,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl_seconds = default_ttl_seconds
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._cache.get(key)
        if entry is None:
            logger.debug(f"Cache miss: {key}", extra={"event": "cache_miss", "cache_key": key})
            return None
        logger.debug(f"Cache hit: {key}", extra={"event": "cache_hit", "cache_key": key})
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        with self._lock:
            self._cache[key] = _Entry(value, ttl)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)
