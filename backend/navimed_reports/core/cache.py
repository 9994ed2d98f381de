"""
Query cache — keyed, staleness-aware storage for fetched collections.

Replaces an ambient, process-wide query client with an object that is passed
explicitly to the services that read or invalidate it.

Entries are never mutated in place: a key is either replaced wholesale by
``set``, marked stale by ``set_stale``, or dropped by ``invalidate``.
Both of the latter bump the key's generation; a fetch that started under an
older generation must not write its result back.

Two backends:
- InMemoryQueryCache: per-process dict, monotonic clock
- RedisQueryCache: shared between processes, values stored as JSON

Values must be JSON-serializable so that both backends accept them.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import redis

logger = logging.getLogger(__name__)

REPORTS_KEY = "reports"
DEFAULT_STALE_SECONDS = 30.0


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: float
    stale: bool = False


class QueryCache:
    """Interface shared by all cache backends."""

    stale_seconds: float = DEFAULT_STALE_SECONDS

    def get(self, key: str, allow_stale: bool = False) -> Optional[Any]:
        """Return the cached value, or None when absent (or stale, unless allowed)."""
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def set_stale(self, key: str) -> None:
        """Mark a key stale; the next fresh read re-fetches."""
        raise NotImplementedError

    def invalidate(self, key: str) -> None:
        """Drop a key entirely."""
        raise NotImplementedError

    def generation(self, key: str) -> int:
        """Counter bumped by every ``set_stale`` and ``invalidate`` of ``key``."""
        raise NotImplementedError


class InMemoryQueryCache(QueryCache):
    def __init__(
        self,
        stale_seconds: float = DEFAULT_STALE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stale_seconds = stale_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._generations: Dict[str, int] = {}

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return not entry.stale and (self._clock() - entry.stored_at) < self.stale_seconds

    def get(self, key: str, allow_stale: bool = False) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if allow_stale or self._is_fresh(entry):
            return entry.value
        return None

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def set_stale(self, key: str) -> None:
        self._bump(key)
        entry = self._entries.get(key)
        if entry is not None:
            self._entries[key] = CacheEntry(value=entry.value, stored_at=entry.stored_at, stale=True)
            logger.debug(f"Cache key marked stale: {key}")

    def invalidate(self, key: str) -> None:
        self._bump(key)
        if self._entries.pop(key, None) is not None:
            logger.debug(f"Cache key invalidated: {key}")

    def generation(self, key: str) -> int:
        return self._generations.get(key, 0)

    def _bump(self, key: str) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1


class RedisQueryCache(QueryCache):
    """
    Redis-backed cache.

    Key layout:
      {prefix}:{key}        JSON payload, kept until invalidated
      {prefix}:{key}:fresh  freshness marker, expires after stale_seconds
      {prefix}:{key}:gen    generation counter
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        stale_seconds: float = DEFAULT_STALE_SECONDS,
        prefix: str = "navimed:query",
        client: Optional[redis.Redis] = None,
    ) -> None:
        self.stale_seconds = stale_seconds
        self._prefix = prefix
        self._redis = client or redis.Redis.from_url(redis_url, decode_responses=True)

    def _value_key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def _fresh_key(self, key: str) -> str:
        return f"{self._prefix}:{key}:fresh"

    def _gen_key(self, key: str) -> str:
        return f"{self._prefix}:{key}:gen"

    def get(self, key: str, allow_stale: bool = False) -> Optional[Any]:
        if not allow_stale and not self._redis.exists(self._fresh_key(key)):
            return None
        raw = self._redis.get(self._value_key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        pipe = self._redis.pipeline()
        pipe.set(self._value_key(key), json.dumps(value))
        pipe.set(self._fresh_key(key), 1, px=max(1, int(self.stale_seconds * 1000)))
        pipe.execute()

    def set_stale(self, key: str) -> None:
        self._redis.delete(self._fresh_key(key))
        self._redis.incr(self._gen_key(key))

    def invalidate(self, key: str) -> None:
        self._redis.delete(self._value_key(key), self._fresh_key(key))
        self._redis.incr(self._gen_key(key))
        logger.debug(f"Redis cache key invalidated: {key}")

    def generation(self, key: str) -> int:
        return int(self._redis.get(self._gen_key(key)) or 0)
