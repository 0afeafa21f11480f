"""TransformationCache: content-addressed memoization of schema rewrites.

Results are keyed by ``CacheKey(schema_hash, version, options_hash,
transform_kind)``, where ``schema_hash`` is a SHA-256 of the canonical
(key-sorted) JSON of the input schema.  Storage is a ``cachetools.TTLCache``
sized by an approximate byte estimate, so both bounds evict least recently
used entries first:

- entries older than ``ttl_seconds`` are dropped lazily on lookup (or all at
  once with ``evict_expired``);
- inserting evicts while the entry count would exceed ``max_entries`` or the
  memory estimate would exceed ``max_memory_bytes``.

Values are deep-copied on the way in and out, so callers never share a
mutable tree with the cache.  All operations run under one lock; lookups
never raise.

Example::

    from openapi_normalizer.cache import CacheKey, TransformationCache

    cache = TransformationCache()
    key = CacheKey(schema_fingerprint(schema), "3.1.0", opts.fingerprint(), "full-schema")
    cache.set(key, result)
    cache.get(key)          # deep copy of result
    cache.stats().hit_rate  # percentage
"""

from __future__ import annotations

import copy
import hashlib
import json
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachetools import TTLCache
from loguru import logger

from openapi_normalizer.options import CacheConfig

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "TransformationCache",
    "approximate_size",
    "default_cache",
    "reset_default_cache",
    "schema_fingerprint",
]


def schema_fingerprint(schema: Any, salt: str = "") -> str | None:
    """SHA-256 of the canonical JSON of *schema*, or None if it has none.

    *salt* is mixed into the digest; results that depend on more than the
    schema (e.g. its location in the document) pass it here.
    """
    try:
        canonical = json.dumps(
            schema, sort_keys=True, separators=(",", ":"), allow_nan=False
        )
    except (TypeError, ValueError, RecursionError):
        return None
    digest = hashlib.sha256(canonical.encode("utf-8"))
    if salt:
        digest.update(b"\x00" + salt.encode("utf-8"))
    return digest.hexdigest()


def approximate_size(value: Any) -> int:
    """Rough in-memory size: two bytes per character of serialized form."""
    try:
        text = json.dumps(value, default=str)
    except (TypeError, ValueError, RecursionError):
        text = repr(value)
    return len(text) * 2


@dataclass(frozen=True, slots=True)
class CacheKey:
    schema_hash: str
    version: str
    options_hash: str
    transform_kind: str

    def serialize(self) -> str:
        return f"{self.transform_kind}:{self.schema_hash}:{self.version}:{self.options_hash}"


@dataclass(slots=True)
class CacheEntry:
    result: Any
    timestamp: float
    access_count: int
    size: int


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of cache counters.  ``hit_rate`` is a percentage in [0, 100]."""

    total_entries: int
    hits: int
    misses: int
    memory_usage: int
    hit_rate: float


class TransformationCache:
    """Bounded LRU + TTL cache for transformation results.

    Args:
        config: Entry, memory and TTL bounds.  Defaults to ``CacheConfig()``.
        timer: Monotonic clock in seconds.  Defaults to ``time.monotonic``.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config if config is not None else CacheConfig()
        self._timer = timer
        self._lock = threading.RLock()
        self._cache: TTLCache[CacheKey, CacheEntry] = TTLCache(
            maxsize=self._config.max_memory_bytes,
            ttl=self._config.ttl_seconds,
            timer=timer,
            getsizeof=lambda entry: entry.size,
        )
        self._hits = 0
        self._misses = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def curr_size(self) -> int:
        """The current number of entries stored in the cache."""
        with self._lock:
            return len(self._cache)

    # ------------------------------------------------------------------
    # Lookup and storage
    # ------------------------------------------------------------------

    def get(self, key: CacheKey) -> Any | None:
        """Return a copy of the cached value, or None on a miss or expiry."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("Cache miss for {}", key.transform_kind)
                return None
            self._hits += 1
            entry.access_count += 1
            return copy.deepcopy(entry.result)

    def has(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._cache

    def set(self, key: CacheKey, value: Any) -> bool:
        """Store a copy of *value*.  Returns False if it was too large to keep."""
        stored = copy.deepcopy(value)
        size = approximate_size(stored)
        if size > self._config.max_memory_bytes:
            logger.warning(
                "Not caching {} result of {} bytes (limit {})",
                key.transform_kind,
                size,
                self._config.max_memory_bytes,
            )
            return False
        with self._lock:
            self._cache.pop(key, None)
            while len(self._cache) >= self._config.max_entries:
                evicted, _ = self._cache.popitem()
                logger.debug("Evicted {} entry to respect max_entries", evicted.transform_kind)
            self._cache[key] = CacheEntry(
                result=stored, timestamp=self._timer(), access_count=0, size=size
            )
        return True

    def delete(self, key: CacheKey) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry and reset the hit/miss counters."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def evict_expired(self) -> int:
        """Remove every expired entry now; return how many were removed."""
        with self._lock:
            before = len(self._cache)
            self._cache.expire()
            return before - len(self._cache)

    def stats(self) -> CacheStats:
        with self._lock:
            self._cache.expire()
            lookups = self._hits + self._misses
            return CacheStats(
                total_entries=len(self._cache),
                hits=self._hits,
                misses=self._misses,
                memory_usage=int(self._cache.currsize),
                hit_rate=(self._hits / lookups * 100.0) if lookups else 0.0,
            )


_default_cache: TransformationCache | None = None
_default_lock = threading.Lock()


def default_cache() -> TransformationCache:
    """Return the process-wide cache, creating it on first use."""
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            _default_cache = TransformationCache()
        return _default_cache


def reset_default_cache() -> None:
    global _default_cache
    with _default_lock:
        _default_cache = None
