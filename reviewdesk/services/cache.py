"""
CacheManager - Namespaced in-memory cache with TTL and explicit invalidation.

Features:
- Memory-resident, process-scoped entries keyed by "<namespace>:<key>"
- TTL (Time To Live) per entry, checked on every read
- Exact-key and regex-pattern invalidation
- Per-instance enable/disable switch (CacheConfig)
- Hit/miss statistics
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Generic, TypeVar

from loguru import logger

T = TypeVar("T")


class TTL:
    """TTL classes used by the data-access layer."""

    FIVE_MINUTES = timedelta(minutes=5)
    FIFTEEN_MINUTES = timedelta(minutes=15)
    HOUR = timedelta(hours=1)


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with metadata."""

    data: T
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Check if entry is past its TTL."""
        return now >= self.expires_at


@dataclass
class CacheConfig:
    """Cache settings owned by a single CacheManager."""

    namespace: str = "reviewdesk"
    default_ttl: timedelta = TTL.FIFTEEN_MINUTES
    max_size: int | None = None
    enabled: bool = True
    debug: bool = False


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int | None = None

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": f"{self.hit_rate:.2%}",
        }


def create_cache_key(
    operation: str, params: dict[str, str | int | float | bool | None] | None = None
) -> str:
    """
    Build a deterministic cache key from an operation name and filter params.

    None values are dropped and the remaining params are serialised in name
    order, so ``{"page": 1, "rating": None}`` and ``{"page": 1}`` produce the
    same key. Values are JSON-encoded, which keeps ``1`` and ``"1"`` apart.
    """
    defined = {k: v for k, v in (params or {}).items() if v is not None}

    for name, value in defined.items():
        if not isinstance(value, (str, int, float, bool)):
            raise TypeError(
                f"Cache key param '{name}' must be a scalar, "
                f"got {type(value).__name__}"
            )

    if not defined:
        return operation

    encoded = json.dumps(defined, sort_keys=True, separators=(",", ":"))
    return f"{operation}:{encoded}"


class CacheManager:
    """
    Async-compatible namespaced cache with TTL.

    Usage:
        cache = CacheManager(CacheConfig(namespace="judgeme"))

        reviews = await cache.get_or_fetch(
            create_cache_key("reviews", {"page": 1}),
            lambda: fetch_reviews(page=1),
            ttl=TTL.FIFTEEN_MINUTES,
        )

    Several managers may share one ``store`` mapping; each one only reads,
    counts and removes keys in its own namespace. No lock is held while a
    producer runs, so two concurrent misses on the same key both fetch and
    the last write wins.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        store: dict[str, CacheEntry[Any]] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or CacheConfig()
        self._memory: dict[str, CacheEntry[Any]] = store if store is not None else {}
        self._prefix = f"{self.config.namespace}:"
        self._clock = clock
        self._stats = CacheStats()

    @property
    def namespace(self) -> str:
        return self.config.namespace

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def enable(self) -> None:
        """Re-enable reads and writes after disable()."""
        self.config.enabled = True
        self._log("ENABLED")

    def disable(self) -> None:
        """Make every get_or_fetch call go straight to its producer."""
        self.config.enabled = False
        self._log("DISABLED")

    async def get_or_fetch(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        ttl: timedelta | None = None,
        bypass_cache: bool = False,
    ) -> T:
        """
        Return the cached value for key, or await producer() and cache it.

        Args:
            key: Cache key (without namespace)
            producer: Zero-argument coroutine function producing the value
            ttl: Time to live (uses the config default if not specified)
            bypass_cache: Skip the cache entirely for this call

        Returns:
            Cached or freshly produced value. A hit returns the stored object
            itself, so callers must treat it as read-only.

        Raises:
            Whatever producer() raises; nothing is cached in that case.
        """
        if bypass_cache or not self.config.enabled:
            self._log(f"BYPASS: {key[:50]}")
            return await producer()

        full_key = self._prefix + key
        entry = self._memory.get(full_key)

        if entry is not None:
            if not entry.is_expired(self._clock()):
                self._stats.hits += 1
                self._log(f"HIT: {key[:50]}")
                return entry.data

            del self._memory[full_key]
            self._log(f"EXPIRED: {key[:50]}")

        self._stats.misses += 1
        self._log(f"MISS: {key[:50]}")

        data = await producer()
        self._set(
            full_key, data, ttl if ttl is not None else self.config.default_ttl
        )
        return data

    def _set(self, full_key: str, data: Any, ttl: timedelta) -> None:
        """Store data under an already-namespaced key."""
        max_size = self.config.max_size
        if max_size is not None and full_key not in self._memory:
            if len(self._own_keys()) >= max_size:
                self._evict()

        self._memory[full_key] = CacheEntry(data=data, expires_at=self._clock() + ttl)
        self._log(f"SET: {full_key[:50]} (TTL: {ttl.total_seconds()}s)")

    def _evict(self) -> None:
        """Drop expired entries, then the oldest one if still at capacity."""
        now = self._clock()
        own = self._own_keys()
        expired = [k for k in own if self._memory[k].is_expired(now)]
        for key in expired:
            del self._memory[key]

        if expired:
            self._log(f"CLEANUP: {len(expired)} expired entries removed")
            return

        # dicts keep insertion order, so the first own key is the oldest
        oldest_key = own[0]
        del self._memory[oldest_key]
        self._stats.evictions += 1
        self._log(f"EVICT: {oldest_key[:50]}")

    def invalidate(self, key: str) -> bool:
        """Delete a specific key from cache. Returns True if it was present."""
        full_key = self._prefix + key
        if full_key in self._memory:
            del self._memory[full_key]
            self._log(f"DELETE: {key[:50]}")
            return True
        return False

    def invalidate_pattern(self, pattern: str | re.Pattern[str]) -> int:
        """
        Invalidate all keys in this namespace matching a regex.

        Args:
            pattern: Regex searched against the key without its namespace

        Returns:
            Number of entries invalidated
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        keys_to_delete = [
            k for k in self._own_keys() if regex.search(k[len(self._prefix):])
        ]
        for key in keys_to_delete:
            del self._memory[key]

        if keys_to_delete:
            self._log(
                f"INVALIDATE: {len(keys_to_delete)} entries matching "
                f"'{regex.pattern}'"
            )

        return len(keys_to_delete)

    def clear(self) -> int:
        """Clear all entries in this namespace. Returns count removed."""
        keys = self._own_keys()
        for key in keys:
            del self._memory[key]
        self._log(f"CLEAR: {len(keys)} entries removed")
        return len(keys)

    def get_stats(self) -> CacheStats:
        """Get cache statistics."""
        self._stats.size = len(self._own_keys())
        self._stats.max_size = self.config.max_size
        return self._stats

    def _own_keys(self) -> list[str]:
        return [k for k in self._memory if k.startswith(self._prefix)]

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self.config.debug:
            logger.debug(f"[CacheManager:{self.config.namespace}] {message}")
