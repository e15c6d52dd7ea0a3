"""
Core caching functionality for the Tezos baking cache.

This module provides the in-memory cache store with per-policy TTL handling,
oldest-first eviction and an optional durable second tier used to carry
selected entries across process restarts.
"""
import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Pattern, Union

import structlog

from .policies import CachePolicy
from .storage import KeyValueStorage

logger = structlog.get_logger()

DEFAULT_MAX_SIZE = 100
STORAGE_PREFIX = "tzkt_cache_"


def now_ms() -> int:
    """Current wall clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry:
    """A single cached payload. Replaced wholesale, never mutated."""

    key: str
    data: Any
    timestamp: int
    ttl: int

    def age(self, now: int) -> int:
        return now - self.timestamp

    def is_expired(self, now: int) -> bool:
        return now - self.timestamp > self.ttl

    def to_json(self) -> str:
        return json.dumps({
            "data": self.data,
            "timestamp": self.timestamp,
            "ttl": self.ttl,
            "key": self.key,
        })

    @classmethod
    def from_json(cls, raw: str) -> "CacheEntry":
        payload = json.loads(raw)
        return cls(
            key=payload["key"],
            data=payload["data"],
            timestamp=int(payload["timestamp"]),
            ttl=int(payload["ttl"]),
        )


@dataclass(frozen=True)
class CacheHit:
    """Data returned by a lookup together with its expiry metadata."""

    data: Any
    timestamp: int
    ttl: int

    def is_expired(self, now: int) -> bool:
        return now - self.timestamp > self.ttl


@dataclass
class CacheStats:
    size: int
    max_size: int
    hits: int
    misses: int
    hit_rate: float
    entries: List[Dict[str, Any]] = field(default_factory=list)


class Cache:
    """
    In-memory cache store with an optional durable mirror.

    Entries expire according to the TTL of the policy they were written
    under. Policies flagged ``persist`` are mirrored to ``storage`` under
    ``prefix + key``; every storage call is best effort and never raises.

    The store is not thread safe. It is meant to be owned by one event loop.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        storage: Optional[KeyValueStorage] = None,
        prefix: str = STORAGE_PREFIX,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize the cache.

        Args:
            max_size: Maximum number of in-memory entries
            storage: Optional durable key-value storage for persisted policies
            prefix: Key prefix used for entries in the durable storage
            clock: Callable returning the current time in milliseconds
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._cache: Dict[str, CacheEntry] = {}
        self._max_size = max_size
        self._storage = storage
        self._prefix = prefix
        self._clock = clock
        self._hits = 0
        self._misses = 0

    @property
    def max_size(self) -> int:
        return self._max_size

    def now(self) -> int:
        return self._clock()

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def get(self, key: str, policy: CachePolicy) -> Optional[Any]:
        """
        Get a value from the cache.

        Args:
            key: Cache key to retrieve
            policy: Policy the key is read under

        Returns:
            The cached value (possibly stale under stale-while-revalidate)
            or None if absent or expired
        """
        hit = self.get_with_meta(key, policy)
        if hit is None:
            return None
        return hit.data

    def get_with_meta(self, key: str, policy: CachePolicy) -> Optional[CacheHit]:
        """
        Get a value from the cache together with its timestamp and TTL.

        Callers use the metadata to decide whether a returned entry is stale
        and needs revalidating.
        """
        now = self._clock()
        entry = self._cache.get(key)

        if entry is None:
            if not policy.persist:
                return None
            entry = self._load_from_storage(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                self._remove_from_storage(key)
                logger.debug("cache_storage_entry_expired", key=key)
                return None
            if len(self._cache) >= self._max_size:
                self._evict_oldest()
            self._cache[key] = entry
            logger.debug("cache_promoted_from_storage", key=key)
            return CacheHit(entry.data, entry.timestamp, entry.ttl)

        if entry.is_expired(now):
            if policy.stale_while_revalidate:
                return CacheHit(entry.data, entry.timestamp, entry.ttl)
            self.invalidate(key)
            return None

        return CacheHit(entry.data, entry.timestamp, entry.ttl)

    def set(self, key: str, data: Any, policy: CachePolicy) -> None:
        """
        Set a value in the cache.

        Args:
            key: Cache key
            data: Value to cache
            policy: Policy giving the TTL and persistence flag
        """
        # Enforce max size by removing the entry with the oldest timestamp
        if len(self._cache) >= self._max_size and key not in self._cache:
            self._evict_oldest()

        entry = CacheEntry(key=key, data=data, timestamp=self._clock(), ttl=policy.ttl)
        self._cache[key] = entry

        if policy.persist:
            self._save_to_storage(entry)

    def invalidate(self, key: str) -> None:
        """Remove a key from memory and from the durable storage."""
        self._cache.pop(key, None)
        self._remove_from_storage(key)

    def invalidate_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        """
        Remove every in-memory key matching a regular expression.

        Args:
            pattern: Regex (string or compiled), matched anywhere in the key

        Returns:
            Number of removed keys
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        matched = [key for key in self._cache if regex.search(key)]
        for key in matched:
            self.invalidate(key)
        logger.debug("cache_pattern_invalidated", pattern=regex.pattern, removed=len(matched))
        return len(matched)

    def clear(self) -> None:
        """Clear memory and every prefixed key in the durable storage."""
        self._cache.clear()
        if self._storage is None:
            return
        try:
            stored = [k for k in self._storage.keys() if k.startswith(self._prefix)]
            for storage_key in stored:
                self._storage.remove_item(storage_key)
        except Exception as e:
            logger.debug("cache_storage_failed", operation="clear", error=str(e))

    def record_hit(self) -> None:
        self._hits += 1

    def record_miss(self) -> None:
        self._misses += 1

    def hit_rate(self) -> float:
        total = self._hits + self._misses
        return self._hits / total if total > 0 else 0.0

    def get_stats(self) -> CacheStats:
        """
        Get cache statistics.

        Returns:
            Snapshot with size, hit rate and per-entry age/TTL
        """
        now = self._clock()
        entries = [
            {"key": key, "age": entry.age(now), "ttl": entry.ttl}
            for key, entry in self._cache.items()
        ]
        return CacheStats(
            size=len(self._cache),
            max_size=self._max_size,
            hits=self._hits,
            misses=self._misses,
            hit_rate=self.hit_rate(),
            entries=entries,
        )

    def _evict_oldest(self) -> None:
        if not self._cache:
            return
        oldest_key = min(self._cache.items(), key=lambda item: item[1].timestamp)[0]
        self.invalidate(oldest_key)
        logger.debug("cache_evicted", key=oldest_key)

    def _load_from_storage(self, key: str) -> Optional[CacheEntry]:
        if self._storage is None:
            return None
        try:
            raw = self._storage.get_item(self._prefix + key)
            return CacheEntry.from_json(raw) if raw else None
        except Exception as e:
            logger.debug("cache_storage_failed", operation="get", key=key, error=str(e))
            return None

    def _save_to_storage(self, entry: CacheEntry) -> None:
        if self._storage is None:
            return
        try:
            self._storage.set_item(self._prefix + entry.key, entry.to_json())
        except Exception as e:
            logger.debug("cache_storage_failed", operation="set", key=entry.key, error=str(e))

    def _remove_from_storage(self, key: str) -> None:
        if self._storage is None:
            return
        try:
            self._storage.remove_item(self._prefix + key)
        except Exception as e:
            logger.debug("cache_storage_failed", operation="remove", key=key, error=str(e))
