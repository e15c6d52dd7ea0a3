"""
Tezos Baking Cache Module

This module provides the caching layer that sits between the UI and the
TzKT indexer: an in-memory store with per-category TTL policies, an optional
durable second tier, and a stale-while-revalidate fetch orchestrator.
"""

from .core import Cache, CacheEntry, CacheHit, CacheStats, now_ms
from .policies import CacheKeys, CachePolicy, CacheStrategies
from .storage import FileStorage, KeyValueStorage, MemoryStorage
from .fetcher import CachedFetcher
from .invalidation import CacheInvalidator
from .monitoring import CacheMonitor

__all__ = [
    'Cache',
    'CacheEntry',
    'CacheHit',
    'CacheStats',
    'now_ms',
    'CacheKeys',
    'CachePolicy',
    'CacheStrategies',
    'FileStorage',
    'KeyValueStorage',
    'MemoryStorage',
    'CachedFetcher',
    'CacheInvalidator',
    'CacheMonitor'
]
